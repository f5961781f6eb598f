# models/commission.py
"""
Commission rule and result models.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from models.base import ZERO, decimal_to_float, pick, to_decimal, to_optional_decimal


class CommissionKind(Enum):
    """Standard commission formulas."""
    BINARY = "binary"
    SALES = "sales"
    REFERRAL = "referral"
    UNILEVEL = "unilevel"
    FAST_START = "fast_start"


class TriggerKind(Enum):
    """Conditions under which a custom commission fires."""
    VOLUME = "volume"
    LEVEL = "level"
    MILESTONE = "milestone"


CUSTOM_KIND = "custom"


def _parse_enum(enumClass, value, label: str):
    if isinstance(value, enumClass):
        return value
    try:
        return enumClass(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(e.value for e in enumClass)
        raise ValueError(f"Invalid {label} '{value}'. Must be one of: {valid}")


@dataclass
class StandardCommissionRule:
    """
    Fixed-formula commission. percentage is 0-100.

    Unset limits (None) mean no limit.
    """
    kind: CommissionKind
    percentage: Decimal
    enabled: bool = True
    name: Optional[str] = None
    maxLevel: Optional[int] = None
    minVolume: Optional[Decimal] = None
    maxVolume: Optional[Decimal] = None

    def __post_init__(self):
        self.kind = _parse_enum(CommissionKind, self.kind, "commission kind")
        self.percentage = to_decimal(self.percentage, "percentage")
        if self.percentage < 0:
            raise ValueError(f"Commission percentage must not be negative, got {self.percentage}")
        self.minVolume = to_optional_decimal(self.minVolume, "min_volume")
        self.maxVolume = to_optional_decimal(self.maxVolume, "max_volume")
        if self.name is None:
            self.name = f"{self.kind.value.replace('_', ' ').title()} Commission"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StandardCommissionRule":
        return cls(
            kind=pick(data, "kind", "type", default=""),
            percentage=pick(data, "percentage", default=0),
            enabled=bool(pick(data, "enabled", "is_enabled", default=True)),
            name=pick(data, "name"),
            maxLevel=pick(data, "max_level"),
            minVolume=pick(data, "min_volume"),
            maxVolume=pick(data, "max_volume"),
        )


@dataclass
class CustomCommissionRule:
    """
    User-defined commission that fires on a trigger.

    maxLevel is carried for the plan definition; evaluation does not apply it.
    """
    name: str
    percentage: Decimal
    triggerKind: TriggerKind
    triggerValue: Decimal
    enabled: bool = True
    description: str = ""
    maxLevel: Optional[int] = None
    maxVolume: Optional[Decimal] = None

    def __post_init__(self):
        self.triggerKind = _parse_enum(TriggerKind, self.triggerKind, "trigger kind")
        self.percentage = to_decimal(self.percentage, "percentage")
        if self.percentage < 0:
            raise ValueError(f"Commission percentage must not be negative, got {self.percentage}")
        self.triggerValue = to_decimal(self.triggerValue, "trigger_value")
        self.maxVolume = to_optional_decimal(self.maxVolume, "max_volume")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomCommissionRule":
        return cls(
            name=pick(data, "name", default="Custom Commission"),
            percentage=pick(data, "percentage", default=0),
            triggerKind=pick(data, "trigger_kind", "trigger_type", default=""),
            triggerValue=pick(data, "trigger_value", default=0),
            enabled=bool(pick(data, "enabled", "is_enabled", default=True)),
            description=pick(data, "description", default=""),
            maxLevel=pick(data, "max_level"),
            maxVolume=pick(data, "max_volume"),
        )


CommissionRule = Union[StandardCommissionRule, CustomCommissionRule]


def parse_commission_rules(data: Dict[str, Any]) -> List[CommissionRule]:
    """
    Build a rule list from a commission config dict.

    Expected shape:
        {"standard_commissions": [...], "custom_commissions": [...]}
    """
    rules: List[CommissionRule] = []
    for item in data.get("standard_commissions", []) or []:
        rules.append(StandardCommissionRule.from_dict(item))
    for item in data.get("custom_commissions", []) or []:
        rules.append(CustomCommissionRule.from_dict(item))
    return rules


@dataclass(frozen=True)
class CommissionResult:
    """One positive commission earned by one member under one rule."""
    ruleName: str
    kind: str
    amount: Decimal
    percentageUsed: Decimal
    level: int = 0
    volumeBasis: Decimal = ZERO
    explanation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_name": self.ruleName,
            "kind": self.kind,
            "amount": decimal_to_float(self.amount),
            "percentage": decimal_to_float(self.percentageUsed),
            "level": self.level,
            "volume": decimal_to_float(self.volumeBasis),
            "explanation": self.explanation,
        }
