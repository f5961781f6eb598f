# models/base.py
"""
Shared helpers for simulation models.
Volumes and money are Decimal; JSON output uses float.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

ZERO = Decimal("0")


def to_decimal(value: Any, fieldName: str = "value") -> Decimal:
    """
    Coerce int/float/str/Decimal to Decimal via str() to avoid float artifacts.

    Raises:
        ValueError: If value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{fieldName} must be numeric, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{fieldName} must be numeric, got {value!r}")


def to_optional_decimal(value: Any, fieldName: str = "value") -> Optional[Decimal]:
    """Same as to_decimal, but None and empty string pass through as None."""
    if value is None or value == "":
        return None
    return to_decimal(value, fieldName)


def decimal_to_float(value: Optional[Decimal]) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def decimal_map_to_float(values: Dict[Any, Decimal]) -> Dict[Any, float]:
    """Convert {key: Decimal} to {key: float}, keys sorted."""
    return {key: float(values[key]) for key in sorted(values)}


def pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data. Lets from_dict accept several spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default
