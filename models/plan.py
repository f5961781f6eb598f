# models/plan.py
"""
Plan type enumeration.
"""
from enum import Enum


class PlanType(Enum):
    """Compensation plan structure."""
    BINARY = "binary"
    UNILEVEL = "unilevel"
    MATRIX = "matrix"


def parse_plan_type(value) -> PlanType:
    """
    Convert a string or PlanType to PlanType.

    Raises:
        ValueError: If value names no known plan type
    """
    if isinstance(value, PlanType):
        return value
    try:
        return PlanType(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in PlanType)
        raise ValueError(f"Invalid plan type '{value}'. Must be one of: {valid}")
