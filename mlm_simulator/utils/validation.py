# mlm_simulator/utils/validation.py
"""
Simulation config validation.
Runs before any tree is built; collects every problem instead of stopping at the first.
"""
from decimal import Decimal
from typing import List, Optional
import logging

from config import Config
from models.base import ZERO
from models.plan import PlanType
from models.simulation import SimulationConfig
from mlm_simulator.exceptions import SimulationValidationError

logger = logging.getLogger(__name__)

SALES_RATIO_TOTAL = Decimal("100")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def collect_config_errors(
        config: SimulationConfig,
        tolerance: Optional[Decimal] = None
) -> List[str]:
    """
    Check a simulation config.

    Args:
        config: Configuration to check
        tolerance: Allowed deviation of the sales ratio total from 100

    Returns:
        List of error messages (empty when valid)
    """
    if tolerance is None:
        tolerance = Decimal(str(Config.get(Config.SALES_RATIO_TOLERANCE)))

    errors = []

    # Plan type and width
    children = config.maxChildrenCount
    if not isinstance(config.planType, PlanType):
        valid = ", ".join(p.value for p in PlanType)
        errors.append(f"Invalid plan type '{config.planType}'. Must be one of: {valid}")
    elif not _is_int(children):
        errors.append(f"Max children count must be a whole number, got {children!r}")
    elif config.planType == PlanType.BINARY and children != 2:
        errors.append("Binary plan requires exactly 2 children per member")
    elif config.planType == PlanType.UNILEVEL and children < 1:
        errors.append("Unilevel plan requires at least 1 child per member")
    elif config.planType == PlanType.MATRIX and children < 1:
        errors.append("Matrix plan requires at least 1 child per member")

    # Sizes
    if not _is_int(config.maxExpectedMembers) or config.maxExpectedMembers < 1:
        errors.append("Maximum expected members must be at least 1")

    if not _is_int(config.numberOfCycles) or config.numberOfCycles < 1:
        errors.append("Number of payout cycles must be at least 1")

    if config.payoutCap is not None and config.payoutCap < ZERO:
        errors.append("Payout cap must not be negative")

    # Products
    if not config.products:
        errors.append("At least one product is required for simulation")
    else:
        for product in config.products:
            if product.price < ZERO:
                errors.append(f"Product '{product.name}' has a negative price")
            if product.businessVolume < ZERO:
                errors.append(f"Product '{product.name}' has a negative business volume")
            if product.salesRatio < ZERO:
                errors.append(f"Product '{product.name}' has a negative sales ratio")

        total_ratio = sum((p.salesRatio for p in config.products), ZERO)
        if abs(total_ratio - SALES_RATIO_TOTAL) > tolerance:
            errors.append(
                f"Product sales ratios must total 100%. Current total: {total_ratio}%"
            )

    return errors


def validate_simulation_config(
        config: SimulationConfig,
        tolerance: Optional[Decimal] = None
) -> None:
    """
    Reject an invalid config.

    Raises:
        SimulationValidationError: With every problem found
    """
    errors = collect_config_errors(config, tolerance)

    if errors:
        logger.info(f"Simulation config rejected: {len(errors)} problem(s)")
        raise SimulationValidationError(errors)

    logger.debug(
        f"Simulation config valid: plan={config.planName}, "
        f"members={config.maxExpectedMembers}, cycles={config.numberOfCycles}"
    )
