# mlm_simulator/config/plans.py
"""
Plan rule table: structural constants per compensation plan type.
Passed into the tree builder; nothing here is mutated at runtime.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
import logging

from models.plan import PlanType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanRule:
    """
    Structural rules for one plan type.

    fixedChildren: exact width required by the plan (binary), or None
    unboundedWidth: every member attaches to the root (flat unilevel)
    childPositions: named positions; empty means 1-based numeric labels
    trackedLegs: number of legs reported per member
    """
    planType: PlanType
    description: str
    childPositions: Tuple[str, ...] = ()
    fixedChildren: Optional[int] = None
    unboundedWidth: bool = False
    trackedLegs: int = 0

    def maxChildren(self, configuredChildren: int) -> Optional[int]:
        """
        Effective max children per member.

        Returns:
            Child limit, or None when width is unbounded
        """
        if self.unboundedWidth:
            return None
        if self.fixedChildren is not None:
            return self.fixedChildren
        return configuredChildren

    def positionLabel(self, childIndex: int) -> str:
        """Label for the child at 0-based childIndex."""
        if self.childPositions:
            if childIndex < len(self.childPositions):
                return self.childPositions[childIndex]
            return self.childPositions[-1]
        return str(childIndex + 1)

    def legLabel(self, childIndex: int) -> Optional[str]:
        """
        Leg label for the subtree rooted at the child at childIndex.

        Returns:
            Label, or None when the leg is beyond the tracked legs
        """
        if childIndex >= self.trackedLegs:
            return None
        if self.childPositions:
            return self.childPositions[childIndex]
        return f"leg-{childIndex + 1}"

    def legLabels(self) -> Tuple[str, ...]:
        """All tracked leg labels, in child order."""
        return tuple(self.legLabel(i) for i in range(self.trackedLegs))


PLAN_RULES: Dict[PlanType, PlanRule] = {
    PlanType.BINARY: PlanRule(
        planType=PlanType.BINARY,
        description="Two legs per member, filled left to right",
        childPositions=("left", "right"),
        fixedChildren=2,
        trackedLegs=2,
    ),
    PlanType.UNILEVEL: PlanRule(
        planType=PlanType.UNILEVEL,
        description="Single level of unlimited width under the root",
        unboundedWidth=True,
        trackedLegs=5,
    ),
    PlanType.MATRIX: PlanRule(
        planType=PlanType.MATRIX,
        description="Fixed width per member, filled level by level",
        trackedLegs=5,
    ),
}


def get_plan_rule(planType: PlanType) -> PlanRule:
    """
    Get rules for a plan type.

    Args:
        planType: PlanType enum member

    Returns:
        PlanRule for that type

    Raises:
        ValueError: If plan type has no rules
    """
    try:
        return PLAN_RULES[planType]
    except KeyError:
        logger.error(f"No plan rules defined for '{planType}'")
        raise ValueError(f"Unknown plan type: {planType}")
