# mlm_simulator/services/tree_builder.py
"""
Genealogy tree builder - grows the member tree cycle by cycle.
"""
import math
from typing import List, Optional, Tuple
import logging

from models.member import Member, ROOT_MEMBER_ID, ROOT_POSITION
from models.simulation import SimulationConfig
from mlm_simulator.config.plans import PlanRule
from mlm_simulator.exceptions import SimulationInvariantError

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Places synthetic members into a plan-shaped tree.

    Placement is sequential: each member goes under the first member, in
    creation order, that still has a free position.
    """

    def __init__(self, planRule: PlanRule):
        self.planRule = planRule

    # ============================================================
    # PUBLIC API
    # ============================================================

    def build(self, config: SimulationConfig) -> Tuple[Member, List[Member]]:
        """
        Build the tree for a validated config.

        Args:
            config: Simulation config (already validated)

        Returns:
            (root, members) with members in creation order, root first
        """
        maxChildren = self.planRule.maxChildren(config.maxChildrenCount)
        quotas = self.cycleQuotas(config.maxExpectedMembers, config.numberOfCycles)

        if sum(quotas) > config.maxExpectedMembers:
            logger.error(f"Cycle quotas {quotas} exceed {config.maxExpectedMembers} members")
            raise SimulationInvariantError(
                f"Cycle quotas total {sum(quotas)}, above maximum {config.maxExpectedMembers}"
            )

        root = Member(id=ROOT_MEMBER_ID, level=0, positionLabel=ROOT_POSITION, creationIndex=0)
        members = [root]
        openCursor = 0
        nextUserNumber = 1

        logger.info(
            f"Building {config.planName} tree: {sum(quotas)} members over "
            f"{len(quotas)} cycles ({self.planRule.description}), "
            f"max children={maxChildren if maxChildren is not None else 'unbounded'}"
        )

        for cycle, quota in enumerate(quotas, start=1):
            for _ in range(quota):
                parent, openCursor, isFallback = self._findParent(members, maxChildren, openCursor)

                member = self._attach(
                    parent,
                    memberId=f"user_{nextUserNumber}",
                    cycle=cycle,
                    creationIndex=len(members)
                )
                members.append(member)
                nextUserNumber += 1

                if not isFallback and maxChildren is not None and len(parent.childIds) > maxChildren:
                    logger.error(f"Member {parent.id} has {len(parent.childIds)} children, limit {maxChildren}")
                    raise SimulationInvariantError(
                        f"Member {parent.id} exceeds {maxChildren} children"
                    )

            logger.debug(f"Cycle {cycle}: placed {quota} members, tree size {len(members)}")

        logger.info(f"Tree built: {len(members) - 1} members below root")
        return root, members

    @staticmethod
    def cycleQuotas(maxExpectedMembers: int, numberOfCycles: int) -> List[int]:
        """
        Members to place in each cycle.

        Every cycle gets ceil(max / cycles); the tail is trimmed so the
        total never exceeds max. Late cycles may get 0.

        Example:
            cycleQuotas(10, 3) -> [4, 4, 2]
            cycleQuotas(2, 3) -> [1, 1, 0]
        """
        perCycle = math.ceil(maxExpectedMembers / numberOfCycles)
        remaining = maxExpectedMembers
        quotas = []

        for _ in range(numberOfCycles):
            quota = min(perCycle, remaining)
            quotas.append(quota)
            remaining -= quota

        return quotas

    # ============================================================
    # PRIVATE HELPERS
    # ============================================================

    def _findParent(
            self,
            members: List[Member],
            maxChildren: Optional[int],
            openCursor: int
    ) -> Tuple[Member, int, bool]:
        """
        Pick the parent for the next member.

        A member that filled up never reopens, so the scan resumes from
        openCursor instead of the start of the list.

        Returns:
            (parent, new cursor, used fallback)
        """
        while openCursor < len(members) and not self._hasCapacity(members[openCursor], maxChildren):
            openCursor += 1

        if openCursor < len(members):
            return members[openCursor], openCursor, False

        # Unreachable for validated configs: the newest member always has room
        parent = min(members, key=lambda m: (m.level, m.creationIndex))
        logger.warning(
            f"No open position among {len(members)} members, "
            f"widening under {parent.id} (level {parent.level})"
        )
        return parent, openCursor, True

    @staticmethod
    def _hasCapacity(member: Member, maxChildren: Optional[int]) -> bool:
        return maxChildren is None or len(member.childIds) < maxChildren

    def _attach(self, parent: Member, memberId: str, cycle: int, creationIndex: int) -> Member:
        """Create a member as parent's next child."""
        member = Member(
            id=memberId,
            level=parent.level + 1,
            parentId=parent.id,
            positionLabel=self.planRule.positionLabel(len(parent.childIds)),
            joinCycle=cycle,
            creationIndex=creationIndex,
        )
        parent.childIds.append(member.id)

        logger.debug(
            f"Placed {member.id} under {parent.id} at {member.positionLabel} "
            f"(level {member.level}, cycle {cycle})"
        )
        return member
