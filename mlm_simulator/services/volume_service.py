# mlm_simulator/services/volume_service.py
"""
Volume aggregation service: personal, team and leg volumes, lifetime and per cycle.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List
import logging

from models.base import ZERO
from models.member import Member
from mlm_simulator.config.plans import PlanRule
from mlm_simulator.exceptions import SimulationInvariantError

logger = logging.getLogger(__name__)


class VolumeService:
    """
    Aggregates volumes over a frozen tree.

    Team volume is the sum of personal volume over all descendants at
    any depth. Computed in a single post-order pass: a member is summed
    only after all of its children are.
    """

    def __init__(self, planRule: PlanRule):
        self.planRule = planRule

    # ============================================================
    # PUBLIC API
    # ============================================================

    def aggregate(self, root: Member, members: List[Member]) -> Member:
        """
        Fill team, leg and per-cycle volumes on every member.

        Args:
            root: Tree root
            members: All members including root (any order)

        Returns:
            The annotated root
        """
        index = {m.id: m for m in members}
        order = self._postOrder(root, index)

        for member in order:
            self._aggregateMember(member, index)

        self.verifyInvariants(order)

        logger.info(
            f"Volumes aggregated for {len(order)} members: "
            f"root team volume={root.teamVolume}"
        )
        return root

    def verifyInvariants(self, members: List[Member]) -> None:
        """
        Check that per-cycle and per-leg decompositions add up to team volume.

        Raises:
            SimulationInvariantError: On the first mismatch
        """
        checkLegs = self.planRule.fixedChildren is not None

        for member in members:
            cycleTotal = sum(member.teamVolumePerCycle.values(), ZERO)
            if cycleTotal != member.teamVolume:
                logger.error(
                    f"Member {member.id}: per-cycle team volume {cycleTotal} "
                    f"!= team volume {member.teamVolume}"
                )
                raise SimulationInvariantError(
                    f"Per-cycle team volume of {member.id} does not match its team volume"
                )

            if checkLegs:
                legTotal = sum(
                    (sum(perCycle.values(), ZERO) for perCycle in member.legVolumePerCycle.values()),
                    ZERO
                )
                if legTotal != member.teamVolume:
                    logger.error(
                        f"Member {member.id}: leg volume {legTotal} "
                        f"!= team volume {member.teamVolume}"
                    )
                    raise SimulationInvariantError(
                        f"Leg volumes of {member.id} do not match its team volume"
                    )

    # ============================================================
    # PRIVATE HELPERS
    # ============================================================

    @staticmethod
    def _postOrder(root: Member, index: Dict[str, Member]) -> List[Member]:
        """
        Iterative post-order (children before parent), safe for deep trees.

        Raises:
            SimulationInvariantError: If a member is reached twice
        """
        order = []
        visited = set()
        stack = [(root, False)]

        while stack:
            member, expanded = stack.pop()

            if expanded:
                order.append(member)
                continue

            if member.id in visited:
                logger.error(f"Cycle detected in tree at member {member.id}")
                raise SimulationInvariantError(f"Member {member.id} reached twice")
            visited.add(member.id)

            stack.append((member, True))
            for childId in reversed(member.childIds):
                stack.append((index[childId], False))

        return order

    def _aggregateMember(self, member: Member, index: Dict[str, Member]) -> None:
        """Sum a member's volumes from its already-aggregated children."""
        member.personalVolumePerCycle = {}
        if not member.isRoot:
            member.personalVolumePerCycle[member.joinCycle] = member.personalVolume

        teamVolume = ZERO
        teamPerCycle: Dict[int, Decimal] = defaultdict(lambda: ZERO)
        legVolumes = {label: ZERO for label in self.planRule.legLabels()}
        legPerCycle = {label: {} for label in self.planRule.legLabels()}

        for childIndex, childId in enumerate(member.childIds):
            child = index[childId]
            subtreeVolume = child.personalVolume + child.teamVolume
            teamVolume += subtreeVolume

            contribution = self._subtreePerCycle(child)
            for cycle, volume in contribution.items():
                teamPerCycle[cycle] += volume

            legLabel = self.planRule.legLabel(childIndex)
            if legLabel is None:
                continue

            legVolumes[legLabel] = subtreeVolume
            legPerCycle[legLabel] = dict(contribution)

        member.teamVolume = teamVolume
        member.teamVolumePerCycle = dict(teamPerCycle)
        member.legVolumes = legVolumes
        member.legVolumePerCycle = legPerCycle

        logger.debug(f"Aggregated {member.id}: tv={teamVolume}, legs={legVolumes}")

    @staticmethod
    def _subtreePerCycle(child: Member) -> Dict[int, Decimal]:
        """Per-cycle volume of a child's whole subtree (its own PV plus its team)."""
        perCycle: Dict[int, Decimal] = dict(child.teamVolumePerCycle)
        perCycle[child.joinCycle] = perCycle.get(child.joinCycle, ZERO) + child.personalVolume
        return perCycle
