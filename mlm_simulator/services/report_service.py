# mlm_simulator/services/report_service.py
"""
Report service: packages the built tree and its volumes into a SimulationResult.
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from config import Config
from models.base import ZERO
from models.member import Member
from models.plan import PlanType
from models.product import Product
from models.simulation import (
    CycleVolumeReport,
    SimulationConfig,
    SimulationResult,
    SimulationSummary,
)
from mlm_simulator.config.plans import PlanRule

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _average(total: Decimal, count: int) -> Decimal:
    return total / count if count else ZERO


def _volume_stats(volumes: List[Decimal]) -> Dict:
    """count / total / average / max / min over a list of volumes."""
    total = sum(volumes, ZERO)
    return {
        "count": len(volumes),
        "totalVolume": total,
        "averageVolume": _average(total, len(volumes)),
        "maxVolume": max(volumes) if volumes else ZERO,
        "minVolume": min(volumes) if volumes else ZERO,
    }


class ReportService:
    """Builds the summary, structure map and per-cycle reports."""

    def __init__(self, planRule: PlanRule):
        self.planRule = planRule

    # ============================================================
    # PUBLIC API
    # ============================================================

    def assemble(self, config: SimulationConfig, members: List[Member]) -> SimulationResult:
        """
        Package an aggregated tree.

        Args:
            config: The validated config of the run
            members: Aggregated members, creation order, root first

        Returns:
            SimulationResult
        """
        structure = {m.id: list(m.childIds) for m in members}
        summary = self.buildSummary(members, config.products)
        cycleReports = self.buildCycleReports(config, members)

        logger.info(
            f"Simulation result assembled: {summary.totalMembersGenerated} members, "
            f"total PV={summary.totalPersonalVolume}, total TV={summary.totalTeamVolume}"
        )

        return SimulationResult(
            config=config,
            members=members,
            structure=structure,
            summary=summary,
            cycleReports=cycleReports,
        )

    def buildSummary(self, members: List[Member], products: List[Product]) -> SimulationSummary:
        """
        Run-level statistics.

        totalMembersGenerated and averageTeamVolume include the root.
        """
        membersPerCycle: Dict[int, int] = {}
        for member in members:
            if member.joinCycle > 0:
                membersPerCycle[member.joinCycle] = membersPerCycle.get(member.joinCycle, 0) + 1

        withProducts = [m for m in members if m.productId is not None]
        productDistribution = OrderedDict()
        for product in products:
            count = sum(1 for m in withProducts if m.productId == product.id)
            productDistribution[product.name] = {
                "count": count,
                "percentage": _average(Decimal(count) * HUNDRED, len(withProducts)),
            }

        totalPersonal = sum((m.personalVolume for m in members), ZERO)
        totalTeam = sum((m.teamVolume for m in members), ZERO)

        return SimulationSummary(
            totalMembersGenerated=len(members),
            membersPerCycle=membersPerCycle,
            productDistribution=dict(productDistribution),
            totalPersonalVolume=totalPersonal,
            totalTeamVolume=totalTeam,
            averageTeamVolume=_average(totalTeam, len(members)),
            legVolumeSummary=self.buildLegSummary(members),
        )

    def buildLegSummary(self, members: List[Member]) -> Dict[str, Dict]:
        """
        Per tracked leg: stats over members whose leg is populated.
        """
        summary = OrderedDict()

        for legIndex, label in enumerate(self.planRule.legLabels()):
            volumes = [
                m.legVolumes.get(label, ZERO)
                for m in members
                if len(m.childIds) > legIndex
            ]
            stats = _volume_stats(volumes)
            summary[label] = {
                "totalVolume": stats["totalVolume"],
                "memberCount": stats["count"],
                "averageVolume": stats["averageVolume"],
                "maxVolume": stats["maxVolume"],
                "minVolume": stats["minVolume"],
            }

            if stats["count"]:
                logger.debug(
                    f"Leg {label}: {stats['count']} members, total volume {stats['totalVolume']}"
                )

        return dict(summary)

    def buildCycleReports(self, config: SimulationConfig, members: List[Member]) -> List[CycleVolumeReport]:
        """
        One report per configured cycle, in order.

        Binary plans also match left against right volume each cycle,
        carrying the unmatched remainder into the next cycle.
        """
        root = members[0]
        payoutCap = self._payoutCap(config)
        isBinary = config.planType == PlanType.BINARY

        carryLeft = ZERO
        carryRight = ZERO
        reports = []

        for cycle in range(1, config.numberOfCycles + 1):
            cycleMembers = [m for m in members if m.joinCycle == cycle]

            report = CycleVolumeReport(
                cycleNumber=cycle,
                membersGenerated=len(cycleMembers),
                personalVolume=sum((m.personalVolume for m in cycleMembers), ZERO),
                teamVolume=root.teamVolumePerCycle.get(cycle, ZERO),
                legVolumes={
                    label: root.legVolumePerCycle.get(label, {}).get(cycle, ZERO)
                    for label in self.planRule.legLabels()
                },
                productDistribution=self._cycleProductDistribution(cycleMembers, config.products),
                levelBreakdown=self._cycleLevelBreakdown(cycleMembers),
            )

            if isBinary:
                totalLeft = report.legVolumes.get("left", ZERO) + carryLeft
                totalRight = report.legVolumes.get("right", ZERO) + carryRight
                matched = min(totalLeft, totalRight)

                report.matchedVolume = matched
                report.payoutVolume = matched
                if payoutCap is not None and payoutCap > ZERO and matched > payoutCap:
                    report.payoutVolume = payoutCap
                    report.capFlush = matched - payoutCap

                carryLeft = totalLeft - matched
                carryRight = totalRight - matched
                report.carryForwardLeft = carryLeft
                report.carryForwardRight = carryRight

            reports.append(report)

            logger.debug(
                f"Cycle {cycle}: {report.membersGenerated} members, "
                f"PV={report.personalVolume}, TV={report.teamVolume}"
            )

        return reports

    # ============================================================
    # PRIVATE HELPERS
    # ============================================================

    @staticmethod
    def _payoutCap(config: SimulationConfig) -> Optional[Decimal]:
        if config.payoutCap is not None:
            return config.payoutCap
        configured = Config.get(Config.DEFAULT_PAYOUT_CAP)
        return Decimal(str(configured)) if configured is not None else None

    @staticmethod
    def _cycleProductDistribution(cycleMembers: List[Member], products: List[Product]) -> Dict[str, Dict]:
        distribution = OrderedDict()

        for product in products:
            volumes = [m.personalVolume for m in cycleMembers if m.productId == product.id]
            total = sum(volumes, ZERO)
            distribution[product.name] = {
                "count": len(volumes),
                "totalVolume": total,
                "percentage": _average(Decimal(len(volumes)) * HUNDRED, len(cycleMembers)),
                "averageVolume": _average(total, len(volumes)),
            }

        return dict(distribution)

    @staticmethod
    def _cycleLevelBreakdown(cycleMembers: List[Member]) -> Dict[int, Dict]:
        byLevel: Dict[int, List[Decimal]] = {}
        for member in cycleMembers:
            byLevel.setdefault(member.level, []).append(member.personalVolume)

        return {level: _volume_stats(volumes) for level, volumes in sorted(byLevel.items())}
