# mlm_simulator/services/simulation_service.py
"""
Simulation entry points: runSimulation and evaluateCommissions.
"""
import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from config import Config
from models.base import ZERO
from models.commission import CommissionResult, CommissionRule
from models.member import Member
from models.simulation import SimulationConfig, SimulationResult
from mlm_simulator.config.plans import get_plan_rule
from mlm_simulator.exceptions import SimulationInvariantError
from mlm_simulator.services.commission_service import CommissionService
from mlm_simulator.services.product_assignor import ProductAssignor
from mlm_simulator.services.report_service import ReportService
from mlm_simulator.services.tree_builder import TreeBuilder
from mlm_simulator.services.volume_service import VolumeService
from mlm_simulator.utils.chain_walker import ChainWalker
from mlm_simulator.utils.validation import validate_simulation_config

logger = logging.getLogger(__name__)


@dataclass
class CommissionReport:
    """Commissions earned per member, with totals."""
    results: Dict[str, List[CommissionResult]] = field(default_factory=dict)
    totals: Dict[str, Decimal] = field(default_factory=dict)
    grandTotal: Decimal = ZERO

    def forMember(self, memberId: str) -> List[CommissionResult]:
        return self.results.get(memberId, [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": {
                memberId: [r.to_dict() for r in memberResults]
                for memberId, memberResults in self.results.items()
            },
            "totals": {memberId: float(total) for memberId, total in self.totals.items()},
            "grand_total": float(self.grandTotal),
        }


class SimulationService:
    """
    Runs a full simulation: validate, build, assign, aggregate, assemble.

    A run either returns a complete SimulationResult or raises; no
    partial results are returned.
    """

    def __init__(self, rng: Optional[random.Random] = None, tolerance: Optional[Decimal] = None):
        self.rng = rng
        self.tolerance = tolerance
        self.commissionService = CommissionService()

    # ============================================================
    # PUBLIC API
    # ============================================================

    def runSimulation(self, config: SimulationConfig) -> SimulationResult:
        """
        Run one simulation.

        Args:
            config: Simulation config

        Returns:
            SimulationResult

        Raises:
            SimulationValidationError: Config rejected, nothing was built
            SimulationInvariantError: Internal defect
        """
        validate_simulation_config(config, self.tolerance)
        planRule = get_plan_rule(config.planType)

        logger.info(
            f"Running {config.planName} simulation: {config.maxExpectedMembers} members, "
            f"{config.numberOfCycles} {config.payoutCycle} cycles, {len(config.products)} products"
        )

        root, members = TreeBuilder(planRule).build(config)
        self._checkStructure(members)

        ProductAssignor(self._resolveRng(config)).assignAll(members, config.products)
        VolumeService(planRule).aggregate(root, members)

        return ReportService(planRule).assemble(config, members)

    def evaluateCommissions(
            self,
            members: Union[SimulationResult, Iterable[Member]],
            rules: Iterable[CommissionRule]
    ) -> CommissionReport:
        """
        Evaluate a rule set against an aggregated tree.

        Args:
            members: A SimulationResult or its member list
            rules: Standard and custom commission rules

        Returns:
            CommissionReport keyed by member id (root excluded)
        """
        if isinstance(members, SimulationResult):
            members = members.members

        rules = list(rules)
        summary = self.commissionService.summarizeRules(rules)
        logger.info(
            f"Evaluating commissions: {summary['active_standard']} standard and "
            f"{summary['active_custom']} custom rules active, "
            f"{summary['total_percentage']}% combined"
        )

        results = self.commissionService.evaluateAll(members, rules)
        totals = {
            memberId: self.commissionService.totalCommission(memberResults)
            for memberId, memberResults in results.items()
        }

        return CommissionReport(
            results=results,
            totals=totals,
            grandTotal=sum(totals.values(), ZERO),
        )

    # ============================================================
    # PRIVATE HELPERS
    # ============================================================

    def _resolveRng(self, config: SimulationConfig) -> random.Random:
        """Injected rng, else seeded from the config, else from Config, else unseeded."""
        if self.rng is not None:
            return self.rng

        seed = config.randomSeed
        if seed is None:
            seed = Config.get(Config.RANDOM_SEED)

        if seed is None:
            logger.debug("No random seed configured, product draws are not reproducible")
        return random.Random(seed)

    @staticmethod
    def _checkStructure(members: List[Member]) -> None:
        """
        Raises:
            SimulationInvariantError: On broken links or members cut off from the root
        """
        walker = ChainWalker(members)

        problems = walker.find_link_errors()
        orphans = walker.find_orphans()
        if orphans:
            problems.append(f"{len(orphans)} members do not reach the root")

        if problems:
            logger.error(f"Tree structure check failed: {problems[:5]}")
            raise SimulationInvariantError(f"Tree structure is inconsistent: {problems[0]}")


def run_simulation(config: Union[SimulationConfig, Dict[str, Any]], rng: Optional[random.Random] = None) -> SimulationResult:
    """Run a simulation from a SimulationConfig or its JSON dict."""
    if isinstance(config, dict):
        config = SimulationConfig.from_dict(config)
    return SimulationService(rng=rng).runSimulation(config)


def evaluate_commissions(
        members: Union[SimulationResult, Iterable[Member]],
        rules: Iterable[CommissionRule]
) -> CommissionReport:
    """Evaluate commissions with a default service."""
    return SimulationService().evaluateCommissions(members, rules)
