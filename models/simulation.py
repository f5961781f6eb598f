# models/simulation.py
"""
Simulation configuration and result models.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union

from models.base import (
    ZERO,
    decimal_map_to_float,
    decimal_to_float,
    pick,
    to_optional_decimal,
)
from models.member import Member
from models.product import Product
from models.plan import PlanType, parse_plan_type


@dataclass
class SimulationConfig:
    """
    One simulation run's input.

    planType stays a raw string when it names no known plan, so
    validation can report it alongside any other problems.
    """
    planType: Union[PlanType, str]
    maxExpectedMembers: int
    numberOfCycles: int
    maxChildrenCount: int
    products: List[Product] = field(default_factory=list)
    payoutCycle: str = "weekly"
    payoutCap: Optional[Decimal] = None
    randomSeed: Optional[int] = None

    def __post_init__(self):
        try:
            self.planType = parse_plan_type(self.planType)
        except ValueError:
            pass

        self.products = [
            p if isinstance(p, Product) else Product.from_dict(p)
            for p in self.products
        ]
        # Products without an id get their 1-based position
        for index, product in enumerate(self.products, start=1):
            if product.id is None:
                product.id = index

        self.payoutCap = to_optional_decimal(self.payoutCap, "payout_cap")

    @property
    def planName(self) -> str:
        if isinstance(self.planType, PlanType):
            return self.planType.value
        return str(self.planType)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        """
        Build from a JSON dict.

        Accepts both plan_type/max_expected_members/number_of_cycles and the
        genealogy_type/max_expected_users/number_of_payout_cycles spelling.
        """
        return cls(
            planType=pick(data, "plan_type", "genealogy_type", default=""),
            maxExpectedMembers=pick(data, "max_expected_members", "max_expected_users", default=0),
            numberOfCycles=pick(data, "number_of_cycles", "number_of_payout_cycles", default=0),
            maxChildrenCount=pick(data, "max_children_count", default=0),
            products=list(pick(data, "products", default=[])),
            payoutCycle=pick(data, "payout_cycle", default="weekly"),
            payoutCap=pick(data, "payout_cap"),
            randomSeed=pick(data, "random_seed"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_type": self.planName,
            "max_expected_members": self.maxExpectedMembers,
            "number_of_cycles": self.numberOfCycles,
            "max_children_count": self.maxChildrenCount,
            "payout_cycle": self.payoutCycle,
            "payout_cap": decimal_to_float(self.payoutCap),
            "random_seed": self.randomSeed,
            "products": [p.to_dict() for p in self.products],
        }


@dataclass
class SimulationSummary:
    """Run-level statistics."""
    totalMembersGenerated: int = 0
    membersPerCycle: Dict[int, int] = field(default_factory=dict)
    productDistribution: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    totalPersonalVolume: Decimal = ZERO
    totalTeamVolume: Decimal = ZERO
    averageTeamVolume: Decimal = ZERO
    legVolumeSummary: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_members_generated": self.totalMembersGenerated,
            "members_per_cycle": {k: self.membersPerCycle[k] for k in sorted(self.membersPerCycle)},
            "product_distribution": {
                name: {
                    "count": stats["count"],
                    "percentage": float(stats["percentage"]),
                }
                for name, stats in self.productDistribution.items()
            },
            "total_personal_volume": float(self.totalPersonalVolume),
            "total_team_volume": float(self.totalTeamVolume),
            "average_team_volume": float(self.averageTeamVolume),
            "leg_volume_summary": {
                leg: {
                    "total_volume": float(stats["totalVolume"]),
                    "member_count": stats["memberCount"],
                    "average_volume": float(stats["averageVolume"]),
                    "max_volume": float(stats["maxVolume"]),
                    "min_volume": float(stats["minVolume"]),
                }
                for leg, stats in self.legVolumeSummary.items()
            },
        }


@dataclass
class CycleVolumeReport:
    """
    Volume generated in one payout cycle.

    teamVolume and legVolumes are the root's view of the cycle. The
    matched/payout/carry-forward fields are only filled for binary plans.
    """
    cycleNumber: int
    membersGenerated: int = 0
    personalVolume: Decimal = ZERO
    teamVolume: Decimal = ZERO
    legVolumes: Dict[str, Decimal] = field(default_factory=dict)
    productDistribution: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    levelBreakdown: Dict[int, Dict[str, Any]] = field(default_factory=dict)

    # Binary plan matching
    matchedVolume: Decimal = ZERO
    payoutVolume: Decimal = ZERO
    capFlush: Decimal = ZERO
    carryForwardLeft: Decimal = ZERO
    carryForwardRight: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_number": self.cycleNumber,
            "members_generated": self.membersGenerated,
            "personal_volume": float(self.personalVolume),
            "team_volume": float(self.teamVolume),
            "leg_volumes": decimal_map_to_float(self.legVolumes),
            "product_distribution": {
                name: {
                    "count": stats["count"],
                    "total_volume": float(stats["totalVolume"]),
                    "percentage": float(stats["percentage"]),
                    "average_volume": float(stats["averageVolume"]),
                }
                for name, stats in self.productDistribution.items()
            },
            "level_breakdown": {
                level: {
                    "count": stats["count"],
                    "total_volume": float(stats["totalVolume"]),
                    "average_volume": float(stats["averageVolume"]),
                    "max_volume": float(stats["maxVolume"]),
                    "min_volume": float(stats["minVolume"]),
                }
                for level, stats in sorted(self.levelBreakdown.items())
            },
            "matched_volume": float(self.matchedVolume),
            "payout_volume": float(self.payoutVolume),
            "cap_flush": float(self.capFlush),
            "carry_forward_left": float(self.carryForwardLeft),
            "carry_forward_right": float(self.carryForwardRight),
        }


@dataclass(frozen=True)
class SimulationResult:
    """
    Complete output of one run. Frozen: fields cannot be reassigned.

    members are in creation order, root first, held as a tuple. The
    Member objects themselves are shared with the run and must be
    treated as read-only. structure maps every member id to its
    ordered child ids.
    """
    config: SimulationConfig
    members: Tuple[Member, ...]
    structure: Dict[str, List[str]]
    summary: SimulationSummary
    cycleReports: Tuple[CycleVolumeReport, ...] = ()
    _index: Dict[str, Member] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "members", tuple(self.members))
        object.__setattr__(self, "cycleReports", tuple(self.cycleReports))
        object.__setattr__(self, "_index", {m.id: m for m in self.members})

    @property
    def root(self) -> Member:
        return self.members[0]

    def getMember(self, memberId: str) -> Optional[Member]:
        return self._index.get(memberId)

    def nonRootMembers(self) -> List[Member]:
        return [m for m in self.members if not m.isRoot]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "members": [m.to_dict() for m in self.members],
            "structure": {k: list(v) for k, v in self.structure.items()},
            "summary": self.summary.to_dict(),
            "cycle_reports": [r.to_dict() for r in self.cycleReports],
        }
