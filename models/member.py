# models/member.py
"""
Member model - one node of the simulated genealogy tree.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from models.base import ZERO, decimal_map_to_float

ROOT_MEMBER_ID = "root_user"
ROOT_POSITION = "root"


@dataclass
class Member:
    """
    Tree node with its volumes.

    Structure (parentId, childIds, level, positionLabel, joinCycle) is set
    by the tree builder. Product and personalVolume are set by the product
    assignor. Team/leg volumes and the per-cycle maps are filled in by the
    volume service.
    """
    id: str
    level: int = 0
    parentId: Optional[str] = None
    childIds: List[str] = field(default_factory=list)
    positionLabel: str = ROOT_POSITION
    joinCycle: int = 0
    creationIndex: int = 0

    # Product assignment
    productId: Optional[int] = None
    productName: Optional[str] = None
    personalVolume: Decimal = ZERO

    # Aggregated volumes
    teamVolume: Decimal = ZERO
    legVolumes: Dict[str, Decimal] = field(default_factory=dict)

    # Cycle attribution
    personalVolumePerCycle: Dict[int, Decimal] = field(default_factory=dict)
    teamVolumePerCycle: Dict[int, Decimal] = field(default_factory=dict)
    legVolumePerCycle: Dict[str, Dict[int, Decimal]] = field(default_factory=dict)

    @property
    def isRoot(self) -> bool:
        return self.parentId is None

    @property
    def name(self) -> str:
        if self.isRoot:
            return "Root User"
        return f"User {self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "parent_id": self.parentId,
            "children": list(self.childIds),
            "position": self.positionLabel,
            "product_id": self.productId,
            "product_name": self.productName,
            "personal_volume": float(self.personalVolume),
            "team_volume": float(self.teamVolume),
            "leg_volumes": decimal_map_to_float(self.legVolumes),
            "payout_cycle": self.joinCycle,
            "personal_volume_per_cycle": decimal_map_to_float(self.personalVolumePerCycle),
            "team_volume_per_cycle": decimal_map_to_float(self.teamVolumePerCycle),
            "leg_volume_per_cycle": {
                leg: decimal_map_to_float(perCycle)
                for leg, perCycle in self.legVolumePerCycle.items()
            },
        }

    def __repr__(self):
        return (
            f"<Member(id={self.id}, level={self.level}, parent={self.parentId}, "
            f"pv={self.personalVolume}, tv={self.teamVolume})>"
        )
