# tests/test_volume_service.py
"""
Tests for VolumeService: team, leg and per-cycle aggregation.

Tree used by most tests (binary legs, pv/cycle in brackets):

    root
    ├─ a [100/c1]
    │   ├─ c [30/c2]
    │   │   └─ e [10/c3]
    │   └─ d [20/c3]
    └─ b [50/c1]

Run:
    pytest tests/test_volume_service.py -v
"""
from decimal import Decimal

import pytest

from models import ROOT_MEMBER_ID
from mlm_simulator.exceptions import SimulationInvariantError
from mlm_simulator.services.volume_service import VolumeService


@pytest.fixture
def sample_tree(make_tree):
    return make_tree([
        ("a", ROOT_MEMBER_ID, 100, 1),
        ("b", ROOT_MEMBER_ID, 50, 1),
        ("c", "a", 30, 2),
        ("d", "a", 20, 3),
        ("e", "c", 10, 3),
    ])


@pytest.fixture
def aggregated(sample_tree, binary_rule):
    root, members = sample_tree
    VolumeService(binary_rule).aggregate(root, members)
    return {m.id: m for m in members}


# =============================================================================
# TEST CLASS: team volume
# =============================================================================

class TestTeamVolume:
    """Team volume covers all descendants, not just direct children."""

    def test_root_team_volume(self, aggregated):
        """TEST: root sums every member below it."""
        assert aggregated[ROOT_MEMBER_ID].teamVolume == Decimal("210")

    def test_inner_member_includes_grandchildren(self, aggregated):
        """TEST: a counts c, d and grandchild e."""
        assert aggregated["a"].teamVolume == Decimal("60")

    def test_leaf_has_zero_team_volume(self, aggregated):
        """TEST: leaves have no team."""
        assert aggregated["e"].teamVolume == Decimal("0")
        assert aggregated["b"].teamVolume == Decimal("0")

    def test_root_personal_volume_not_counted(self, aggregated):
        """TEST: root has no personal volume and no personal cycle entry."""
        root = aggregated[ROOT_MEMBER_ID]
        assert root.personalVolume == Decimal("0")
        assert root.personalVolumePerCycle == {}


# =============================================================================
# TEST CLASS: legs
# =============================================================================

class TestLegVolumes:
    """Per-leg split of team volume."""

    def test_binary_legs_of_root(self, aggregated):
        """TEST: left leg is a's whole subtree, right leg is b."""
        root = aggregated[ROOT_MEMBER_ID]
        assert root.legVolumes == {"left": Decimal("160"), "right": Decimal("50")}

    def test_missing_leg_is_zero(self, aggregated):
        """TEST: c has only a left child."""
        assert aggregated["c"].legVolumes == {"left": Decimal("10"), "right": Decimal("0")}

    def test_leg_per_cycle(self, aggregated):
        """TEST: root's left leg per cycle: a in c1, c in c2, d and e in c3."""
        root = aggregated[ROOT_MEMBER_ID]
        assert root.legVolumePerCycle["left"] == {1: Decimal("100"), 2: Decimal("30"), 3: Decimal("30")}
        assert root.legVolumePerCycle["right"] == {1: Decimal("50")}

    def test_legs_sum_to_team_volume(self, aggregated):
        """TEST: for binary members, leg volumes add up to team volume."""
        for member in aggregated.values():
            assert sum(member.legVolumes.values(), Decimal("0")) == member.teamVolume

    def test_untracked_legs_still_count(self, make_tree, unilevel_rule):
        """
        TEST: a sixth unilevel child is beyond the tracked legs.

        Verify: team volume includes it, leg map holds only leg-1..leg-5.
        """
        root, members = make_tree([(f"u{i}", ROOT_MEMBER_ID, 10, 1) for i in range(1, 7)])
        VolumeService(unilevel_rule).aggregate(root, members)

        assert root.teamVolume == Decimal("60")
        assert sorted(root.legVolumes) == ["leg-1", "leg-2", "leg-3", "leg-4", "leg-5"]
        assert sum(root.legVolumes.values(), Decimal("0")) == Decimal("50")


# =============================================================================
# TEST CLASS: per-cycle
# =============================================================================

class TestPerCycle:
    """Cycle attribution."""

    def test_personal_volume_keyed_by_join_cycle(self, aggregated):
        """TEST: personal volume is never split across cycles."""
        assert aggregated["d"].personalVolumePerCycle == {3: Decimal("20")}

    def test_root_team_volume_per_cycle(self, aggregated):
        """TEST: c1=a+b, c2=c, c3=d+e."""
        root = aggregated[ROOT_MEMBER_ID]
        assert root.teamVolumePerCycle == {1: Decimal("150"), 2: Decimal("30"), 3: Decimal("30")}

    def test_cycles_sum_to_team_volume(self, aggregated):
        """TEST: per-cycle team volume sums to lifetime team volume for every member."""
        for member in aggregated.values():
            assert sum(member.teamVolumePerCycle.values(), Decimal("0")) == member.teamVolume


# =============================================================================
# TEST CLASS: invariants and depth
# =============================================================================

class TestInvariants:
    """Invariant checks and deep trees."""

    def test_broken_cycle_sum_raises(self, aggregated, binary_rule):
        """TEST: a tampered team volume is reported as a defect."""
        member = aggregated["a"]
        member.teamVolume = Decimal("999")

        with pytest.raises(SimulationInvariantError):
            VolumeService(binary_rule).verifyInvariants([member])

    def test_deep_chain_does_not_recurse(self, make_tree, matrix_rule):
        """TEST: a 5000-deep chain aggregates without hitting the recursion limit."""
        rows = [("m1", ROOT_MEMBER_ID, 1, 1)]
        rows += [(f"m{i}", f"m{i - 1}", 1, 1) for i in range(2, 5001)]
        root, members = make_tree(rows)

        VolumeService(matrix_rule).aggregate(root, members)

        assert root.teamVolume == Decimal("5000")
        assert members[1].teamVolume == Decimal("4999")
