# tests/test_commission_service.py
"""
Tests for CommissionService: standard formulas, custom triggers, limits.

Run:
    pytest tests/test_commission_service.py -v
"""
from decimal import Decimal

import pytest

from models import (
    CommissionKind,
    CustomCommissionRule,
    Member,
    StandardCommissionRule,
    TriggerKind,
    ROOT_MEMBER_ID,
    parse_commission_rules,
)
from mlm_simulator.services.commission_service import CommissionService


@pytest.fixture
def service():
    return CommissionService()


@pytest.fixture
def make_member():
    """Factory for an aggregated member."""

    def _make(level=1, pv=100, tv=0, legs=None):
        return Member(
            id="user_1",
            level=level,
            parentId=ROOT_MEMBER_ID,
            personalVolume=Decimal(str(pv)),
            teamVolume=Decimal(str(tv)),
            legVolumes={k: Decimal(str(v)) for k, v in (legs or {}).items()},
        )

    return _make


def standard(kind, percentage, **kwargs):
    return StandardCommissionRule(kind=kind, percentage=percentage, **kwargs)


def custom(triggerKind, triggerValue, percentage, **kwargs):
    return CustomCommissionRule(
        name=f"{triggerKind} bonus",
        percentage=percentage,
        triggerKind=triggerKind,
        triggerValue=triggerValue,
        **kwargs
    )


# =============================================================================
# TEST CLASS: standard formulas
# =============================================================================

class TestStandardCommissions:
    """Basis and amount for each standard kind."""

    def test_binary_pays_weaker_leg(self, service, make_member):
        """TEST: 10% of min(300, 200) = 20."""
        member = make_member(tv=500, legs={"left": 300, "right": 200})
        results = service.evaluate(member, [standard("binary", 10)])

        assert len(results) == 1
        assert results[0].amount == Decimal("20")
        assert results[0].volumeBasis == Decimal("200")
        assert results[0].kind == "binary"

    def test_binary_below_min_volume(self, service, make_member):
        """TEST: weaker leg under min_volume pays nothing."""
        member = make_member(tv=500, legs={"left": 300, "right": 200})
        assert service.evaluate(member, [standard("binary", 10, minVolume=250)]) == []

    def test_binary_clamped_to_max_volume(self, service, make_member):
        """TEST: basis clamped to max_volume before applying percentage."""
        member = make_member(tv=500, legs={"left": 300, "right": 200})
        results = service.evaluate(member, [standard("binary", 10, maxVolume=150)])

        assert results[0].amount == Decimal("15")

    def test_zero_max_volume_means_no_limit(self, service, make_member):
        """TEST: max_volume 0 leaves the basis unclamped: 10% of 100 = 10."""
        results = service.evaluate(make_member(pv=100), [standard("referral", 10, maxVolume=0)])
        assert results[0].amount == Decimal("10")

    def test_binary_zero_max_volume_unclamped(self, service, make_member):
        """TEST: weaker leg 200 is paid in full when max_volume is 0."""
        member = make_member(tv=500, legs={"left": 300, "right": 200})
        results = service.evaluate(member, [standard("binary", 10, maxVolume=0)])

        assert results[0].amount == Decimal("20")

    def test_sales_uses_personal_plus_team(self, service, make_member):
        """TEST: 5% of (100 + 400) = 25."""
        results = service.evaluate(make_member(pv=100, tv=400), [standard("sales", 5)])
        assert results[0].amount == Decimal("25")

    def test_referral_uses_personal(self, service, make_member):
        """TEST: 10% of personal volume 100 = 10."""
        results = service.evaluate(make_member(pv=100, tv=5000), [standard("referral", 10)])
        assert results[0].amount == Decimal("10")

    def test_unilevel_level_decay(self, service, make_member):
        """
        TEST: level 2, team volume 1000, 10%, max level 5.

        Verify: multiplier 0.9, amount 1000 * 10 / 100 * 0.9 = 90.
        """
        member = make_member(level=2, tv=1000)
        results = service.evaluate(member, [standard("unilevel", 10, maxLevel=5)])

        assert results[0].amount == Decimal("90")

    def test_unilevel_beyond_max_level(self, service, make_member):
        """TEST: level above max_level pays nothing."""
        member = make_member(level=6, tv=1000)
        assert service.evaluate(member, [standard("unilevel", 10, maxLevel=5)]) == []

    def test_fast_start_rewards_early_levels(self, service, make_member):
        """TEST: level 1 gets the 1.5 premium: 1000 * 10% * 1.5 = 150."""
        results = service.evaluate(make_member(level=1, tv=1000), [standard("fast_start", 10)])
        assert results[0].amount == Decimal("150")

    @pytest.mark.parametrize("level,expected", [
        (1, Decimal("1")),
        (2, Decimal("0.9")),
        (10, Decimal("0.1")),
        (25, Decimal("0.1")),
    ])
    def test_unilevel_multiplier(self, level, expected):
        """TEST: max(0.1, 1 - (level - 1) * 0.1)."""
        assert CommissionService.unilevelMultiplier(level) == expected

    @pytest.mark.parametrize("level,expected", [
        (1, Decimal("1.5")),
        (3, Decimal("1.1")),
        (6, Decimal("0.5")),
        (12, Decimal("0.5")),
    ])
    def test_fast_start_multiplier(self, level, expected):
        """TEST: max(0.5, 1.5 - (level - 1) * 0.2)."""
        assert CommissionService.fastStartMultiplier(level) == expected


# =============================================================================
# TEST CLASS: custom rules
# =============================================================================

class TestCustomCommissions:
    """Trigger checks and payouts for custom rules."""

    def test_volume_trigger_not_reached(self, service, make_member):
        """TEST: team volume 400 below trigger 500 emits nothing."""
        member = make_member(tv=400)
        assert service.evaluate(member, [custom("volume", 500, 10)]) == []

    def test_volume_trigger_pays_on_team_volume(self, service, make_member):
        """TEST: 5% of team volume 600 = 30."""
        results = service.evaluate(make_member(tv=600), [custom("volume", 500, 5)])

        assert results[0].amount == Decimal("30")
        assert results[0].kind == "custom"

    def test_level_trigger_pays_on_personal_volume(self, service, make_member):
        """TEST: level 3 >= 2 fires, 10% of personal volume 100."""
        results = service.evaluate(make_member(level=3, pv=100, tv=900), [custom("level", 2, 10)])
        assert results[0].amount == Decimal("10")

    def test_milestone_pays_fixed_trigger_value(self, service, make_member):
        """TEST: milestone pays 10% of the trigger value, not of team volume."""
        results = service.evaluate(make_member(tv=1000), [custom("milestone", 500, 10)])

        assert results[0].amount == Decimal("50")
        assert results[0].volumeBasis == Decimal("1000")

    def test_milestone_and_volume_share_trigger(self, make_member):
        """TEST: both trigger kinds fire at the same team volume."""
        member = make_member(tv=500)
        assert CommissionService.isTriggered(member, custom("volume", 500, 1))
        assert CommissionService.isTriggered(member, custom("milestone", 500, 1))

    def test_custom_capped_by_max_volume(self, service, make_member):
        """TEST: amount never exceeds max_volume * percentage / 100."""
        results = service.evaluate(
            make_member(tv=1000), [custom("volume", 100, 10, maxVolume=300)]
        )
        assert results[0].amount == Decimal("30")

    def test_custom_zero_max_volume_uncapped(self, service, make_member):
        """TEST: max_volume 0 applies no ceiling: 10% of team volume 1000 = 100."""
        results = service.evaluate(
            make_member(tv=1000), [custom("volume", 100, 10, maxVolume=0)]
        )
        assert results[0].amount == Decimal("100")

    def test_unknown_trigger_kind_rejected(self):
        """TEST: unknown trigger kinds fail at construction."""
        with pytest.raises(ValueError):
            custom("weekly", 100, 10)


# =============================================================================
# TEST CLASS: rule sets
# =============================================================================

class TestRuleSets:
    """Filtering, ordering and totals."""

    def test_disabled_rule_skipped(self, service, make_member):
        """TEST: enabled=False produces no result."""
        rule = standard("referral", 10, enabled=False)
        assert service.evaluate(make_member(), [rule]) == []

    def test_zero_amount_omitted(self, service, make_member):
        """TEST: a 0% rule would pay zero, so it is not emitted."""
        assert service.evaluate(make_member(), [standard("referral", 0)]) == []

    def test_results_follow_rule_order(self, service, make_member):
        """TEST: results come back in rule order."""
        member = make_member(pv=100, tv=400)
        results = service.evaluate(member, [standard("sales", 5), standard("referral", 10)])

        assert [r.kind for r in results] == ["sales", "referral"]
        assert service.totalCommission(results) == Decimal("35")

    def test_evaluate_all_skips_root(self, service, make_member):
        """TEST: root is never evaluated."""
        root = Member(id=ROOT_MEMBER_ID, teamVolume=Decimal("1000"))
        evaluated = service.evaluateAll([root, make_member(pv=100)], [standard("referral", 10)])

        assert list(evaluated) == ["user_1"]

    def test_summarize_rules(self):
        """TEST: summary counts enabled rules only."""
        rules = [
            standard("binary", 10),
            standard("sales", 5, enabled=False),
            custom("volume", 500, 2),
        ]
        summary = CommissionService.summarizeRules(rules)

        assert summary["total_percentage"] == Decimal("12")
        assert summary["active_standard"] == 1
        assert summary["active_custom"] == 1
        assert summary["standard_kinds"] == ["binary"]

    def test_parse_rules_from_dict(self):
        """TEST: JSON rule sets accept both key spellings."""
        rules = parse_commission_rules({
            "standard_commissions": [{"type": "fast_start", "percentage": 5, "is_enabled": True}],
            "custom_commissions": [
                {"name": "Bonus", "percentage": 3, "trigger_type": "milestone", "trigger_value": 1000}
            ],
        })

        assert rules[0].kind == CommissionKind.FAST_START
        assert rules[0].name == "Fast Start Commission"
        assert rules[1].triggerKind == TriggerKind.MILESTONE
        assert rules[1].triggerValue == Decimal("1000")

    def test_negative_percentage_rejected(self):
        """TEST: negative percentages fail at construction."""
        with pytest.raises(ValueError):
            standard("sales", -1)
