# mlm_simulator/services/commission_service.py
"""
Commission calculation service - evaluates standard and custom rules per member.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
import logging

from models.base import ZERO
from models.commission import (
    CUSTOM_KIND,
    CommissionKind,
    CommissionResult,
    CommissionRule,
    CustomCommissionRule,
    StandardCommissionRule,
    TriggerKind,
)
from models.member import Member

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

# Level decay: unilevel pays less the deeper the member sits,
# fast start pays a premium on early levels.
UNILEVEL_DECAY = Decimal("0.1")
UNILEVEL_FLOOR = Decimal("0.1")
FAST_START_BASE = Decimal("1.5")
FAST_START_DECAY = Decimal("0.2")
FAST_START_FLOOR = Decimal("0.5")


class CommissionService:
    """
    Evaluates a commission rule set against aggregated volumes.

    Stateless: every call reads the member and rules only, so members
    can be evaluated in any order.
    """

    # ============================================================
    # PUBLIC API
    # ============================================================

    def evaluate(self, member: Member, rules: Iterable[CommissionRule]) -> List[CommissionResult]:
        """
        Evaluate every enabled rule for one member.

        Args:
            member: Member with aggregated volumes
            rules: Standard and custom rules, in the order to report them

        Returns:
            Positive-amount results only
        """
        results = []

        for rule in rules:
            if not rule.enabled:
                continue

            if isinstance(rule, StandardCommissionRule):
                result = self._evaluateStandard(member, rule)
            elif isinstance(rule, CustomCommissionRule):
                result = self._evaluateCustom(member, rule)
            else:
                raise TypeError(f"Unsupported commission rule: {type(rule).__name__}")

            if result is not None and result.amount > ZERO:
                results.append(result)

        logger.debug(
            f"Member {member.id}: {len(results)} commissions, "
            f"total {self.totalCommission(results)}"
        )
        return results

    def evaluateAll(
            self,
            members: Iterable[Member],
            rules: Iterable[CommissionRule]
    ) -> Dict[str, List[CommissionResult]]:
        """
        Evaluate every non-root member.

        Returns:
            member id -> results (members with no commission map to [])
        """
        rules = list(rules)
        evaluated = {}

        for member in members:
            if member.isRoot:
                continue
            evaluated[member.id] = self.evaluate(member, rules)

        grandTotal = sum(
            (self.totalCommission(r) for r in evaluated.values()),
            ZERO
        )
        logger.info(
            f"Evaluated {len(rules)} rules for {len(evaluated)} members, "
            f"total commission {grandTotal}"
        )
        return evaluated

    @staticmethod
    def totalCommission(results: Iterable[CommissionResult]) -> Decimal:
        """Sum of result amounts."""
        return sum((r.amount for r in results), ZERO)

    @staticmethod
    def summarizeRules(rules: Iterable[CommissionRule]) -> Dict:
        """
        Overview of the enabled rule set.

        Returns:
            Dict with total_percentage, active_standard, active_custom, standard_kinds
        """
        rules = list(rules)
        activeStandard = [r for r in rules if isinstance(r, StandardCommissionRule) and r.enabled]
        activeCustom = [r for r in rules if isinstance(r, CustomCommissionRule) and r.enabled]

        totalPercentage = sum((r.percentage for r in activeStandard), ZERO) + \
            sum((r.percentage for r in activeCustom), ZERO)

        return {
            "total_percentage": totalPercentage,
            "active_standard": len(activeStandard),
            "active_custom": len(activeCustom),
            "standard_kinds": [r.kind.value for r in activeStandard],
        }

    # ============================================================
    # STANDARD RULES
    # ============================================================

    def _evaluateStandard(
            self,
            member: Member,
            rule: StandardCommissionRule
    ) -> Optional[CommissionResult]:
        """Dispatch a standard rule to its formula."""
        if rule.kind == CommissionKind.BINARY:
            return self._calculateBinary(member, rule)
        if rule.kind == CommissionKind.SALES:
            return self._calculateSales(member, rule)
        if rule.kind == CommissionKind.REFERRAL:
            return self._calculateReferral(member, rule)
        if rule.kind == CommissionKind.UNILEVEL:
            return self._calculateLevelDecay(
                member, rule, self.unilevelMultiplier(member.level), "Unilevel"
            )
        if rule.kind == CommissionKind.FAST_START:
            return self._calculateLevelDecay(
                member, rule, self.fastStartMultiplier(member.level), "Fast start"
            )

        raise ValueError(f"Unhandled commission kind: {rule.kind}")

    def _calculateBinary(self, member: Member, rule: StandardCommissionRule) -> Optional[CommissionResult]:
        """Paid on the weaker leg."""
        weakerLeg = min(member.legVolumes.values()) if member.legVolumes else ZERO

        basis = self._applyVolumeLimits(weakerLeg, rule)
        if basis is None:
            return None

        return self._result(
            rule, member, basis,
            amount=basis * rule.percentage / HUNDRED,
            explanation=f"Binary commission from weaker leg volume of ${basis:.2f}"
        )

    def _calculateSales(self, member: Member, rule: StandardCommissionRule) -> Optional[CommissionResult]:
        """Paid on personal plus team volume."""
        basis = self._applyVolumeLimits(member.personalVolume + member.teamVolume, rule)
        if basis is None:
            return None

        return self._result(
            rule, member, basis,
            amount=basis * rule.percentage / HUNDRED,
            explanation=(
                f"Sales commission from personal (${member.personalVolume:.2f}) "
                f"and team (${member.teamVolume:.2f}) volume"
            )
        )

    def _calculateReferral(self, member: Member, rule: StandardCommissionRule) -> Optional[CommissionResult]:
        """Paid on personal volume."""
        basis = self._applyVolumeLimits(member.personalVolume, rule)
        if basis is None:
            return None

        return self._result(
            rule, member, basis,
            amount=basis * rule.percentage / HUNDRED,
            explanation=f"Referral commission from personal volume of ${basis:.2f}"
        )

    def _calculateLevelDecay(
            self,
            member: Member,
            rule: StandardCommissionRule,
            multiplier: Decimal,
            label: str
    ) -> Optional[CommissionResult]:
        """Unilevel and fast start: team volume scaled by a level multiplier."""
        if rule.maxLevel is not None and member.level > rule.maxLevel:
            return None

        basis = self._applyVolumeLimits(member.teamVolume, rule)
        if basis is None:
            return None

        return self._result(
            rule, member, basis,
            amount=basis * rule.percentage / HUNDRED * multiplier,
            explanation=(
                f"{label} commission from level {member.level} "
                f"(x{multiplier}) with team volume of ${basis:.2f}"
            )
        )

    @staticmethod
    def unilevelMultiplier(level: int) -> Decimal:
        """max(0.1, 1 - (level - 1) * 0.1)"""
        return max(UNILEVEL_FLOOR, Decimal("1") - (level - 1) * UNILEVEL_DECAY)

    @staticmethod
    def fastStartMultiplier(level: int) -> Decimal:
        """max(0.5, 1.5 - (level - 1) * 0.2)"""
        return max(FAST_START_FLOOR, FAST_START_BASE - (level - 1) * FAST_START_DECAY)

    @staticmethod
    def _applyVolumeLimits(volume: Decimal, rule: StandardCommissionRule) -> Optional[Decimal]:
        """
        Apply min/max volume.

        Returns:
            Clamped basis, or None when volume is below the minimum.
            A max_volume of 0 means no limit.
        """
        if rule.minVolume is not None and volume < rule.minVolume:
            return None
        if rule.maxVolume and volume > rule.maxVolume:
            return rule.maxVolume
        return volume

    @staticmethod
    def _result(
            rule: StandardCommissionRule,
            member: Member,
            basis: Decimal,
            amount: Decimal,
            explanation: str
    ) -> CommissionResult:
        return CommissionResult(
            ruleName=rule.name,
            kind=rule.kind.value,
            amount=amount,
            percentageUsed=rule.percentage,
            level=member.level,
            volumeBasis=basis,
            explanation=explanation,
        )

    # ============================================================
    # CUSTOM RULES
    # ============================================================

    @staticmethod
    def isTriggered(member: Member, rule: CustomCommissionRule) -> bool:
        """
        Check a custom rule's trigger.

        Volume and milestone use the same test (team volume reaches the
        trigger value); they differ only in what they pay.
        """
        if rule.triggerKind in (TriggerKind.VOLUME, TriggerKind.MILESTONE):
            return member.teamVolume >= rule.triggerValue
        if rule.triggerKind == TriggerKind.LEVEL:
            return Decimal(member.level) >= rule.triggerValue
        return False

    def _evaluateCustom(self, member: Member, rule: CustomCommissionRule) -> Optional[CommissionResult]:
        """
        Evaluate a custom rule.

        volume: team volume x percentage
        level: personal volume x percentage
        milestone: fixed trigger value x percentage
        The amount never exceeds max_volume x percentage when max_volume is set (0 = no cap).
        """
        if not self.isTriggered(member, rule):
            logger.debug(f"Custom rule '{rule.name}' not triggered for {member.id}")
            return None

        if rule.triggerKind == TriggerKind.VOLUME:
            basis = member.teamVolume
            amount = basis * rule.percentage / HUNDRED
            explanation = f"Custom volume-based commission from team volume of ${basis:.2f}"
        elif rule.triggerKind == TriggerKind.LEVEL:
            basis = member.personalVolume
            amount = basis * rule.percentage / HUNDRED
            explanation = (
                f"Custom level-based commission from level {member.level} "
                f"with personal volume of ${basis:.2f}"
            )
        else:
            basis = member.teamVolume
            amount = rule.triggerValue * rule.percentage / HUNDRED
            explanation = f"Custom milestone commission for reaching ${rule.triggerValue:.2f} team volume"

        if rule.maxVolume:
            ceiling = rule.maxVolume * rule.percentage / HUNDRED
            if amount > ceiling:
                amount = ceiling

        return CommissionResult(
            ruleName=rule.name,
            kind=CUSTOM_KIND,
            amount=amount,
            percentageUsed=rule.percentage,
            level=member.level,
            volumeBasis=basis,
            explanation=explanation,
        )
