#!/usr/bin/env python3
"""
Run an MLM plan simulation from a JSON config.

Prints the generated tree and statistics, and optionally the commissions
earned under a rule set.

Usage:
    python scripts/run_simulation.py --config plan.json [--rules rules.json]
        [--seed N] [--tree] [--max-depth DEPTH] [--json]
"""

import sys
import os
import argparse
import json

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config, ConfigurationError
from models.commission import parse_commission_rules
from models.simulation import SimulationConfig
from mlm_simulator.exceptions import SimulationValidationError
from mlm_simulator.services.simulation_service import SimulationService
from mlm_simulator.utils.chain_walker import ChainWalker

import logging

logger = logging.getLogger(__name__)


def load_json(path):
    """Read a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def format_member(member):
    """One tree line for a member, without the connector."""
    root_marker = "👑 " if member.isRoot else ""
    product_display = f"[{member.productName}]" if member.productName else ""
    position_display = f"({member.positionLabel})" if not member.isRoot else ""
    return (
        f"{root_marker}{member.id} {position_display} "
        f"{product_display} PV={member.personalVolume} TV={member.teamVolume} "
        f"C{member.joinCycle}"
    )


def print_tree(result, max_depth=None):
    """
    Print ASCII tree of the generated structure.

    Iterative, so deep matrix chains print without recursion. Depth
    defaults to CHAIN_WALK_MAX_DEPTH when --max-depth is not given.
    """
    walker = ChainWalker(result.members)
    root = result.root
    child_prefix = {root.id: ""}

    def print_member(member, depth):
        parent = walker.members[member.parentId]
        is_last = parent.childIds[-1] == member.id
        prefix = child_prefix[parent.id]
        connector = "└─ " if is_last else "├─ "

        print(f"{prefix}{connector}{format_member(member)}")
        child_prefix[member.id] = prefix + ("    " if is_last else "│   ")

    print("\n" + "=" * 80)
    print(f"{result.config.planName.upper()} STRUCTURE TREE")
    print("=" * 80)
    print("\nLegend:")
    print("  👑 = Root")
    print("  (position) = Position under parent")
    print("  [product] = Assigned product")
    print("  PV / TV = Personal / team volume")
    print("  C<n> = Payout cycle joined")
    print("\n" + "=" * 80 + "\n")
    print(format_member(root))
    shown = walker.walk_downline(root, print_member, max_depth)
    print(f"\n{shown} of {len(result.members) - 1} members shown")
    print("\n" + "=" * 80 + "\n")


def print_statistics(result):
    """Print run statistics."""
    summary = result.summary

    print("\n" + "=" * 80)
    print("SIMULATION STATISTICS")
    print("=" * 80 + "\n")

    print(f"Plan:            {result.config.planName} ({result.config.payoutCycle} cycles)")
    print(f"Total members:   {summary.totalMembersGenerated} (including root)")
    print(f"Personal volume: {summary.totalPersonalVolume}")
    print(f"Team volume:     {summary.totalTeamVolume}")
    print(f"Average TV:      {summary.averageTeamVolume:.2f}")

    print("\nMembers by cycle:")
    for cycle in sorted(summary.membersPerCycle):
        print(f"  cycle {cycle:3} {summary.membersPerCycle[cycle]:5}")

    print("\nProducts:")
    for name, stats in summary.productDistribution.items():
        print(f"  {name:20} {stats['count']:5} ({stats['percentage']:.1f}%)")

    if summary.legVolumeSummary:
        print("\nLegs:")
        for leg, stats in summary.legVolumeSummary.items():
            print(
                f"  {leg:8} members={stats['memberCount']:5} "
                f"total={stats['totalVolume']} avg={stats['averageVolume']:.2f}"
            )

    print("\nCycles:")
    for report in result.cycleReports:
        line = (
            f"  cycle {report.cycleNumber:3} members={report.membersGenerated:5} "
            f"PV={report.personalVolume} root TV={report.teamVolume}"
        )
        if report.matchedVolume or report.carryForwardLeft or report.carryForwardRight:
            line += (
                f" matched={report.matchedVolume} paid={report.payoutVolume} "
                f"flush={report.capFlush} carry L/R={report.carryForwardLeft}/{report.carryForwardRight}"
            )
        print(line)

    print("\n" + "=" * 80 + "\n")


def print_commissions(report, limit=20):
    """Print the members with the highest commission totals."""
    print("\n" + "=" * 80)
    print("COMMISSIONS")
    print("=" * 80 + "\n")

    ranked = sorted(report.totals.items(), key=lambda item: item[1], reverse=True)
    for member_id, total in ranked[:limit]:
        if total <= 0:
            break
        print(f"  {member_id:12} {total:12.2f}")
        for result in report.forMember(member_id):
            print(f"      {result.ruleName}: {result.amount:.2f} ({result.explanation})")

    print(f"\nGrand total: {report.grandTotal:.2f}")
    print("\n" + "=" * 80 + "\n")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Run an MLM plan simulation')
    parser.add_argument('--config', required=True,
                        help='Path to simulation config JSON')
    parser.add_argument('--rules',
                        help='Path to commission rules JSON')
    parser.add_argument('--seed', type=int,
                        help='Random seed for product assignment')
    parser.add_argument('--tree', action='store_true',
                        help='Print the generated tree')
    parser.add_argument('--max-depth', type=int,
                        help='Maximum tree depth to display')
    parser.add_argument('--json', action='store_true',
                        help='Print results as JSON instead of text')
    args = parser.parse_args()

    # Initialize config
    try:
        Config.initialize_from_env()
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 1

    logging.basicConfig(level=getattr(logging, Config.get(Config.LOG_LEVEL), logging.INFO))

    config = SimulationConfig.from_dict(load_json(args.config))
    if args.seed is not None:
        config.randomSeed = args.seed

    service = SimulationService()
    try:
        result = service.runSimulation(config)
    except SimulationValidationError as e:
        print("❌ Invalid simulation config:")
        for error in e.errors:
            print(f"  - {error}")
        return 1

    commissions = None
    if args.rules:
        rules = parse_commission_rules(load_json(args.rules))
        commissions = service.evaluateCommissions(result, rules)

    if args.json:
        output = {"simulation": result.to_dict()}
        if commissions is not None:
            output["commissions"] = commissions.to_dict()
        print(json.dumps(output, indent=2))
        return 0

    if args.tree:
        print_tree(result, args.max_depth)
    print_statistics(result)
    if commissions is not None:
        print_commissions(commissions)

    return 0


if __name__ == "__main__":
    sys.exit(main())
