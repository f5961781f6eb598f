# mlm_simulator/utils/chain_walker.py
"""
Safe MLM chain walking utilities over an in-memory member tree.
Prevents infinite loops and validates chain integrity.
"""
from typing import Callable, Dict, Iterable, List, Optional, Set
import logging

from config import Config
from models.member import Member

logger = logging.getLogger(__name__)


class ChainWalker:
    """
    Safe utilities for walking downline chains.
    Iterative, so deep chains (matrix width 1) do not hit the recursion limit.
    """

    def __init__(self, members: Iterable[Member]):
        self.members: Dict[str, Member] = {m.id: m for m in members}
        self._root: Optional[Member] = None

    @property
    def root(self) -> Optional[Member]:
        """The single member without a parent."""
        if self._root is None:
            roots = [m for m in self.members.values() if m.isRoot]
            if len(roots) != 1:
                logger.error(f"Expected exactly one root, found {len(roots)}")
                return None
            self._root = roots[0]
        return self._root

    def walk_downline(
            self,
            start_member: Member,
            callback: Callable[[Member, int], None],
            max_depth: Optional[int] = None
    ) -> int:
        """
        Walk the whole downline of start_member, depth first, in child order.

        Args:
            start_member: Starting member (not passed to callback)
            callback: Function(member, depth) with depth 1 for direct children
            max_depth: Maximum depth (None = CHAIN_WALK_MAX_DEPTH, unlimited if unset)

        Returns:
            Total number of members processed
        """
        if max_depth is None:
            max_depth = Config.get(Config.CHAIN_WALK_MAX_DEPTH)
        return self._walk(start_member, callback, max_depth)

    def _walk(
            self,
            start_member: Member,
            callback: Callable[[Member, int], None],
            max_depth: Optional[int]
    ) -> int:
        visited: Set[str] = {start_member.id}
        stack = [(child_id, 1) for child_id in reversed(start_member.childIds)]
        processed = 0

        while stack:
            member_id, depth = stack.pop()

            if member_id in visited:
                logger.error(f"Cycle detected in downline at member {member_id}")
                continue
            visited.add(member_id)

            member = self.members.get(member_id)
            if member is None:
                logger.warning(f"Child {member_id} not found")
                continue

            callback(member, depth)
            processed += 1

            if max_depth is not None and depth >= max_depth:
                continue

            for child_id in reversed(member.childIds):
                stack.append((child_id, depth + 1))

        return processed

    def find_orphans(self) -> Set[str]:
        """
        Find members whose upline does not reach the root.

        Returns:
            Set of member ids in orphan branches
        """
        root = self.root
        if root is None:
            return set(self.members)

        reached = {root.id}
        # Integrity check is never depth limited
        self._walk(root, lambda m, depth: reached.add(m.id), None)
        orphans = set(self.members) - reached

        if orphans:
            logger.warning(f"Found {len(orphans)} members outside the root's tree: {sorted(orphans)[:10]}")
        return orphans

    def find_link_errors(self) -> List[str]:
        """
        Check parent/child links both ways.

        Every non-root member must appear exactly once in its parent's
        childIds, and every child id must point back to its parent.

        Returns:
            List of problems (empty when consistent)
        """
        problems = []

        for member in self.members.values():
            if member.parentId is not None:
                parent = self.members.get(member.parentId)
                if parent is None:
                    problems.append(f"{member.id}: parent {member.parentId} missing")
                elif parent.childIds.count(member.id) != 1:
                    problems.append(
                        f"{member.id}: listed {parent.childIds.count(member.id)} times under {parent.id}"
                    )

            for child_id in member.childIds:
                child = self.members.get(child_id)
                if child is None:
                    problems.append(f"{member.id}: child {child_id} missing")
                elif child.parentId != member.id:
                    problems.append(f"{member.id}: child {child_id} points to {child.parentId}")

        return problems
