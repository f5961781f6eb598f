# tests/conftest.py
"""
Pytest configuration and shared fixtures for simulator tests.

Run:
    pytest tests/ -v
"""
import random
from decimal import Decimal

import pytest

from config import Config
from models import (
    Member,
    Product,
    SimulationConfig,
    PlanType,
    ROOT_MEMBER_ID,
)
from mlm_simulator.config.plans import get_plan_rule


# =============================================================================
# RANDOM SOURCES
# =============================================================================

class SequenceRandom:
    """Replays fixed random() values, cycling when exhausted."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def seeded_rng():
    """Seeded random.Random."""
    return random.Random(12345)


@pytest.fixture
def sequence_rng():
    """Factory for SequenceRandom."""
    return SequenceRandom


# =============================================================================
# CONFIG ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def clean_config():
    """Each test starts from built-in Config defaults."""
    Config.reset()
    yield
    Config.reset()


# =============================================================================
# PRODUCT FIXTURES
# =============================================================================

@pytest.fixture
def single_product():
    """One product, BV 100, ratio 100."""
    return [Product(name="Starter Pack", price=Decimal("120"), businessVolume=Decimal("100"),
                    salesRatio=Decimal("100"), id=1)]


@pytest.fixture
def three_products():
    """Three products, ratios 50/30/20."""
    return [
        Product(name="Basic", price=Decimal("50"), businessVolume=Decimal("40"),
                salesRatio=Decimal("50"), id=1),
        Product(name="Plus", price=Decimal("100"), businessVolume=Decimal("80"),
                salesRatio=Decimal("30"), id=2),
        Product(name="Premium", price=Decimal("200"), businessVolume=Decimal("150"),
                salesRatio=Decimal("20"), id=3),
    ]


# =============================================================================
# SIMULATION CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def make_config(single_product):
    """Factory for SimulationConfig with sensible defaults."""

    def _make(**overrides):
        values = dict(
            planType=PlanType.BINARY,
            maxExpectedMembers=3,
            numberOfCycles=1,
            maxChildrenCount=2,
            products=single_product,
        )
        values.update(overrides)
        return SimulationConfig(**values)

    return _make


@pytest.fixture
def binary_rule():
    return get_plan_rule(PlanType.BINARY)


@pytest.fixture
def unilevel_rule():
    return get_plan_rule(PlanType.UNILEVEL)


@pytest.fixture
def matrix_rule():
    return get_plan_rule(PlanType.MATRIX)


# =============================================================================
# HAND-BUILT TREES
# =============================================================================

@pytest.fixture
def make_tree():
    """
    Factory for a hand-built tree.

    Takes (id, parentId, personalVolume, joinCycle) tuples, parents first.
    Returns (root, members) with root first.
    """

    def _make(rows):
        root = Member(id=ROOT_MEMBER_ID)
        members = [root]
        index = {root.id: root}

        for creationIndex, (memberId, parentId, pv, cycle) in enumerate(rows, start=1):
            parent = index[parentId]
            member = Member(
                id=memberId,
                level=parent.level + 1,
                parentId=parent.id,
                positionLabel=str(len(parent.childIds) + 1),
                joinCycle=cycle,
                creationIndex=creationIndex,
                personalVolume=Decimal(str(pv)),
            )
            parent.childIds.append(member.id)
            members.append(member)
            index[member.id] = member

        return root, members

    return _make
