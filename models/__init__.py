"""
Data models for the MLM plan simulator.
Import all models here for easy access.
"""

# Helpers
from models.base import ZERO, to_decimal

# Plan and product
from models.plan import PlanType, parse_plan_type
from models.product import Product

# Tree
from models.member import Member, ROOT_MEMBER_ID

# Simulation
from models.simulation import (
    SimulationConfig,
    SimulationSummary,
    CycleVolumeReport,
    SimulationResult,
)

# Commissions
from models.commission import (
    CommissionKind,
    TriggerKind,
    StandardCommissionRule,
    CustomCommissionRule,
    CommissionResult,
    parse_commission_rules,
)

__all__ = [
    # Helpers
    'ZERO',
    'to_decimal',

    # Plan and product
    'PlanType',
    'parse_plan_type',
    'Product',

    # Tree
    'Member',
    'ROOT_MEMBER_ID',

    # Simulation
    'SimulationConfig',
    'SimulationSummary',
    'CycleVolumeReport',
    'SimulationResult',

    # Commissions
    'CommissionKind',
    'TriggerKind',
    'StandardCommissionRule',
    'CustomCommissionRule',
    'CommissionResult',
    'parse_commission_rules',
]
