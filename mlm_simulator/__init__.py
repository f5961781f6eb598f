# mlm_simulator/__init__.py
"""
MLM plan simulator - builds synthetic genealogy trees and evaluates commissions.
"""

# Entry points
from mlm_simulator.services.simulation_service import (
    SimulationService,
    CommissionReport,
    run_simulation,
    evaluate_commissions,
)

# Services
from mlm_simulator.services.tree_builder import TreeBuilder
from mlm_simulator.services.product_assignor import ProductAssignor
from mlm_simulator.services.volume_service import VolumeService
from mlm_simulator.services.commission_service import CommissionService
from mlm_simulator.services.report_service import ReportService

# Configuration
from mlm_simulator.config.plans import PlanRule, PLAN_RULES, get_plan_rule

# Utilities
from mlm_simulator.utils.chain_walker import ChainWalker
from mlm_simulator.utils.validation import validate_simulation_config

# Errors
from mlm_simulator.exceptions import SimulationValidationError, SimulationInvariantError

__all__ = [
    # Entry points
    'SimulationService',
    'CommissionReport',
    'run_simulation',
    'evaluate_commissions',

    # Services
    'TreeBuilder',
    'ProductAssignor',
    'VolumeService',
    'CommissionService',
    'ReportService',

    # Config
    'PlanRule',
    'PLAN_RULES',
    'get_plan_rule',

    # Utils
    'ChainWalker',
    'validate_simulation_config',

    # Errors
    'SimulationValidationError',
    'SimulationInvariantError',
]
