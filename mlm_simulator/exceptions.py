# mlm_simulator/exceptions.py
"""
Simulation error types.
"""
from typing import List


class SimulationValidationError(ValueError):
    """
    Configuration rejected before any tree is built.

    Carries every problem found so callers can show them all at once.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class SimulationInvariantError(RuntimeError):
    """Internal defect: a tree or volume invariant was broken after validation passed."""
    pass
