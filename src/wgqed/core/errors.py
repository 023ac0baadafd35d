from __future__ import annotations


class TimeGridError(ValueError):
    """Time grid cannot be used for index arithmetic."""


class UnsupportedOperatorError(TypeError):
    """Operator structure is neither a sum, a pairwise composition nor a leaf."""


class RatesContractError(ValueError):
    """Jump rates were supplied but do not match the jump operators."""


class IntegrationError(RuntimeError):
    """The ODE integrator could not advance the state."""
