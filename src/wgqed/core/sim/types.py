from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple, Optional, Sequence, Tuple

from wgqed.core.ir.ops import OpExpr
from wgqed.core.types import TimeGrid


@dataclass(frozen=True)
class EvolutionProblem:
    grid: TimeGrid
    psi0: Any
    hamiltonian: OpExpr
    jump_operators: Tuple[OpExpr, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_trajectory(self) -> bool:
        return bool(self.jump_operators)


@dataclass(frozen=True)
class CapturedStep:
    """
    One output time as seen by the capture callback.

    state is None on every non-terminal step; only the terminal step keeps a
    copy of the state. observables holds the flattened observable values and
    is populated on every step.
    """

    time: float
    is_terminal: bool
    observables: Tuple[Any, ...] = ()
    state: Optional[Any] = None


class TrajectoryOperators(NamedTuple):
    """What the trajectory builder hands the MCWF integrator at time t."""

    hamiltonian: OpExpr
    jumps: Sequence[OpExpr]
    jumps_dagger: Sequence[OpExpr]
    rates: Optional[Sequence[float]] = None
