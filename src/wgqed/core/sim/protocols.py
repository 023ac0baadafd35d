from __future__ import annotations

from typing import Any, Callable, List, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from wgqed.core.ir.ops import OpExpr
from wgqed.core.sim.types import TrajectoryOperators

HamiltonianFn = Callable[[float, Any], OpExpr]
TrajectoryFn = Callable[[float, Any], TrajectoryOperators]
OutputFn = Callable[[float, Any], Any]


@runtime_checkable
class IntegratorProto(Protocol):
    """
    Time-dependent ODE backend.

    Both methods call f(t, psi) at every internal evaluation and fout(t, psi)
    once per entry of tspan, in order, and return (tspan, [fout results]).
    The psi given to f is in whatever representation the integrator works
    with; the drivers' builders ignore it.
    """

    def schroedinger_dynamic(
        self,
        tspan: Sequence[float],
        psi0: Any,
        f: HamiltonianFn,
        *,
        fout: OutputFn,
        **options: Any,
    ) -> Tuple[np.ndarray, List[Any]]: ...

    def mcwf_dynamic(
        self,
        tspan: Sequence[float],
        psi0: Any,
        f: TrajectoryFn,
        *,
        fout: OutputFn,
        **options: Any,
    ) -> Tuple[np.ndarray, List[Any]]: ...
