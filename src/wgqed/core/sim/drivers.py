"""
Deterministic and quantum-jump evolution drivers.

Both drivers locate the time-indexed operators of their inputs once, then
hand the integrator a builder callback that pushes the grid index of the
requested time into those operators before returning the (same) operator
structure. Operators are mutated in place, so an operator set must not be
shared between evolution calls running at the same time.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from wgqed.core.errors import UnsupportedOperatorError
from wgqed.core.ir.ops import OpExpr
from wgqed.core.sim.capture import ObservableFn, assemble_output, make_capture
from wgqed.core.sim.locate import locate_indexed_operators
from wgqed.core.sim.protocols import IntegratorProto
from wgqed.core.sim.timeindex import TimeIndexSynchronizer
from wgqed.core.sim.types import TrajectoryOperators
from wgqed.core.types import TimeGrid

logger = logging.getLogger(__name__)


def _default_integrator() -> IntegratorProto:
    # Late import to keep core independent of the SciPy backend
    from wgqed.adapters.scipy.adapter import ScipyAdapter

    return ScipyAdapter()


def evolve(
    times: Any,
    psi0: Any,
    hamiltonian: OpExpr,
    fout: Optional[ObservableFn] = None,
    *,
    integrator: Optional[IntegratorProto] = None,
    **integrator_options: Any,
) -> Any:
    """
    Integrate the time-dependent Schroedinger equation on a waveguide grid.

    Parameters
    ----------
    times:
        Uniform output grid (sequence or TimeGrid). dt is times[1] - times[0].
    psi0:
        Initial ket.
    hamiltonian:
        OpExpr containing waveguide operators inside sums and/or pairwise
        tensor/operator products.
    fout:
        Optional fout(t, psi) evaluated at every time in `times`, with psi a
        ket of the (unnormalized) state at t. It is passed on without a
        defensive copy and an integrator may build it over its working
        buffer, so fout must neither modify it nor keep a reference to it.

    Returns
    -------
    The state at times[-1] if fout is None, otherwise
    (state, series_1, ..., series_k) where series_j lists the j-th value
    returned by fout at each time (a tuple returned by fout is flattened).
    """
    grid = TimeGrid.from_sequence(times)
    ops = locate_indexed_operators(hamiltonian)
    sync = TimeIndexSynchronizer.for_grid(grid)
    logger.info(
        "Schroedinger evolution: %s steps, dt=%s, %s time-indexed operators",
        len(grid),
        grid.dt,
        len(ops),
    )

    def get_hamiltonian(t: float, psi: Any) -> OpExpr:
        sync.sync(ops, t)
        return hamiltonian

    integrator = integrator or _default_integrator()
    _, steps = integrator.schroedinger_dynamic(
        grid.times,
        psi0,
        get_hamiltonian,
        fout=make_capture(grid.tend, fout),
        **integrator_options,
    )
    logger.info("Schroedinger evolution finished at t=%s", grid.tend)
    return assemble_output(steps, with_observables=fout is not None)


def evolve_trajectory(
    times: Any,
    psi0: Any,
    hamiltonian: OpExpr,
    jump_operators: Sequence[OpExpr],
    fout: Optional[ObservableFn] = None,
    *,
    integrator: Optional[IntegratorProto] = None,
    **integrator_options: Any,
) -> Any:
    """
    Integrate a single quantum-jump (MCWF) trajectory on a waveguide grid.

    Same grid, fout and return conventions as evolve(); the state handed to
    fout is normalized. Jump operators and their adjoints are synchronized at
    max(ceil(t / dt), 1), one bin behind the Hamiltonian. Extra keyword
    options (seed, rtol, ...) go to the integrator untouched.
    """
    grid = TimeGrid.from_sequence(times)
    if isinstance(jump_operators, OpExpr):
        raise UnsupportedOperatorError(
            "jump_operators must be a sequence of OpExpr, got a single OpExpr"
        )
    jumps = tuple(jump_operators)
    ops = locate_indexed_operators(hamiltonian)
    jops = locate_indexed_operators(jumps)
    jumps_dagger = tuple(j.dag() for j in jumps)
    jdops = locate_indexed_operators(jumps_dagger)
    sync = TimeIndexSynchronizer.for_grid(grid)
    logger.info(
        "MCWF trajectory: %s steps, dt=%s, %s jump operators, "
        "%s/%s/%s time-indexed operators (H/J/J^dag)",
        len(grid),
        grid.dt,
        len(jumps),
        len(ops),
        len(jops),
        len(jdops),
    )

    def get_operators(t: float, psi: Any) -> TrajectoryOperators:
        sync.sync(ops, t)
        sync.sync_clamped(jops, t)
        sync.sync_clamped(jdops, t)
        # rates are left to the integrator
        return TrajectoryOperators(hamiltonian, jumps, jumps_dagger, None)

    integrator = integrator or _default_integrator()
    _, steps = integrator.mcwf_dynamic(
        grid.times,
        psi0,
        get_operators,
        fout=make_capture(grid.tend, fout),
        **integrator_options,
    )
    logger.info("MCWF trajectory finished at t=%s", grid.tend)
    return assemble_output(steps, with_observables=fout is not None)
