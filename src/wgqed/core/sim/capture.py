from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence, Tuple

from wgqed.core.sim.types import CapturedStep

ObservableFn = Callable[[float, Any], Any]
CaptureFn = Callable[[float, Any], CapturedStep]


def flatten_observables(value: Any) -> Tuple[Any, ...]:
    """A tuple returned by fout is spread into separate series."""
    if isinstance(value, tuple):
        return value
    return (value,)


def _copy_state(psi: Any) -> Any:
    copy = getattr(psi, "copy", None)
    return copy() if callable(copy) else psi


def make_capture(tend: float, fout: Optional[ObservableFn] = None) -> CaptureFn:
    """
    Capture callback for the integrator.

    The state is kept only at t == tend (copied out of the integrator's
    buffer); fout, when given, is evaluated at every output time.
    """

    def capture(t: float, psi: Any) -> CapturedStep:
        is_terminal = t == tend
        observables = flatten_observables(fout(t, psi)) if fout is not None else ()
        return CapturedStep(
            time=float(t),
            is_terminal=is_terminal,
            observables=observables,
            state=_copy_state(psi) if is_terminal else None,
        )

    return capture


def assemble_output(steps: Sequence[CapturedStep], *, with_observables: bool) -> Any:
    """
    Fold captured steps into the public return value.

    Without observables: the terminal state.
    With observables: (terminal_state, series_1, ..., series_k), each series a
    list over all output times.
    """
    if not steps:
        raise ValueError("Integrator returned no captured steps")
    last = steps[-1]
    if not last.is_terminal or last.state is None:
        raise ValueError(f"Last captured step at t={last.time} is not the terminal step")

    if not with_observables:
        return last.state

    k = len(steps[0].observables)
    series: List[List[Any]] = [[] for _ in range(k)]
    for step in steps:
        if len(step.observables) != k:
            raise ValueError(
                f"Observable function returned {len(step.observables)} values at "
                f"t={step.time}, expected {k}"
            )
        for j, value in enumerate(step.observables):
            series[j].append(value)
    return (last.state, *series)
