from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from wgqed.core.errors import TimeGridError

# Relative tolerance on the spacing of a uniform grid
UNIFORM_RTOL = 1e-9


@dataclass(frozen=True, eq=False)
class TimeGrid:
    """
    Uniform time grid in solver units.

    dt is the spacing of the first two samples and tend the last sample.
    Index arithmetic (see wgqed.core.sim.timeindex) assumes the spacing is
    uniform over the whole grid, so construction rejects anything else.
    """

    times: np.ndarray

    def __post_init__(self) -> None:
        t = np.array(self.times, dtype=float).reshape(-1)
        _validate_times(t)
        t.setflags(write=False)
        object.__setattr__(self, "times", t)

    @classmethod
    def from_sequence(cls, times: Any) -> "TimeGrid":
        if isinstance(times, TimeGrid):
            return times
        return cls(times=np.asarray(times, dtype=float))

    @classmethod
    def uniform(cls, t_end: float, dt: float, *, t_start: float = 0.0) -> "TimeGrid":
        """Grid t_start, t_start + dt, ... up to and including t_end."""
        if not dt > 0:
            raise TimeGridError(f"dt must be positive, got {dt}")
        n = int(round((float(t_end) - float(t_start)) / float(dt))) + 1
        return cls(times=float(t_start) + float(dt) * np.arange(n))

    @property
    def dt(self) -> float:
        return float(self.times[1] - self.times[0])

    @property
    def tend(self) -> float:
        return float(self.times[-1])

    def __len__(self) -> int:
        return int(len(self.times))

    def __iter__(self):
        return iter(self.times)


def _validate_times(t: Sequence[float]) -> None:
    t = np.asarray(t, dtype=float)
    if t.ndim != 1 or len(t) < 2:
        raise TimeGridError(f"Time grid needs at least 2 points, got {len(t)}")
    if not np.all(np.isfinite(t)):
        raise TimeGridError("Time grid contains non-finite values")
    if t[0] < 0:
        raise TimeGridError(f"Time grid must start at t >= 0, got {t[0]}")
    steps = np.diff(t)
    dt = steps[0]
    if not dt > 0:
        raise TimeGridError(f"Time grid spacing must be positive, got {dt}")
    if not np.allclose(steps, dt, rtol=UNIFORM_RTOL, atol=0.0):
        raise TimeGridError(
            "Time grid must be uniform: spacing ranges from "
            f"{steps.min()} to {steps.max()}"
        )
