from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

from wgqed.core.ir.protocols import TimeIndexedProto
from wgqed.core.types import TimeGrid


def time_index(t: float, dt: float) -> int:
    """
    1-based grid index for continuous time t: ceil(t / dt) + 1.

    index(0) == 1. Between two grid points the index already points at the
    later one, i.e. the bin of the interval the integrator is stepping into.
    """
    return int(math.ceil(float(t) / float(dt))) + 1


def jump_time_index(t: float, dt: float) -> int:
    """
    Index for jump operators and their adjoints: max(ceil(t / dt), 1).

    One bin behind time_index(); the lower clamp keeps t == 0 (and the
    integrator probing just before it) on the first bin.
    """
    return max(int(math.ceil(float(t) / float(dt))), 1)


def set_time_index(operators: Iterable[TimeIndexedProto], index: int) -> None:
    for op in operators:
        op.timeindex = int(index)


def get_time_indices(operators: Iterable[TimeIndexedProto]) -> Tuple[int, ...]:
    return tuple(int(op.timeindex) for op in operators)


@dataclass(frozen=True)
class TimeIndexSynchronizer:
    """Pushes the grid index of a continuous time into located operators."""

    dt: float

    @classmethod
    def for_grid(cls, grid: TimeGrid) -> "TimeIndexSynchronizer":
        return cls(dt=grid.dt)

    def index(self, t: float) -> int:
        return time_index(t, self.dt)

    def sync(self, operators: Iterable[TimeIndexedProto], t: float) -> int:
        idx = self.index(t)
        set_time_index(operators, idx)
        return idx

    def jump_index(self, t: float) -> int:
        return jump_time_index(t, self.dt)

    def sync_clamped(self, operators: Iterable[TimeIndexedProto], t: float) -> int:
        idx = self.jump_index(t)
        set_time_index(operators, idx)
        return idx
