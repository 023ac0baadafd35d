from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from wgqed.core.types import TimeGrid


@dataclass(eq=False)
class TimeIndexCell:
    """
    Mutable 1-based time index shared by an operator and its adjoints.
    """

    value: int = 1


@dataclass(frozen=True, eq=False)
class WaveguideBasis:
    """
    Time-binned Fock basis of a single waveguide mode.

    Ordering:
    - 0: vacuum
    - 1..N: one photon in bin k (k = 0..N-1)
    - two photons (nphotons == 2): pairs (k, l) with k <= l, row-major

    N is the number of samples of the time grid; bin k belongs to times[k].
    """

    nphotons: int
    grid: TimeGrid
    _pair_index: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.nphotons not in (1, 2):
            raise ValueError(f"nphotons must be 1 or 2, got {self.nphotons}")
        n = self.nsteps
        lookup = np.full((n, n), -1, dtype=int)
        if self.nphotons == 2:
            rows, cols = np.triu_indices(n)
            offsets = 1 + n + np.arange(len(rows))
            lookup[rows, cols] = offsets
            lookup[cols, rows] = offsets
        object.__setattr__(self, "_pair_index", lookup)

    @classmethod
    def from_times(cls, nphotons: int, times: Sequence[float]) -> "WaveguideBasis":
        return cls(nphotons=int(nphotons), grid=TimeGrid.from_sequence(times))

    @property
    def nsteps(self) -> int:
        return len(self.grid)

    @property
    def dt(self) -> float:
        return self.grid.dt

    @property
    def times(self) -> np.ndarray:
        return self.grid.times

    @property
    def dim(self) -> int:
        n = self.nsteps
        if self.nphotons == 1:
            return 1 + n
        return 1 + n + n * (n + 1) // 2

    def one_photon_index(self, k: int) -> int:
        if not 0 <= k < self.nsteps:
            raise IndexError(f"bin {k} out of range for {self.nsteps} bins")
        return 1 + int(k)

    def two_photon_index(self, k: int, l: int) -> int:
        if self.nphotons < 2:
            raise ValueError("basis holds at most one photon")
        if not (0 <= k < self.nsteps and 0 <= l < self.nsteps):
            raise IndexError(f"bins ({k}, {l}) out of range for {self.nsteps} bins")
        return int(self._pair_index[k, l])
