from __future__ import annotations

from typing import Any, List, Sequence

import numpy as np
import pytest

from wgqed.core.sim.locate import locate_indexed_operators
from wgqed.core.sim.timeindex import get_time_indices
from wgqed.core.waveguide import WaveguideBasis


class RecordingIntegrator:
    """
    Integrator stand-in: calls the builder at chosen times, then calls fout
    on every grid time with the unchanged initial state.
    """

    def __init__(self, builder_times: Sequence[float] = ()) -> None:
        self.builder_times = list(builder_times)
        self.calls = 0
        self.options: dict = {}
        self.built: List[Any] = []
        self.indices: List[Any] = []
        self.captured: List[Any] = []

    def _run(self, tspan, psi0, f, fout, options):
        self.calls += 1
        self.options = dict(options)
        for t in self.builder_times:
            built = f(t, psi0)
            self.built.append(built)
            self.indices.append(self._indices(built))
        self.captured = [fout(float(t), psi0) for t in tspan]
        return np.asarray(tspan), self.captured

    @staticmethod
    def _indices(built):
        if isinstance(built, tuple):
            H, jumps, jumps_dagger, _ = built
            return (
                get_time_indices(locate_indexed_operators(H)),
                get_time_indices(locate_indexed_operators(list(jumps))),
                get_time_indices(locate_indexed_operators(list(jumps_dagger))),
            )
        return get_time_indices(locate_indexed_operators(built))

    def schroedinger_dynamic(self, tspan, psi0, f, *, fout, **options):
        return self._run(tspan, psi0, f, fout, options)

    def mcwf_dynamic(self, tspan, psi0, f, *, fout, **options):
        return self._run(tspan, psi0, f, fout, options)


@pytest.fixture
def recording():
    return RecordingIntegrator


@pytest.fixture
def small_basis() -> WaveguideBasis:
    return WaveguideBasis.from_times(1, [0.0, 0.5, 1.0, 1.5, 2.0])


def gaussian(t0: float, sigma: float):
    norm = (2.0 * np.pi * sigma**2) ** -0.25

    def xi(t):
        return norm * np.exp(-((np.asarray(t) - t0) ** 2) / (4.0 * sigma**2))

    return xi
