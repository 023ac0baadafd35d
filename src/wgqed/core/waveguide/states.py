from __future__ import annotations

from typing import Any, Callable, Union

import numpy as np

from wgqed.adapters.qutip.convert import ket_from_vector
from wgqed.core.waveguide.basis import WaveguideBasis

Amplitude1 = Union[Callable[[np.ndarray], Any], np.ndarray]
Amplitude2 = Union[Callable[[np.ndarray, np.ndarray], Any], np.ndarray]


def vacuum(basis: WaveguideBasis) -> Any:
    vec = np.zeros(basis.dim, dtype=complex)
    vec[0] = 1.0
    return ket_from_vector(vec, dims=[basis.dim])


def onephoton(basis: WaveguideBasis, xi: Amplitude1) -> Any:
    """
    Single photon with temporal wavefunction xi.

    xi is either a vectorized callable of time or an array of N samples.
    Bin amplitudes are xi(t_k) * sqrt(dt), so a wavefunction normalized to
    integral |xi|^2 dt = 1 gives a unit ket up to discretization error.
    """
    samples = _sample1(basis, xi)
    vec = np.zeros(basis.dim, dtype=complex)
    vec[1 : 1 + basis.nsteps] = samples * np.sqrt(basis.dt)
    return ket_from_vector(vec, dims=[basis.dim])


def twophoton(basis: WaveguideBasis, xi: Amplitude2) -> Any:
    """
    Two photons with symmetric two-time wavefunction xi(t1, t2).

    Off-diagonal pairs carry sqrt(2) * xi * dt, diagonal entries xi * dt, which
    keeps the norm equal to the double integral of |xi|^2.
    """
    if basis.nphotons < 2:
        raise ValueError("twophoton needs a basis with nphotons == 2")
    samples = _sample2(basis, xi)
    n = basis.nsteps
    rows, cols = np.triu_indices(n)
    amp = samples[rows, cols] * basis.dt
    amp = np.where(rows == cols, amp, np.sqrt(2.0) * amp)
    vec = np.zeros(basis.dim, dtype=complex)
    vec[1 + n :] = amp
    return ket_from_vector(vec, dims=[basis.dim])


def _sample1(basis: WaveguideBasis, xi: Amplitude1) -> np.ndarray:
    if callable(xi):
        samples = np.asarray(xi(basis.times), dtype=complex)
    else:
        samples = np.asarray(xi, dtype=complex)
    samples = np.broadcast_to(samples, (basis.nsteps,))
    return np.asarray(samples, dtype=complex)


def _sample2(basis: WaveguideBasis, xi: Amplitude2) -> np.ndarray:
    n = basis.nsteps
    if callable(xi):
        t1, t2 = np.meshgrid(basis.times, basis.times, indexing="ij")
        samples = np.asarray(xi(t1, t2), dtype=complex)
    else:
        samples = np.asarray(xi, dtype=complex)
    if samples.shape != (n, n):
        raise ValueError(f"two-photon amplitude must have shape {(n, n)}, got {samples.shape}")
    if not np.allclose(samples, samples.T):
        raise ValueError("two-photon amplitude must be symmetric in its arguments")
    return samples
