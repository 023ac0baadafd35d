from __future__ import annotations

import math

import numpy as np
import matplotlib.pyplot as plt
import qutip as qt

from wgqed.config import setup_logging
from wgqed.core.ir.ops import tensor
from wgqed.core.units import Q, UnitSystem
from wgqed.core.waveguide import WaveguideBasis, destroy, identity, local_op, onephoton
from wgqed.engine import WaveguideEngine


def gaussian(t0: float, sigma: float):
    norm = (2.0 * np.pi * sigma**2) ** -0.25
    return lambda t: norm * np.exp(-((np.asarray(t) - t0) ** 2) / (4.0 * sigma**2))


def main() -> None:
    setup_logging()

    units = UnitSystem(time_unit_s=1e-9)
    dt = Q(50.0, "ps")
    grid = units.time_grid(Q(12.0, "ns"), dt)
    tlist = grid.times
    g = units.bin_coupling(Q(1.0, "1/ns"), dt)
    gamma_loss = units.rate_to_solver(Q(500.0, "1/us"))
    ntraj = 50

    bw = WaveguideBasis.from_times(1, grid)
    w = destroy(bw)
    sigma = local_op(qt.destroy(2))
    H = 1j * g * (tensor(w.dag(), sigma) - tensor(w, sigma.dag()))

    # Emitter loss out of the waveguide
    J = [math.sqrt(gamma_loss) * tensor(identity(bw), sigma)]

    # Gaussian single photon impinging on a ground-state emitter
    psi0 = qt.tensor(onephoton(bw, gaussian(4.0, 1.0)), qt.basis(2, 0))
    n_e = qt.tensor(qt.qeye(bw.dim), qt.num(2))

    engine = WaveguideEngine()
    rng = np.random.default_rng(1234)
    pops = []
    for _ in range(ntraj):
        _, pe = engine.evolve_trajectory(
            grid, psi0, H, J, lambda t, psi: qt.expect(n_e, psi), rng=rng
        )
        pops.append(pe)
    mean = np.mean(np.asarray(pops, dtype=float), axis=0)

    print("max <P_e> =", float(mean.max()))

    plt.figure()
    plt.plot(tlist, mean)
    plt.xlabel("t (ns)")
    plt.ylabel("<P_e>")
    plt.title(f"Single-photon excitation, {ntraj} trajectories")
    plt.grid(True)
    plt.show()


if __name__ == "__main__":
    main()
