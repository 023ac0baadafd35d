from __future__ import annotations

import math

import numpy as np
import matplotlib.pyplot as plt
import qutip as qt

from wgqed.config import setup_logging
from wgqed.core.ir.ops import tensor
from wgqed.core.units import Q, UnitSystem
from wgqed.core.waveguide import WaveguideBasis, destroy, local_op, vacuum
from wgqed.engine import WaveguideEngine


def main() -> None:
    setup_logging()

    # Physical parameters, lowered to solver time in ns
    units = UnitSystem(time_unit_s=1e-9)
    gamma = Q(1.0, "1/ns")
    dt = Q(20.0, "ps")
    grid = units.time_grid(Q(8.0, "ns"), dt)
    tlist = grid.times
    g = units.bin_coupling(gamma, dt)

    bw = WaveguideBasis.from_times(1, grid)
    w = destroy(bw)
    wd = w.dag()
    sigma = local_op(qt.destroy(2))

    # Emitter coupled to the bin currently passing by
    H = 1j * g * (tensor(wd, sigma) - tensor(w, sigma.dag()))

    # Initial state: empty waveguide, excited emitter
    psi0 = qt.tensor(vacuum(bw), qt.basis(2, 1))
    n_e = qt.tensor(qt.qeye(bw.dim), qt.num(2))

    engine = WaveguideEngine(audit=True, solve_options={"rtol": 1e-8, "atol": 1e-10})
    psi, pe = engine.evolve(grid, psi0, H, lambda t, psi: qt.expect(n_e, psi))

    print("P_e(t0) =", float(pe[0]))
    print("P_e(tend) =", float(pe[-1]))

    # Emitted photon shape: amplitude of |1_k> per bin, rescaled to a density
    amp = psi.full().reshape(bw.dim, 2)[1:, 0] / math.sqrt(bw.dt)

    plt.figure()
    plt.plot(tlist, pe, label="P_e")
    plt.plot(tlist, np.exp(-units.rate_to_solver(gamma) * tlist), "--", label="exp(-gamma t)")
    plt.plot(tlist, np.abs(amp) ** 2, label="|xi(t)|^2")
    plt.xlabel("t (ns)")
    plt.title("Emitter decay into a waveguide")
    plt.legend()
    plt.grid(True)
    plt.show()


if __name__ == "__main__":
    main()
