import numpy as np
import pytest
import qutip as qt

from wgqed.core.ir.ops import tensor
from wgqed.core.sim.audit import AuditOptions, audit_problem
from wgqed.core.sim.types import EvolutionProblem
from wgqed.core.types import TimeGrid
from wgqed.core.waveguide import WaveguideBasis, destroy, identity, local_op, vacuum


def _problem(times, bw, hamiltonian, jumps=()):
    psi0 = qt.tensor(vacuum(bw), qt.basis(2, 1))
    return EvolutionProblem(
        grid=TimeGrid.from_sequence(times),
        psi0=psi0,
        hamiltonian=hamiltonian,
        jump_operators=tuple(jumps),
    )


def _coupling(bw):
    w = destroy(bw)
    sigma = local_op(qt.destroy(2))
    return w, 1j * (tensor(w.dag(), sigma) - tensor(w, sigma.dag()))


def test_report_describes_problem():
    times = np.linspace(0.0, 1.0, 11)
    bw = WaveguideBasis.from_times(1, times)
    w, H = _coupling(bw)
    loss = tensor(identity(bw), local_op(qt.destroy(2)))

    report = audit_problem(_problem(times, bw, H, [loss]))

    assert report["D"] == 2 * bw.dim
    assert report["dims"] == (bw.dim, 2)
    assert report["tlist_N"] == 11
    assert report["dt"] == pytest.approx(0.1)
    assert report["psi0_norm"] == pytest.approx(1.0)
    assert report["H_indexed_ops"] == 2
    assert report["J_indexed_ops"] == 0
    assert report["J_count"] == 1
    assert report["waveguide_nsteps"] == [11]
    assert report["waveguide_short"] == []
    assert report["sample_index"] == 6
    assert report["H"]["op_is_hermitian"]
    assert report["H"]["op_nnz"] > 0
    assert len(report["J"]) == 1
    assert "op_is_hermitian" not in report["J"][0]


def test_audit_restores_time_indices():
    times = np.linspace(0.0, 1.0, 11)
    bw = WaveguideBasis.from_times(1, times)
    w, H = _coupling(bw)
    w.atom.timeindex = 3
    audit_problem(_problem(times, bw, H), options=AuditOptions(sample_index=9))
    assert w.atom.timeindex == 3


def test_short_waveguide_is_flagged():
    times = np.linspace(0.0, 1.0, 11)
    bw = WaveguideBasis.from_times(1, times[:5])
    _, H = _coupling(bw)
    report = audit_problem(_problem(times, bw, H))
    assert report["waveguide_short"] == [5]
    # past the end of the short basis every waveguide term vanishes
    assert report["H"]["op_nnz"] == 0


def test_non_hermitian_hamiltonian_is_reported():
    times = np.linspace(0.0, 1.0, 11)
    bw = WaveguideBasis.from_times(1, times)
    w = destroy(bw)
    H = tensor(w, local_op(qt.sigmap()))
    report = audit_problem(_problem(times, bw, H))
    assert not report["H"]["op_is_hermitian"]
    assert report["H"]["op_hermitian_max_abs_err"] == pytest.approx(1.0)


def test_top_entries_are_sorted():
    times = np.linspace(0.0, 1.0, 11)
    bw = WaveguideBasis.from_times(1, times)
    H = tensor(identity(bw), local_op(np.diag([1.0, -3.0])))
    report = audit_problem(_problem(times, bw, H), options=AuditOptions(top_entries=3))
    top = report["H"]["op_top_entries"]
    assert len(top) == 3
    assert [entry[0] for entry in top] == [3.0, 3.0, 3.0]


def test_dimension_mismatches_raise():
    times = np.linspace(0.0, 1.0, 11)
    bw = WaveguideBasis.from_times(1, times)
    _, H = _coupling(bw)
    bad_state = EvolutionProblem(
        grid=TimeGrid.from_sequence(times), psi0=vacuum(bw), hamiltonian=H
    )
    with pytest.raises(ValueError):
        audit_problem(bad_state)
    with pytest.raises(ValueError):
        audit_problem(_problem(times, bw, H, [destroy(bw)]))
