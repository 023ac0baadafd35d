import numpy as np
import pytest

from conftest import gaussian
from wgqed.adapters.qutip.convert import qobj_from_expr, vector_from_ket
from wgqed.core.ir.materialize import materialize_op_expr
from wgqed.core.waveguide import (
    WaveguideBasis,
    create,
    destroy,
    onephoton,
    twophoton,
    vacuum,
)


def test_basis_dimensions():
    times = np.linspace(0.0, 1.0, 11)
    assert WaveguideBasis.from_times(1, times).dim == 12
    assert WaveguideBasis.from_times(2, times).dim == 1 + 11 + 66
    with pytest.raises(ValueError):
        WaveguideBasis.from_times(3, times)


def test_two_photon_index_is_symmetric():
    bw = WaveguideBasis.from_times(2, [0.0, 1.0, 2.0])
    assert bw.two_photon_index(0, 0) == 4
    assert bw.two_photon_index(0, 1) == bw.two_photon_index(1, 0) == 5
    assert bw.two_photon_index(2, 2) == 9


def test_one_photon_destroy_matrix():
    bw = WaveguideBasis.from_times(1, [0.0, 1.0, 2.0])
    w = destroy(bw)
    w.atom.timeindex = 2
    m = materialize_op_expr(w).toarray()
    expected = np.zeros((4, 4), dtype=complex)
    expected[0, 2] = 1.0
    np.testing.assert_allclose(m, expected)

    wd = w.dag()
    np.testing.assert_allclose(materialize_op_expr(wd).toarray(), expected.T)


@pytest.mark.parametrize("index", [-1, 0, 4, 10])
def test_out_of_range_index_acts_as_zero(index):
    bw = WaveguideBasis.from_times(1, [0.0, 1.0, 2.0])
    w = destroy(bw)
    w.atom.timeindex = index
    assert materialize_op_expr(w).nnz == 0


def test_two_photon_destroy_matrix():
    bw = WaveguideBasis.from_times(2, [0.0, 1.0])
    w = destroy(bw)
    w.atom.timeindex = 1
    m = materialize_op_expr(w).toarray()
    expected = np.zeros((6, 6), dtype=complex)
    expected[0, 1] = 1.0  # |1_0> -> |0>
    expected[1, 3] = np.sqrt(2.0)  # |2_0> -> sqrt(2)|1_0>
    expected[2, 4] = 1.0  # |1_0 1_1> -> |1_1>
    np.testing.assert_allclose(m, expected)


def test_create_and_destroy_are_independent_cells():
    bw = WaveguideBasis.from_times(1, [0.0, 1.0, 2.0])
    w = destroy(bw)
    wd = create(bw)
    w.atom.timeindex = 2
    assert wd.atom.timeindex == 1


def test_vacuum():
    bw = WaveguideBasis.from_times(1, [0.0, 0.5, 1.0])
    v = vector_from_ket(vacuum(bw))
    np.testing.assert_allclose(v, [1.0, 0.0, 0.0, 0.0])


def test_onephoton_is_normalized_and_sampled():
    times = np.linspace(0.0, 20.0, 201)
    bw = WaveguideBasis.from_times(1, times)
    xi = gaussian(10.0, 1.0)
    psi = onephoton(bw, xi)
    v = vector_from_ket(psi)
    assert v[0] == 0
    assert np.linalg.norm(v) == pytest.approx(1.0, abs=1e-8)
    np.testing.assert_allclose(v[1:], xi(times) * np.sqrt(0.1), atol=1e-12)
    assert psi.dims[0] == [bw.dim]


def test_onephoton_from_samples():
    bw = WaveguideBasis.from_times(1, [0.0, 1.0, 2.0, 3.0])
    v = vector_from_ket(onephoton(bw, np.array([0.0, 1.0, 0.0, 0.0])))
    np.testing.assert_allclose(v, [0.0, 0.0, 1.0, 0.0, 0.0])


def test_twophoton_norm_and_number():
    times = np.linspace(0.0, 10.0, 51)
    bw = WaveguideBasis.from_times(2, times)
    xi = gaussian(5.0, 1.0)
    psi = twophoton(bw, lambda t1, t2: xi(t1) * xi(t2))
    v = vector_from_ket(psi)
    assert np.linalg.norm(v) == pytest.approx(1.0, abs=1e-6)

    w = destroy(bw)
    photons = 0.0
    for i in range(1, bw.nsteps + 1):
        w.atom.timeindex = i
        u = materialize_op_expr(w) @ v
        photons += float(np.vdot(u, u).real)
    assert photons == pytest.approx(2.0 * np.vdot(v, v).real, rel=1e-10)


def test_twophoton_rejects_asymmetric_amplitude():
    bw = WaveguideBasis.from_times(2, [0.0, 1.0])
    with pytest.raises(ValueError):
        twophoton(bw, np.array([[0.0, 1.0], [0.0, 0.0]]))
    with pytest.raises(ValueError):
        twophoton(WaveguideBasis.from_times(1, [0.0, 1.0]), np.eye(2))


def test_qobj_from_expr_matches_materialized():
    bw = WaveguideBasis.from_times(1, [0.0, 1.0, 2.0])
    w = destroy(bw)
    w.atom.timeindex = 3
    q = qobj_from_expr(w.dag() @ w)
    assert q.dims == [[4], [4]]
    np.testing.assert_allclose(q.full(), materialize_op_expr(w.dag() @ w).toarray())
