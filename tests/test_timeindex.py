import numpy as np
import pytest

from wgqed.core.sim.timeindex import (
    TimeIndexSynchronizer,
    get_time_indices,
    jump_time_index,
    set_time_index,
    time_index,
)
from wgqed.core.types import TimeGrid
from wgqed.core.waveguide import destroy


@pytest.mark.parametrize("dt", [0.5, 0.25, 0.1, 1.0])
def test_index_at_zero_is_one(dt):
    assert time_index(0.0, dt) == 1


def test_index_on_exact_grid_points():
    dt = 0.25
    for k in range(10):
        assert time_index(k * dt, dt) == k + 1


def test_index_between_grid_points_points_at_next_sample():
    dt = 0.5
    assert time_index(0.01, dt) == 2
    assert time_index(0.49, dt) == 2
    assert time_index(0.5, dt) == 2
    assert time_index(0.51, dt) == 3


@pytest.mark.parametrize("dt", [0.1, 0.3, 1.0 / 3.0])
def test_index_is_non_decreasing(dt):
    ts = np.sort(np.random.default_rng(1).uniform(0.0, 20.0, size=2000))
    idx = [time_index(t, dt) for t in np.concatenate([[0.0], ts])]
    assert idx[0] == 1
    assert all(b >= a for a, b in zip(idx, idx[1:]))


def test_sync_sets_every_handle(small_basis):
    ops = [destroy(small_basis).atom for _ in range(3)]
    sync = TimeIndexSynchronizer(dt=0.5)
    assert sync.sync(ops, 1.2) == 4
    assert get_time_indices(ops) == (4, 4, 4)


def test_sync_clamped_never_goes_below_one(small_basis):
    ops = [destroy(small_basis).atom]
    sync = TimeIndexSynchronizer(dt=0.5)
    assert sync.sync_clamped(ops, -0.01) == 1
    assert sync.sync_clamped(ops, -2.0) == 1
    assert sync.index(-2.0) < 1
    assert sync.sync_clamped(ops, 0.75) == 2


def test_for_grid_uses_first_spacing():
    grid = TimeGrid.from_sequence([0.0, 0.2, 0.4, 0.6])
    sync = TimeIndexSynchronizer.for_grid(grid)
    assert sync.dt == pytest.approx(0.2)
    assert sync.index(0.0) == 1


def test_jump_and_adjoint_indices_stay_equal(small_basis):
    w = destroy(small_basis)
    jumps = [w.atom]
    jumps_dagger = [w.dag().atom]
    sync = TimeIndexSynchronizer(dt=0.5)
    for t in [-0.3, -1e-9, 0.0, 0.1, 0.5, 0.75, 1.9, 2.0, 2.3]:
        sync.sync_clamped(jumps, t)
        sync.sync_clamped(jumps_dagger, t)
        assert get_time_indices(jumps) == get_time_indices(jumps_dagger)
        assert jumps[0].timeindex >= 1


def test_set_time_index_casts_to_int(small_basis):
    op = destroy(small_basis).atom
    set_time_index([op], np.int64(3))
    assert op.timeindex == 3
    assert type(op.timeindex) is int


def test_jump_index_trails_hamiltonian_index_by_one_bin():
    dt = 0.5
    assert [jump_time_index(t, dt) for t in (0.0, 0.3, 0.5, 0.51, 1.2, 2.0)] == [1, 1, 1, 2, 3, 4]
    for t in (0.3, 0.5, 1.2, 1.9, 2.0):
        assert jump_time_index(t, dt) == time_index(t, dt) - 1
    assert jump_time_index(-1.0, dt) == 1
