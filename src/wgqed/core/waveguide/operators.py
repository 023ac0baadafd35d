from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

import numpy as np
from scipy import sparse

from wgqed.core.ir.ops import OpExpr
from wgqed.core.waveguide.basis import TimeIndexCell, WaveguideBasis


class LadderKind(str, Enum):
    DESTROY = "DESTROY"
    CREATE = "CREATE"


@dataclass(eq=False)
class WaveguideOperator:
    """
    Photon annihilation/creation in the time bin selected by the index cell.

    timeindex i (1-based) addresses bin i - 1. Outside 1..N the operator acts
    as zero, so probing past either end of the grid is harmless.
    """

    basis: WaveguideBasis
    kind: LadderKind
    cell: TimeIndexCell = field(default_factory=TimeIndexCell)

    @property
    def dim(self) -> int:
        return self.basis.dim

    @property
    def timeindex(self) -> int:
        return self.cell.value

    @timeindex.setter
    def timeindex(self, value: int) -> None:
        self.cell.value = int(value)

    def dag(self) -> "WaveguideOperator":
        other = (
            LadderKind.CREATE if self.kind == LadderKind.DESTROY else LadderKind.DESTROY
        )
        return WaveguideOperator(basis=self.basis, kind=other, cell=self.cell)

    def matrix(self) -> sparse.csr_matrix:
        destroy = _destroy_matrix(self.basis, self.timeindex - 1)
        if self.kind == LadderKind.DESTROY:
            return destroy
        return destroy.transpose().tocsr()


def _destroy_matrix(basis: WaveguideBasis, k: int) -> sparse.csr_matrix:
    D = basis.dim
    n = basis.nsteps
    if not 0 <= k < n:
        return sparse.csr_matrix((D, D), dtype=complex)

    rows = [0]
    cols = [basis.one_photon_index(k)]
    vals = [1.0 + 0.0j]
    if basis.nphotons == 2:
        # a_k |1_k 1_l> = |1_l>, a_k |2_k> = sqrt(2) |1_k>
        for l in range(n):
            rows.append(basis.one_photon_index(l))
            cols.append(basis.two_photon_index(k, l))
            vals.append(np.sqrt(2.0) if l == k else 1.0)
    return sparse.csr_matrix(
        (np.asarray(vals, dtype=complex), (rows, cols)), shape=(D, D)
    )


@dataclass(eq=False)
class DenseOp:
    """Static operator on one subsystem (emitter, cavity, ...)."""

    mat: np.ndarray

    def __post_init__(self) -> None:
        m = np.asarray(self.mat, dtype=complex)
        if m.ndim != 2 or m.shape[0] != m.shape[1]:
            raise ValueError(f"DenseOp needs a square matrix, got shape {m.shape}")
        self.mat = m

    @property
    def dim(self) -> int:
        return int(self.mat.shape[0])

    def dag(self) -> "DenseOp":
        return DenseOp(self.mat.conj().T)

    def matrix(self) -> sparse.csr_matrix:
        return sparse.csr_matrix(self.mat)


@dataclass(eq=False)
class IdentityOp:
    n: int

    @property
    def dim(self) -> int:
        return int(self.n)

    def dag(self) -> "IdentityOp":
        return self

    def matrix(self) -> sparse.csr_matrix:
        return sparse.identity(int(self.n), dtype=complex, format="csr")


def destroy(basis: WaveguideBasis) -> OpExpr:
    """Waveguide annihilation operator with its own time index cell."""
    return OpExpr.leaf(WaveguideOperator(basis=basis, kind=LadderKind.DESTROY))


def create(basis: WaveguideBasis) -> OpExpr:
    """Waveguide creation operator with its own time index cell."""
    return OpExpr.leaf(WaveguideOperator(basis=basis, kind=LadderKind.CREATE))


def local_op(op: Any) -> OpExpr:
    """
    Static leaf from a QuTiP Qobj, a scipy sparse matrix or an array.
    """
    if hasattr(op, "full"):
        return OpExpr.leaf(DenseOp(np.asarray(op.full(), dtype=complex)))
    if sparse.issparse(op):
        return OpExpr.leaf(DenseOp(op.toarray()))
    return OpExpr.leaf(DenseOp(np.asarray(op, dtype=complex)))


def identity(space: Union[int, WaveguideBasis]) -> OpExpr:
    n = space.dim if isinstance(space, WaveguideBasis) else int(space)
    return OpExpr.leaf(IdentityOp(n))
