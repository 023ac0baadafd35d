from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from scipy import sparse


@runtime_checkable
class OpAtomProto(Protocol):
    """
    Leaf of an operator expression.

    dim is the local Hilbert-space dimension the atom acts on.
    matrix() returns the (dim, dim) sparse matrix for the atom's current state.
    """

    @property
    def dim(self) -> int: ...

    def matrix(self) -> sparse.csr_matrix: ...

    def dag(self) -> Any: ...


@runtime_checkable
class TimeIndexedProto(Protocol):
    """
    Atom whose action depends on a mutable, 1-based discrete time index.
    """

    timeindex: int
