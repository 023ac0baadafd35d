from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from wgqed.core.ir.materialize import materialize_op_expr
from wgqed.core.ir.ops import OpExpr


def ket_from_vector(
    vec: np.ndarray, *, dims: Sequence[int], dtype: Optional[str] = None
) -> Any:
    """Wrap a flat complex vector as a QuTiP ket with tensor dims."""
    import qutip as qt  # type: ignore

    dims_l = [int(d) for d in dims]
    q = qt.Qobj(np.asarray(vec, dtype=complex).reshape(-1, 1), dims=[dims_l, [1] * len(dims_l)])
    if dtype:
        q = q.to(dtype)
    return q


def vector_from_ket(psi: Any) -> np.ndarray:
    """Flat complex copy of a ket (QuTiP Qobj or array-like)."""
    if hasattr(psi, "full"):
        if not getattr(psi, "isket", True):
            raise ValueError("Initial state must be a ket")
        return np.array(psi.full(), dtype=complex).reshape(-1)
    return np.array(psi, dtype=complex).reshape(-1)


def ket_dims(psi: Any) -> list[int]:
    """Tensor dims of a ket; a plain vector counts as a single subsystem."""
    dims = getattr(psi, "dims", None)
    if dims is None:
        return [int(np.asarray(psi).size)]
    return [int(d) for d in dims[0]]


def qobj_from_expr(expr: OpExpr, *, dtype: Optional[str] = None) -> Any:
    """
    Materialize an operator expression at its atoms' current time indices.
    """
    import qutip as qt  # type: ignore

    dims = [int(d) for d in expr.dims]
    q = qt.Qobj(materialize_op_expr(expr), dims=[dims, dims])
    if dtype:
        q = q.to(dtype)
    return q
