from __future__ import annotations

from typing import Any

from scipy import sparse

from wgqed.core.ir.ops import OpExpr, OpExprKind


def _as_sparse(mat: Any, D: int) -> sparse.csr_matrix:
    m = sparse.csr_matrix(mat, dtype=complex)
    if m.shape != (D, D):
        raise ValueError(f"Expected matrix shape {(D, D)}, got {m.shape}")
    return m


def materialize_op_expr(expr: OpExpr) -> sparse.csr_matrix:
    """
    Materialize an OpExpr into a sparse (D, D) complex matrix.

    Convention:
    - full space ordering follows expr.dims: kron(left, right) for TENSOR
    - time-indexed atoms are evaluated at whatever index they currently hold
    """
    D = expr.dim

    if expr.kind == OpExprKind.ATOM:
        return _as_sparse(expr.atom.matrix(), D)

    if expr.kind == OpExprKind.SUM:
        acc = sparse.csr_matrix((D, D), dtype=complex)
        for w, a in zip(expr.weights, expr.args):
            if w == 0:
                continue
            acc = acc + complex(w) * materialize_op_expr(a)
        return acc.tocsr()

    if expr.kind == OpExprKind.TENSOR:
        left, right = expr.args
        return sparse.kron(
            materialize_op_expr(left), materialize_op_expr(right), format="csr"
        )

    if expr.kind == OpExprKind.PROD:
        left, right = expr.args
        return (materialize_op_expr(left) @ materialize_op_expr(right)).tocsr()

    raise ValueError(f"Unknown OpExprKind: {expr.kind}")
