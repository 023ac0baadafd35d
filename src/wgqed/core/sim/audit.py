from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import norm as sparse_norm

from wgqed.adapters.qutip.convert import ket_dims, vector_from_ket
from wgqed.core.ir.materialize import materialize_op_expr
from wgqed.core.ir.ops import OpExpr
from wgqed.core.sim.locate import locate_indexed_operators
from wgqed.core.sim.timeindex import get_time_indices, set_time_index
from wgqed.core.sim.types import EvolutionProblem


@dataclass(frozen=True)
class AuditOptions:
    top_entries: int = 6
    check_shapes: bool = True
    check_hermitian_H: bool = True
    hermitian_atol: float = 1e-10
    # 1-based index the operators are sampled at; None means mid-grid
    sample_index: Optional[int] = None


def _top_abs_entries(
    mat: sparse.spmatrix, k: int
) -> Sequence[Tuple[float, Tuple[int, int], complex]]:
    m = sparse.coo_matrix(mat)
    a = np.abs(m.data)
    if a.size == 0:
        return []
    k = min(int(k), int(a.size))
    # partial selection then sort those
    idx = np.argpartition(a, -k)[-k:]
    idx = idx[np.argsort(a[idx])[::-1]]
    return [
        (float(a[i]), (int(m.row[i]), int(m.col[i])), complex(m.data[i]))
        for i in idx
    ]


def _fro_norm(mat: sparse.spmatrix) -> float:
    return float(sparse_norm(mat)) if mat.nnz else 0.0


def _waveguide_steps(ops: Sequence[Any]) -> Sequence[int]:
    return sorted({int(op.basis.nsteps) for op in ops if hasattr(op, "basis")})


def audit_problem(
    problem: EvolutionProblem,
    *,
    options: Optional[AuditOptions] = None,
) -> Dict[str, Any]:
    """
    Structured report on an evolution problem before it is integrated.

    Meant to catch:
    - state/operator dimension mismatches
    - waveguide bases with fewer bins than the evolution grid
    - non-Hermitian Hamiltonians at the sampled time index
    - operators that are identically zero at the sampled index

    Time indices of all located operators are restored on return.
    """
    opt = options or AuditOptions()
    grid = problem.grid
    H = problem.hamiltonian
    jumps: Tuple[OpExpr, ...] = tuple(problem.jump_operators)

    report: Dict[str, Any] = {}
    report["dims"] = tuple(H.dims)
    report["D"] = H.dim
    report["tlist_N"] = len(grid)
    report["tlist_range"] = (float(grid.times[0]), grid.tend)
    report["dt"] = grid.dt

    psi = vector_from_ket(problem.psi0)
    report["psi0_dims"] = tuple(ket_dims(problem.psi0))
    report["psi0_norm"] = float(np.linalg.norm(psi))
    if opt.check_shapes and psi.size != H.dim:
        raise ValueError(f"psi0 has size {psi.size}, Hamiltonian acts on {H.dim}")
    if opt.check_shapes:
        for i, j in enumerate(jumps):
            if j.dim != H.dim:
                raise ValueError(f"Jump operator {i} acts on {j.dim}, expected {H.dim}")

    h_ops = locate_indexed_operators(H)
    j_ops = locate_indexed_operators(jumps) if jumps else ()
    report["H_indexed_ops"] = len(h_ops)
    report["J_indexed_ops"] = len(j_ops)
    report["J_count"] = len(jumps)

    steps = _waveguide_steps(tuple(h_ops) + tuple(j_ops))
    report["waveguide_nsteps"] = steps
    report["waveguide_short"] = [n for n in steps if n < len(grid)]

    sample = opt.sample_index or (len(grid) + 1) // 2
    report["sample_index"] = int(sample)

    all_ops = tuple(h_ops) + tuple(j_ops)
    saved = get_time_indices(all_ops)
    try:
        set_time_index(all_ops, sample)
        report["H"] = _audit_op(H, opt, hermitian=opt.check_hermitian_H)
        report["J"] = [_audit_op(j, opt, hermitian=False) for j in jumps]
    finally:
        for op, idx in zip(all_ops, saved):
            op.timeindex = idx

    return report


def _audit_op(expr: OpExpr, opt: AuditOptions, *, hermitian: bool) -> Dict[str, Any]:
    mat = materialize_op_expr(expr)
    item: Dict[str, Any] = {
        "op_shape": tuple(mat.shape),
        "op_fro_norm": _fro_norm(mat),
        "op_nnz": int(mat.nnz),
    }
    if hermitian:
        diff = mat - mat.conj().T
        herm_err = float(np.max(np.abs(diff.data))) if diff.nnz else 0.0
        item["op_hermitian_max_abs_err"] = herm_err
        item["op_is_hermitian"] = bool(herm_err <= opt.hermitian_atol)
    item["op_top_entries"] = _top_abs_entries(mat, opt.top_entries)
    return item
