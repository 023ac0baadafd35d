from __future__ import annotations

from typing import Any, List, Tuple

from wgqed.core.errors import UnsupportedOperatorError
from wgqed.core.ir.ops import OpExpr, OpExprKind
from wgqed.core.ir.protocols import TimeIndexedProto


def locate_indexed_operators(structure: Any) -> Tuple[TimeIndexedProto, ...]:
    """
    Collect every time-indexed atom reachable from an operator structure.

    structure is an OpExpr or a list/tuple of them (jump operators). Sums are
    walked addend by addend, pairwise compositions left then right. An atom
    reachable along several paths is reported once, at its first position,
    so repeated calls return the same order.
    """
    found: List[TimeIndexedProto] = []
    seen: set[int] = set()

    if isinstance(structure, (list, tuple)):
        for item in structure:
            _visit(item, found, seen)
    else:
        _visit(structure, found, seen)
    return tuple(found)


def _visit(expr: Any, found: List[TimeIndexedProto], seen: set[int]) -> None:
    if not isinstance(expr, OpExpr):
        raise UnsupportedOperatorError(
            f"Unsupported operator structure: {type(expr)!r} is not an OpExpr"
        )

    if expr.kind == OpExprKind.ATOM:
        atom = expr.atom
        if isinstance(atom, TimeIndexedProto) and id(atom) not in seen:
            seen.add(id(atom))
            found.append(atom)
        return

    if expr.kind in (OpExprKind.SUM, OpExprKind.TENSOR, OpExprKind.PROD):
        for child in expr.args:
            _visit(child, found, seen)
        return

    raise UnsupportedOperatorError(f"Unsupported operator structure: kind {expr.kind!r}")
