from __future__ import annotations

import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple


class OpExprKind(str, Enum):
    ATOM = "ATOM"
    SUM = "SUM"
    TENSOR = "TENSOR"
    PROD = "PROD"


@dataclass(frozen=True, eq=False)
class OpExpr:
    """
    Lazy operator expression tree.

    - ATOM: atom must be set (see OpAtomProto)
    - SUM: args non-empty, weights has one complex factor per arg
    - TENSOR: exactly two args, acts as kron(args[0], args[1])
    - PROD: exactly two args on the same space, acts as args[0] @ args[1]

    Nodes compare by identity. Atoms may carry mutable state (time indices),
    so two structurally equal trees are not interchangeable.
    """

    kind: OpExprKind
    atom: Optional[Any] = None
    weights: Tuple[complex, ...] = ()
    args: Tuple["OpExpr", ...] = ()

    # keep numpy scalars from broadcasting over the expression
    __array_ufunc__ = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "_dims", self._infer_dims())

    def _infer_dims(self) -> Tuple[int, ...]:
        if self.kind == OpExprKind.ATOM:
            if self.atom is None:
                raise ValueError("ATOM expr must have atom set")
            return (int(self.atom.dim),)

        if self.kind == OpExprKind.SUM:
            if not self.args:
                raise ValueError("SUM requires at least one arg")
            if len(self.weights) != len(self.args):
                raise ValueError(
                    f"SUM has {len(self.args)} args but {len(self.weights)} weights"
                )
            dims = self.args[0].dims
            for a in self.args[1:]:
                if a.dims != dims:
                    raise ValueError(f"SUM addends act on {dims} and {a.dims}")
            return dims

        if self.kind == OpExprKind.TENSOR:
            if len(self.args) != 2:
                raise ValueError("TENSOR requires exactly two args")
            return self.args[0].dims + self.args[1].dims

        if self.kind == OpExprKind.PROD:
            if len(self.args) != 2:
                raise ValueError("PROD requires exactly two args")
            left, right = self.args
            if left.dims != right.dims:
                raise ValueError(f"PROD factors act on {left.dims} and {right.dims}")
            return left.dims

        raise ValueError(f"Unknown OpExprKind: {self.kind}")

    @property
    def dims(self) -> Tuple[int, ...]:
        """Subsystem dimensions in tensor order."""
        return self._dims  # type: ignore[attr-defined]

    @property
    def dim(self) -> int:
        out = 1
        for d in self.dims:
            out *= int(d)
        return out

    @staticmethod
    def leaf(x: Any) -> "OpExpr":
        return OpExpr(kind=OpExprKind.ATOM, atom=x)

    @staticmethod
    def summation(
        xs: Sequence["OpExpr"], weights: Optional[Sequence[complex]] = None
    ) -> "OpExpr":
        xs_t = tuple(xs)
        if not xs_t:
            raise ValueError("SUM requires at least one argument")
        if weights is None:
            w_t = tuple(1.0 + 0.0j for _ in xs_t)
        else:
            w_t = tuple(complex(w) for w in weights)
        return OpExpr(kind=OpExprKind.SUM, weights=w_t, args=xs_t)

    @staticmethod
    def tensor(left: "OpExpr", right: "OpExpr") -> "OpExpr":
        return OpExpr(kind=OpExprKind.TENSOR, args=(left, right))

    @staticmethod
    def product(left: "OpExpr", right: "OpExpr") -> "OpExpr":
        return OpExpr(kind=OpExprKind.PROD, args=(left, right))

    def dag(self) -> "OpExpr":
        """
        Conjugate transpose.

        Atoms are asked for their own adjoint, so time-indexed atoms hand back
        an adjoint that shares their index cell.
        """
        if self.kind == OpExprKind.ATOM:
            return OpExpr.leaf(self.atom.dag())
        if self.kind == OpExprKind.SUM:
            return OpExpr.summation(
                [a.dag() for a in self.args],
                [w.conjugate() for w in self.weights],
            )
        if self.kind == OpExprKind.TENSOR:
            return OpExpr.tensor(self.args[0].dag(), self.args[1].dag())
        if self.kind == OpExprKind.PROD:
            return OpExpr.product(self.args[1].dag(), self.args[0].dag())
        raise ValueError(f"Unknown OpExprKind: {self.kind}")

    # Arithmetic builds new nodes; it never copies atoms.

    def __add__(self, other: Any) -> "OpExpr":
        if not isinstance(other, OpExpr):
            return NotImplemented
        return OpExpr.summation(
            _addends(self) + _addends(other),
            _weights(self) + _weights(other),
        )

    def __radd__(self, other: Any) -> "OpExpr":
        # lets sum([...]) start from 0
        if isinstance(other, numbers.Number) and other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: Any) -> "OpExpr":
        if not isinstance(other, OpExpr):
            return NotImplemented
        return self + (-1.0) * other

    def __neg__(self) -> "OpExpr":
        return (-1.0) * self

    def __mul__(self, other: Any) -> "OpExpr":
        if isinstance(other, numbers.Number):
            return OpExpr.summation(
                _addends(self), [w * complex(other) for w in _weights(self)]
            )
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> "OpExpr":
        if isinstance(other, numbers.Number):
            return self * (1.0 / complex(other))
        return NotImplemented

    def __matmul__(self, other: Any) -> "OpExpr":
        if not isinstance(other, OpExpr):
            return NotImplemented
        return OpExpr.product(self, other)


def _addends(x: OpExpr) -> Tuple[OpExpr, ...]:
    return x.args if x.kind == OpExprKind.SUM else (x,)


def _weights(x: OpExpr) -> Tuple[complex, ...]:
    return x.weights if x.kind == OpExprKind.SUM else (1.0 + 0.0j,)


def tensor(*ops: OpExpr) -> OpExpr:
    """Left-folded pairwise tensor product: tensor(a, b, c) == (a x b) x c."""
    if not ops:
        raise ValueError("tensor requires at least one operator")
    out = ops[0]
    for op in ops[1:]:
        out = OpExpr.tensor(out, op)
    return out
