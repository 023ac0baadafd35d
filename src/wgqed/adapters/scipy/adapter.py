from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse
from scipy.integrate import solve_ivp

from wgqed.adapters.qutip.convert import ket_dims, ket_from_vector, vector_from_ket
from wgqed.core.errors import IntegrationError, RatesContractError
from wgqed.core.ir.materialize import materialize_op_expr
from wgqed.core.ir.ops import OpExpr
from wgqed.core.sim.locate import locate_indexed_operators
from wgqed.core.sim.protocols import HamiltonianFn, IntegratorProto, OutputFn, TrajectoryFn
from wgqed.core.sim.timeindex import get_time_indices

logger = logging.getLogger(__name__)


@dataclass
class ScipyAdapter(IntegratorProto):
    """
    solve_ivp backend.

    Conventions:
    - the state is integrated as a flat complex vector; the operator builder f
      receives that working vector itself, fout a QuTiP ket with the dims of
      psi0 built from it at each output time
    - output times are reached by integrating interval by interval, so every
      fout call sees the state exactly at its grid time
    - operators are piecewise constant on (t_a, t_b], so f is queried at times
      pulled strictly inside the output interval being integrated
    - keyword options passed per call override the fields below and are
      forwarded to solve_ivp
    """

    method: str = "RK45"
    rtol: float = 1e-6
    atol: float = 1e-8
    max_step: float = np.inf

    # materialized operators kept per call, keyed by time indices
    cache_size: int = 4096

    def schroedinger_dynamic(
        self,
        tspan: Sequence[float],
        psi0: Any,
        f: HamiltonianFn,
        *,
        fout: OutputFn,
        **options: Any,
    ) -> Tuple[np.ndarray, List[Any]]:
        tspan = np.asarray(tspan, dtype=float)
        dims = ket_dims(psi0)
        y = vector_from_ket(psi0)
        ivp = self._ivp_options(options)
        matrix = _MatrixCache(self.cache_size)
        interval = _Interval()

        def rhs(t: float, x: np.ndarray) -> np.ndarray:
            H = f(interval.inside(t), x)
            return -1j * (matrix(H, x.size) @ x)

        out = [fout(float(tspan[0]), ket_from_vector(y, dims=dims))]
        for t_a, t_b in zip(tspan[:-1], tspan[1:]):
            interval.set(t_a, t_b)
            sol = solve_ivp(rhs, (float(t_a), float(t_b)), y, **ivp)
            y = _final_state(sol, t_a, t_b)
            out.append(fout(float(t_b), ket_from_vector(y, dims=dims)))
        return tspan, out

    def mcwf_dynamic(
        self,
        tspan: Sequence[float],
        psi0: Any,
        f: TrajectoryFn,
        *,
        fout: OutputFn,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        on_jump: Optional[Callable[[float, int], None]] = None,
        **options: Any,
    ) -> Tuple[np.ndarray, List[Any]]:
        """
        One Monte Carlo wavefunction trajectory.

        The unnormalized state follows H - (i/2) sum_k r_k J_k^dag J_k until its
        squared norm drops to a uniform random threshold; then channel k is
        chosen with probability proportional to r_k ||J_k psi||^2, applied,
        and the state renormalized. r_k are the rates returned by f, or 1.
        fout and on_jump(t, k) see normalized states.
        """
        rng = rng if rng is not None else np.random.default_rng(seed)
        tspan = np.asarray(tspan, dtype=float)
        dims = ket_dims(psi0)
        y = vector_from_ket(psi0)
        ivp = self._ivp_options(options)
        matrix = _MatrixCache(self.cache_size)
        interval = _Interval()
        event = _NormThreshold(float(rng.random()))

        def rhs(t: float, x: np.ndarray) -> np.ndarray:
            H, jumps, jumps_dagger, rates = f(interval.inside(t), x)
            r = _check_rates(rates, len(jumps))
            dx = -1j * (matrix(H, x.size) @ x)
            for rk, j, jd in zip(r, jumps, jumps_dagger):
                if rk == 0:
                    continue
                dx -= 0.5 * rk * (matrix(jd, x.size) @ (matrix(j, x.size) @ x))
            return dx

        def jump(t: float, x: np.ndarray) -> np.ndarray:
            _, jumps, _, rates = f(interval.inside(t), x)
            r = _check_rates(rates, len(jumps))
            candidates = [matrix(j, x.size) @ x for j in jumps]
            weights = np.array(
                [rk * float(np.vdot(c, c).real) for rk, c in zip(r, candidates)]
            )
            total = float(weights.sum()) if len(weights) else 0.0
            if not total > 0:
                raise IntegrationError(
                    f"Norm threshold reached at t={t} but no jump channel has weight"
                )
            k = int(rng.choice(len(candidates), p=weights / total))
            new = candidates[k] / np.linalg.norm(candidates[k])
            logger.debug("Quantum jump on channel %s at t=%s", k, t)
            if on_jump is not None:
                on_jump(float(t), k)
            return new

        out = [fout(float(tspan[0]), ket_from_vector(_normalized(y), dims=dims))]
        t = float(tspan[0])
        n_jumps = 0
        for t_b in tspan[1:]:
            t_b = float(t_b)
            interval.set(t, t_b)
            while t < t_b:
                sol = solve_ivp(rhs, (t, t_b), y, events=event, **ivp)
                if sol.status == 1:
                    t = float(sol.t_events[0][-1])
                    y = jump(t, sol.y_events[0][-1])
                    n_jumps += 1
                    event.threshold = float(rng.random())
                else:
                    y = _final_state(sol, t, t_b)
                    t = t_b
            out.append(fout(t_b, ket_from_vector(_normalized(y), dims=dims)))
        logger.info("MCWF trajectory finished with %s jumps", n_jumps)
        return tspan, out

    def _ivp_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        ivp: Dict[str, Any] = {
            "method": self.method,
            "rtol": self.rtol,
            "atol": self.atol,
            "max_step": self.max_step,
        }
        ivp.update(options)
        return ivp


class _Interval:
    """Current output interval (t_a, t_b]; maps solver times into its interior."""

    # relative inset from both ends
    edge = 1e-6

    def __init__(self) -> None:
        self.lo = 0.0
        self.hi = 0.0

    def set(self, lo: float, hi: float) -> None:
        self.lo = float(lo)
        self.hi = float(hi)

    def inside(self, t: float) -> float:
        pad = self.edge * (self.hi - self.lo)
        return min(max(float(t), self.lo + pad), self.hi - pad)


class _NormThreshold:
    """Terminal solve_ivp event: squared norm falls through the threshold."""

    terminal = True
    direction = -1

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def __call__(self, t: float, x: np.ndarray) -> float:
        return float(np.vdot(x, x).real) - self.threshold


class _MatrixCache:
    def __init__(self, maxsize: int) -> None:
        self._maxsize = int(maxsize)
        self._atoms: Dict[int, Tuple[OpExpr, Tuple[Any, ...]]] = {}
        self._mats: Dict[Tuple[int, Tuple[int, ...]], sparse.csr_matrix] = {}

    def __call__(self, expr: OpExpr, D: int) -> sparse.csr_matrix:
        entry = self._atoms.get(id(expr))
        if entry is None or entry[0] is not expr:
            entry = (expr, locate_indexed_operators(expr))
            self._atoms[id(expr)] = entry
        key = (id(expr), get_time_indices(entry[1]))
        mat = self._mats.get(key)
        if mat is None:
            mat = materialize_op_expr(expr)
            if mat.shape != (D, D):
                raise ValueError(
                    f"Operator of shape {mat.shape} does not act on a state of size {D}"
                )
            if len(self._mats) >= self._maxsize:
                self._mats.clear()
            self._mats[key] = mat
        return mat


def _check_rates(rates: Optional[Sequence[float]], n: int) -> Sequence[float]:
    if rates is None:
        return [1.0] * n
    rates = list(rates)
    if len(rates) != n:
        raise RatesContractError(
            f"Got {len(rates)} jump rates for {n} jump operators"
        )
    return [float(r) for r in rates]


def _final_state(sol: Any, t_a: float, t_b: float) -> np.ndarray:
    if not sol.success:
        raise IntegrationError(f"solve_ivp failed on [{t_a}, {t_b}]: {sol.message}")
    y = sol.y[:, -1]
    if not np.all(np.isfinite(y)):
        raise IntegrationError(f"Non-finite state at t={t_b}")
    return y


def _normalized(y: np.ndarray) -> np.ndarray:
    return y / np.linalg.norm(y)
