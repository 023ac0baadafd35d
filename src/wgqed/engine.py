from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from wgqed.core.ir.ops import OpExpr
from wgqed.core.sim.audit import AuditOptions, audit_problem
from wgqed.core.sim.capture import ObservableFn
from wgqed.core.sim.drivers import evolve, evolve_trajectory
from wgqed.core.sim.protocols import IntegratorProto
from wgqed.core.sim.types import EvolutionProblem
from wgqed.core.types import TimeGrid

logger = logging.getLogger(__name__)


def _default_adapter() -> IntegratorProto:
    # Late import to avoid core depending on SciPy's integrators
    from wgqed.adapters.scipy.adapter import ScipyAdapter

    return ScipyAdapter()


@dataclass
class WaveguideEngine:
    """
    Facade bundling an integrator, default solve options and an optional
    pre-flight audit around the two evolution drivers.
    """

    adapter: Optional[IntegratorProto] = None
    audit: bool = False
    audit_options: Optional[AuditOptions] = None
    solve_options: Optional[Mapping[str, Any]] = None

    def problem(
        self,
        times: Any,
        psi0: Any,
        hamiltonian: OpExpr,
        jump_operators: Sequence[OpExpr] = (),
    ) -> EvolutionProblem:
        return EvolutionProblem(
            grid=TimeGrid.from_sequence(times),
            psi0=psi0,
            hamiltonian=hamiltonian,
            jump_operators=tuple(jump_operators),
        )

    def run_audit(self, problem: EvolutionProblem) -> Dict[str, Any]:
        report = audit_problem(problem, options=self.audit_options)
        logger.info(
            "Audit: dims=%s, %s grid points, %s/%s time-indexed operators (H/J)",
            report["dims"],
            report["tlist_N"],
            report["H_indexed_ops"],
            report["J_indexed_ops"],
        )
        if report["waveguide_short"]:
            logger.warning(
                "Waveguide bases with %s bins are shorter than the %s-point grid",
                report["waveguide_short"],
                report["tlist_N"],
            )
        if not report["H"].get("op_is_hermitian", True):
            logger.warning(
                "Hamiltonian is not Hermitian at index %s (max err %s)",
                report["sample_index"],
                report["H"]["op_hermitian_max_abs_err"],
            )
        return report

    def evolve(
        self,
        times: Any,
        psi0: Any,
        hamiltonian: OpExpr,
        fout: Optional[ObservableFn] = None,
        **options: Any,
    ) -> Any:
        problem = self.problem(times, psi0, hamiltonian)
        if self.audit:
            _ = self.run_audit(problem)
        return evolve(
            problem.grid,
            psi0,
            hamiltonian,
            fout,
            integrator=self.adapter or _default_adapter(),
            **self._options(options),
        )

    def evolve_trajectory(
        self,
        times: Any,
        psi0: Any,
        hamiltonian: OpExpr,
        jump_operators: Sequence[OpExpr],
        fout: Optional[ObservableFn] = None,
        **options: Any,
    ) -> Any:
        problem = self.problem(times, psi0, hamiltonian, jump_operators)
        if self.audit:
            _ = self.run_audit(problem)
        return evolve_trajectory(
            problem.grid,
            psi0,
            hamiltonian,
            problem.jump_operators,
            fout,
            integrator=self.adapter or _default_adapter(),
            **self._options(options),
        )

    def _options(self, options: Mapping[str, Any]) -> Dict[str, Any]:
        merged: Dict[str, Any] = dict(self.solve_options or {})
        merged.update(options)
        return merged
