from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import pint
from pint import DimensionalityError

from wgqed.core.types import TimeGrid

ureg = pint.UnitRegistry()

Quantity = Any

hbar = ureg.Quantity(1.054571817e-34, "J*s")


def Q(value: Any, units: str) -> Quantity:
    """Quantity in the package registry."""
    return ureg.Quantity(value, units)


def as_quantity(x: Any, units: str) -> Quantity:
    """
    x as a pint quantity in `units`. Plain numbers are taken to already be
    in `units`; a quantity of another dimensionality raises TypeError.
    """
    if not isinstance(x, ureg.Quantity):
        x = Q(x, units)
    try:
        return x.to(units)
    except DimensionalityError as e:
        raise TypeError(f"Cannot express {x:~P} in {units}") from e


def magnitude(x: Any, units: str) -> float:
    return float(as_quantity(x, units).magnitude)


def magnitudes(x: Any, units: str) -> np.ndarray:
    """Array version of magnitude(); plain sequences pass through as floats."""
    if not isinstance(x, ureg.Quantity):
        x = np.asarray(x, dtype=float)
    return np.asarray(as_quantity(x, units).magnitude, dtype=float)


@dataclass(frozen=True)
class UnitSystem:
    """
    Solver units for a waveguide model.

    Solver time is physical time divided by time_unit_s, so the grid spacing
    dt and all rates handed to operator expressions are plain floats:
    rate_solver = rate * time_unit_s. Energies become angular frequencies
    through E / hbar first.
    """

    time_unit_s: float

    def _per_unit(self, x: Any, units: str) -> float:
        return magnitude(x, units) * self.time_unit_s

    def t_to_solver(self, t: Any) -> float:
        return magnitude(t, "s") / self.time_unit_s

    def t_from_solver(self, t_solver: float) -> Quantity:
        return Q(float(t_solver) * self.time_unit_s, "s")

    def rate_to_solver(self, gamma: Any) -> float:
        return self._per_unit(gamma, "1/s")

    def omega_to_solver(self, omega: Any) -> float:
        return self._per_unit(omega, "rad/s")

    def energy_to_omega_solver(self, E: Any) -> float:
        # plain numbers are eV
        return self._per_unit(as_quantity(E, "eV") / hbar, "rad/s")

    def bin_coupling(self, gamma: Any, dt: Any) -> float:
        """
        sqrt(gamma / dt) in solver units: the strength with which an emitter
        decaying at `gamma` couples to a single time bin of width `dt`.
        """
        return math.sqrt(self.rate_to_solver(gamma) / self.t_to_solver(dt))

    def time_grid(self, t_end: Any, dt: Any, *, t_start: Any = 0.0) -> TimeGrid:
        return TimeGrid.uniform(
            self.t_to_solver(t_end),
            self.t_to_solver(dt),
            t_start=self.t_to_solver(t_start),
        )
