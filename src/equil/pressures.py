"""
Hydrostatic phase pressure integration.

Each phase pressure obeys dp/dz = ρ(z, p)·g with depth z positive downward.
Oil is anchored at the datum, water at the water-oil contact and gas at the
gas-oil contact. The ODE is integrated with fixed-step RK4 away from each
anchor, once upward and once downward, and evaluated at cell depths through
Hermite dense output.
"""

import logging
import typing

import numpy as np
import numpy.typing as npt

from equil.config import Config
from equil.errors import UnsupportedConfigurationError, ValidationError
from equil.regions import EquilibrationRegion
from equil.types import FloatOrArray, FluidPhase, OneDimensionalGrid

logger = logging.getLogger(__name__)

__all__ = [
    "RK4IVP",
    "HydrostaticPressureProfile",
    "get_integration_span",
    "compute_phase_pressures",
]

RightHandSide = typing.Callable[[float, float], float]
"""dy/dx as a function of (x, y)."""


class RK4IVP:
    """
    Fixed-step fourth order Runge-Kutta solution of an initial value problem
    dy/dx = f(x, y), y(span[0]) = y0.

    The solution between steps uses Shampine's cubic Hermite interpolant, so
    it reproduces the stored values exactly at the step points.
    """

    def __init__(
        self,
        f: RightHandSide,
        span: typing.Tuple[float, float],
        y0: float,
        steps: int,
    ) -> None:
        """
        :param f: Right hand side dy/dx = f(x, y).
        :param span: Start and end of the integration interval. The end may
            lie before the start, in which case the integration runs backward.
        :param y0: Value at `span[0]`.
        :param steps: Number of RK4 steps.
        """
        if steps < 1:
            raise ValidationError("RK4 integration needs at least one step.")

        self.span = (float(span[0]), float(span[1]))
        self.steps = steps
        self.stepsize = (self.span[1] - self.span[0]) / steps

        h = self.stepsize
        y = np.empty(steps + 1)
        f_values = np.empty(steps + 1)
        y[0] = y0
        if h == 0.0:
            y[:] = y0
            f_values[:] = 0.0
        else:
            x = self.span[0]
            for i in range(steps):
                k1 = f(x, y[i])
                k2 = f(x + h / 2, y[i] + h / 2 * k1)
                k3 = f(x + h / 2, y[i] + h / 2 * k2)
                k4 = f(x + h, y[i] + h * k3)
                f_values[i] = k1
                y[i + 1] = y[i] + h / 6 * (k1 + 2 * (k2 + k3) + k4)
                x = self.span[0] + (i + 1) * h
            f_values[steps] = f(x, y[steps])

        self.y = y
        self.f = f_values

    def __call__(self, x: FloatOrArray) -> FloatOrArray:
        """
        Dense output at `x`.

        Points outside the span use the interpolant of the nearest step.

        :param x: Abscissa(e).
        :return: Interpolated solution value(s), matching the input type.
        """
        x_array = np.asarray(x, dtype=np.float64)
        if self.stepsize == 0.0:
            result = np.full_like(x_array, self.y[0])
        else:
            h = self.stepsize
            a = self.span[0]
            i = np.clip(np.floor((x_array - a) / h), 0, self.steps - 1).astype(np.int64)
            t = (x_array - (a + i * h)) / h
            y0, y1 = self.y[i], self.y[i + 1]
            f0, f1 = self.f[i], self.f[i + 1]

            u = (1 - 2 * t) * (y1 - y0)
            u += h * ((t - 1) * f0 + t * f1)
            u *= t * (t - 1)
            u += (1 - t) * y0 + t * y1
            result = u

        if np.ndim(x) == 0:
            return float(result)
        return result


class HydrostaticPressureProfile:
    """
    Pressure of one phase as a function of depth, integrated upward and
    downward from an anchor depth.
    """

    def __init__(
        self,
        f: RightHandSide,
        span: typing.Tuple[float, float],
        anchor_depth: float,
        anchor_pressure: float,
        steps: int,
    ) -> None:
        """
        :param f: dp/dz = f(z, p).
        :param span: (shallowest, deepest) depth to cover.
        :param anchor_depth: Depth at which the pressure is known.
        :param anchor_pressure: Pressure at `anchor_depth`.
        :param steps: RK4 steps on each leg.
        """
        self.anchor_depth = anchor_depth
        self.anchor_pressure = anchor_pressure
        self.upward = RK4IVP(f, (anchor_depth, span[0]), anchor_pressure, steps)
        self.downward = RK4IVP(f, (anchor_depth, span[1]), anchor_pressure, steps)

    def __call__(self, depth: FloatOrArray) -> FloatOrArray:
        depth_array = np.asarray(depth, dtype=np.float64)
        result = np.where(
            depth_array < self.anchor_depth,
            self.upward(depth_array),
            self.downward(depth_array),
        )
        if np.ndim(depth) == 0:
            return float(result)
        return result


def get_integration_span(
    region: EquilibrationRegion, cell_depths: OneDimensionalGrid
) -> typing.Tuple[float, float]:
    """
    Depth interval covering a region's cells, its datum and the contacts
    of its active phases.

    :param region: Equilibration region.
    :param cell_depths: Depths of the region's cells (m).
    :return: (shallowest, deepest) depth.
    """
    depths = [region.datum_depth]
    if region.phase_usage.water:
        depths.append(region.water_oil_contact_depth)
    if region.phase_usage.gas:
        depths.append(region.gas_oil_contact_depth)
    if len(cell_depths):
        depths.extend((float(np.min(cell_depths)), float(np.max(cell_depths))))
    return min(depths), max(depths)


def _oil_gradient(region: EquilibrationRegion, config: Config) -> RightHandSide:
    gas_active = region.phase_usage.gas
    temperature = config.temperature
    gravity = config.gravity

    def gradient(depth: float, pressure: float) -> float:
        rs = region.rs_function(depth, pressure, temperature) if gas_active else 0.0
        return (
            region.density(FluidPhase.OIL, pressure, temperature, rs=rs) * gravity
        )

    return gradient


def _water_gradient(region: EquilibrationRegion, config: Config) -> RightHandSide:
    temperature = config.temperature
    gravity = config.gravity

    def gradient(depth: float, pressure: float) -> float:
        return region.density(FluidPhase.WATER, pressure, temperature) * gravity

    return gradient


def _gas_gradient(region: EquilibrationRegion, config: Config) -> RightHandSide:
    oil_active = region.phase_usage.oil
    temperature = config.temperature
    gravity = config.gravity

    def gradient(depth: float, pressure: float) -> float:
        rv = region.rv_function(depth, pressure, temperature) if oil_active else 0.0
        return (
            region.density(FluidPhase.GAS, pressure, temperature, rv=rv) * gravity
        )

    return gradient


def compute_phase_pressures(
    region: EquilibrationRegion,
    cell_depths: OneDimensionalGrid,
    config: typing.Optional[Config] = None,
) -> typing.List[npt.NDArray[np.float64]]:
    """
    Hydrostatic pressure of every active phase in the cells of one region.

    The oil pressure equals the datum pressure at the datum depth. The water
    pressure is offset from oil by the water-oil contact capillary pressure
    at the water-oil contact and the gas pressure by the gas-oil contact
    capillary pressure at the gas-oil contact. Densities are evaluated at the
    running RK4 estimate of the pressure, without fixed-point refinement.

    :param region: Equilibration region.
    :param cell_depths: Depths of the region's cells (m).
    :param config: Run configuration.
    :return: One pressure array (Pa) per active phase, in phase order.
    :raises UnsupportedConfigurationError: If oil is inactive or the datum
        lies outside the oil zone.
    """
    config = config or Config()
    usage = region.phase_usage
    if not usage.oil:
        raise UnsupportedConfigurationError(
            "Equilibration requires an active oil phase."
        )
    if not region.record.datum_in_oil_zone(usage):
        raise UnsupportedConfigurationError(
            f"Datum depth {region.datum_depth} must lie between the gas-oil contact "
            f"({region.gas_oil_contact_depth}) and the water-oil contact "
            f"({region.water_oil_contact_depth})."
        )

    cell_depths = np.asarray(cell_depths, dtype=np.float64)
    span = get_integration_span(region, cell_depths)
    steps = config.integration_steps
    logger.debug(f"Integrating phase pressures over depths [{span[0]}, {span[1]}]")

    oil = HydrostaticPressureProfile(
        _oil_gradient(region, config),
        span,
        anchor_depth=region.datum_depth,
        anchor_pressure=region.datum_pressure,
        steps=steps,
    )
    profiles = {FluidPhase.OIL: oil}

    if usage.water:
        woc = region.water_oil_contact_depth
        profiles[FluidPhase.WATER] = HydrostaticPressureProfile(
            _water_gradient(region, config),
            span,
            anchor_depth=woc,
            anchor_pressure=oil(woc) - region.water_oil_contact_capillary_pressure,
            steps=steps,
        )
    if usage.gas:
        goc = region.gas_oil_contact_depth
        profiles[FluidPhase.GAS] = HydrostaticPressureProfile(
            _gas_gradient(region, config),
            span,
            anchor_depth=goc,
            anchor_pressure=oil(goc) + region.gas_oil_contact_capillary_pressure,
            steps=steps,
        )

    return [
        np.asarray(profiles[phase](cell_depths), dtype=np.float64)
        for phase in usage.active_phases
    ]
