"""
Phase saturations from phase pressure differences.

Water saturation follows from inverting the oil-water capillary pressure
Pcow = Po - Pw and gas saturation from inverting the gas-oil capillary
pressure Pcgo = Pg - Po. Oil takes up the rest of the pore space.
"""

import logging
import typing

import attrs
import numpy as np
import numpy.typing as npt
from scipy.optimize import brentq

from equil.config import Config
from equil.errors import ComputationError, UnsupportedConfigurationError
from equil.properties.base import SaturationProperties
from equil.regions import EquilibrationRegion
from equil.types import CellRange, FluidPhase, OneDimensionalGrid

logger = logging.getLogger(__name__)

__all__ = [
    "SaturationResult",
    "saturation_from_capillary_pressure",
    "saturation_from_depth",
    "saturation_from_sum_of_capillary_pressures",
    "is_constant_capillary_pressure",
    "compute_phase_saturations",
]


@attrs.frozen
class SaturationResult:
    """Saturations of one region together with the quantities they adjust."""

    saturations: typing.List[npt.NDArray[np.float64]]
    """One saturation array per active phase, in phase order."""
    phase_pressures: typing.List[npt.NDArray[np.float64]]
    """Phase pressures, with oil reset in overlapping transition zones."""
    capillary_pressure_scaling: npt.NDArray[np.float64]
    """Per-cell oil-water capillary pressure scaling factor (1 when unscaled)."""


def _solve(
    residual: typing.Callable[[float], float],
    s0: float,
    s1: float,
    config: Config,
) -> float:
    """Root of `residual` between `s0` and `s1`, which must bracket it."""
    lower, upper = min(s0, s1), max(s0, s1)
    try:
        root = brentq(
            residual,
            a=lower,
            b=upper,
            xtol=config.saturation_tolerance,
            maxiter=config.max_iterations,
        )
    except (RuntimeError, ValueError) as exc:
        raise ComputationError(
            f"Failed to invert capillary pressure on [{lower}, {upper}]: {exc}"
        ) from exc
    return float(root)  # type: ignore[arg-type]


def saturation_from_capillary_pressure(
    props: SaturationProperties,
    cell: int,
    phase: FluidPhase,
    capillary_pressure: float,
    increasing: bool = False,
    scaling: float = 1.0,
    config: typing.Optional[Config] = None,
) -> float:
    """
    Invert a monotone capillary pressure curve.

    Targets beyond the curve's range map to the nearest end of the
    saturation domain.

    :param props: Capillary pressure evaluator.
    :param cell: Cell whose curve is inverted.
    :param phase: Water (curve decreasing in Sw) or gas (curve increasing in Sg).
    :param capillary_pressure: Target capillary pressure (Pa).
    :param increasing: Whether the curve increases with saturation.
    :param scaling: Factor applied to the curve before inversion.
    :param config: Run configuration (root finder tolerance and iterations).
    :return: Saturation of `phase`.
    """
    config = config or Config()
    saturation_range = props.saturation_range(cell, phase)
    s0 = saturation_range.max if increasing else saturation_range.min
    s1 = saturation_range.min if increasing else saturation_range.max

    def residual(saturation: float) -> float:
        return (
            scaling * props.capillary_pressure(cell, phase, saturation)
            - capillary_pressure
        )

    if residual(s0) <= 0.0:
        return s0
    if residual(s1) > 0.0:
        return s1
    return _solve(residual, s0, s1, config)


def saturation_from_depth(
    props: SaturationProperties,
    cell: int,
    phase: FluidPhase,
    depth: float,
    contact_depth: float,
) -> float:
    """
    Saturation across a sharp contact, for constant capillary pressure curves.

    - Water: minimum above the water-oil contact, maximum at and below it.
    - Gas: maximum above the gas-oil contact, minimum at and below it.

    :param props: Capillary pressure evaluator.
    :param cell: Cell whose saturation domain is used.
    :param phase: Water or gas.
    :param depth: Cell depth (m).
    :param contact_depth: Depth of the phase's contact with oil (m).
    :return: Saturation of `phase`.
    """
    saturation_range = props.saturation_range(cell, phase)
    above_contact = depth < contact_depth
    if phase == FluidPhase.GAS:
        return saturation_range.max if above_contact else saturation_range.min
    return saturation_range.min if above_contact else saturation_range.max


def saturation_from_sum_of_capillary_pressures(
    props: SaturationProperties,
    cell: int,
    capillary_pressure: float,
    config: typing.Optional[Config] = None,
) -> float:
    """
    Water saturation solving Pcow(Sw) + Pcgo(1 - Sw) = Pg - Pw.

    Used where the gas-oil and oil-water transition zones overlap and gas
    sits directly on water.

    :param props: Capillary pressure evaluator.
    :param cell: Cell whose curves are used.
    :param capillary_pressure: Gas-water pressure difference Pg - Pw (Pa).
    :param config: Run configuration.
    :return: Water saturation.
    """
    config = config or Config()
    saturation_range = props.saturation_range(cell, FluidPhase.WATER)
    s0, s1 = saturation_range.min, saturation_range.max

    def residual(water_saturation: float) -> float:
        return (
            props.capillary_pressure(cell, FluidPhase.WATER, water_saturation)
            + props.capillary_pressure(cell, FluidPhase.GAS, 1.0 - water_saturation)
            - capillary_pressure
        )

    if residual(s0) <= 0.0:
        return s0
    if residual(s1) > 0.0:
        return s1
    return _solve(residual, s0, s1, config)


def is_constant_capillary_pressure(
    props: SaturationProperties,
    cell: int,
    phase: FluidPhase,
    threshold: float = 0.0,
) -> bool:
    """Whether `phase`'s monotone curve is flat to within `threshold` (Pa) in `cell`."""
    saturation_range = props.saturation_range(cell, phase)
    low = props.capillary_pressure(cell, phase, saturation_range.min)
    high = props.capillary_pressure(cell, phase, saturation_range.max)
    return abs(high - low) <= threshold


def _phase_saturation(
    props: SaturationProperties,
    cell: int,
    phase: FluidPhase,
    capillary_pressure: float,
    depth: float,
    contact_depth: float,
    config: Config,
) -> float:
    if is_constant_capillary_pressure(
        props, cell, phase, config.constant_capillary_pressure_threshold
    ):
        return saturation_from_depth(props, cell, phase, depth, contact_depth)
    return saturation_from_capillary_pressure(
        props,
        cell,
        phase,
        capillary_pressure,
        increasing=phase == FluidPhase.GAS,
        config=config,
    )


def _water_saturation_from_swatinit(
    props: SaturationProperties,
    cell: int,
    capillary_pressure: float,
    initial_saturation: float,
    depth: float,
    contact_depth: float,
    config: Config,
) -> typing.Tuple[float, float]:
    """
    Honour a prescribed initial water saturation by scaling the cell's
    oil-water capillary pressure curve.

    :return: (water saturation, capillary pressure scaling factor)
    """
    constants = config.constants
    saturation_range = props.saturation_range(cell, FluidPhase.WATER)
    if initial_saturation <= saturation_range.min:
        return saturation_range.min, 1.0
    if initial_saturation >= saturation_range.max:
        return saturation_range.max, 1.0
    if capillary_pressure <= constants.FREE_WATER_CAPILLARY_PRESSURE:
        # Free water zone
        return saturation_range.max, 1.0

    curve_value = props.capillary_pressure(cell, FluidPhase.WATER, initial_saturation)
    if abs(curve_value) <= constants.FREE_WATER_CAPILLARY_PRESSURE:
        logger.warning(
            f"Cell {cell}: SWATINIT value {initial_saturation} lies where the oil-water "
            f"capillary pressure vanishes and cannot be honoured; using the unscaled curve."
        )
    elif capillary_pressure / curve_value <= 0.0:
        logger.warning(
            f"Cell {cell}: SWATINIT value {initial_saturation} gives a capillary pressure "
            f"of opposite sign to the hydrostatic one and cannot be honoured; "
            f"using the unscaled curve."
        )
    else:
        return initial_saturation, capillary_pressure / curve_value

    water_saturation = _phase_saturation(
        props,
        cell,
        FluidPhase.WATER,
        capillary_pressure,
        depth,
        contact_depth,
        config,
    )
    return water_saturation, 1.0


def compute_phase_saturations(
    region: EquilibrationRegion,
    props: SaturationProperties,
    cells: CellRange,
    cell_depths: OneDimensionalGrid,
    phase_pressures: typing.Sequence[npt.NDArray[np.float64]],
    initial_water_saturation: typing.Optional[npt.NDArray[np.float64]] = None,
    config: typing.Optional[Config] = None,
) -> SaturationResult:
    """
    Saturations of every active phase in the cells of one region.

    Per cell:
    1. Water saturation from Pcow = Po - Pw, or from a prescribed initial
       water saturation through a scaled curve.
    2. Gas saturation from Pcgo = Pg - Po.
    3. If Sw + Sg > 1 the transition zones overlap: Sw is recomputed from the
       gas-water pressure difference, Sg = 1 - Sw and the oil pressure is reset
       to Pg - Pcgo(Sg). A prescribed water saturation is not honoured there.
    4. So = 1 - Sw - Sg.

    Curves that are constant within `config.constant_capillary_pressure_threshold`
    place a sharp saturation step at the phase's contact.

    :param region: Equilibration region.
    :param props: Capillary pressure evaluator.
    :param cells: Global indices of the region's cells.
    :param cell_depths: Depths of the region's cells (m).
    :param phase_pressures: Phase pressures of the region's cells, one array
        per active phase in phase order.
    :param initial_water_saturation: Optional prescribed initial water
        saturation of the region's cells.
    :param config: Run configuration.
    :return: A `SaturationResult`.
    """
    config = config or Config()
    usage = region.phase_usage
    if not usage.oil:
        raise UnsupportedConfigurationError(
            "Equilibration requires an active oil phase."
        )

    num_cells = len(cells)
    oil_position = usage.position(FluidPhase.OIL)
    pressures = [np.array(pressure, dtype=np.float64) for pressure in phase_pressures]
    oil_pressure = pressures[oil_position]
    water_pressure = pressures[usage.position(FluidPhase.WATER)] if usage.water else None
    gas_pressure = pressures[usage.position(FluidPhase.GAS)] if usage.gas else None

    water_saturation = np.zeros(num_cells)
    gas_saturation = np.zeros(num_cells)
    scaling = np.ones(num_cells)

    for local, cell in enumerate(cells):
        cell = int(cell)
        depth = float(cell_depths[local])

        if water_pressure is not None:
            pcow = float(oil_pressure[local] - water_pressure[local])
            if initial_water_saturation is not None:
                water_saturation[local], scaling[local] = _water_saturation_from_swatinit(
                    props,
                    cell,
                    pcow,
                    float(initial_water_saturation[local]),
                    depth,
                    region.water_oil_contact_depth,
                    config,
                )
            else:
                water_saturation[local] = _phase_saturation(
                    props,
                    cell,
                    FluidPhase.WATER,
                    pcow,
                    depth,
                    region.water_oil_contact_depth,
                    config,
                )

        if gas_pressure is not None:
            pcgo = float(gas_pressure[local] - oil_pressure[local])
            gas_saturation[local] = _phase_saturation(
                props,
                cell,
                FluidPhase.GAS,
                pcgo,
                depth,
                region.gas_oil_contact_depth,
                config,
            )

        if (
            water_pressure is not None
            and gas_pressure is not None
            and water_saturation[local] + gas_saturation[local] > 1.0
        ):
            pcgw = float(gas_pressure[local] - water_pressure[local])
            water_saturation[local] = saturation_from_sum_of_capillary_pressures(
                props, cell, pcgw, config=config
            )
            gas_saturation[local] = 1.0 - water_saturation[local]
            scaling[local] = 1.0
            oil_pressure[local] = gas_pressure[local] - props.capillary_pressure(
                cell, FluidPhase.GAS, gas_saturation[local]
            )

    oil_saturation = 1.0 - water_saturation - gas_saturation
    by_phase = {
        FluidPhase.WATER: water_saturation,
        FluidPhase.OIL: oil_saturation,
        FluidPhase.GAS: gas_saturation,
    }
    return SaturationResult(
        saturations=[by_phase[phase] for phase in usage.active_phases],
        phase_pressures=pressures,
        capillary_pressure_scaling=scaling,
    )
