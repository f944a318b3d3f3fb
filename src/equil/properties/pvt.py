"""Fluid (PVT) property evaluators."""

import logging
import math
import typing
import warnings

import attrs
import numpy as np
import numpy.typing as npt

from equil.errors import (
    DataInconsistencyError,
    MissingInputError,
    UnsupportedConfigurationError,
    ValidationError,
)
from equil.types import FluidPhase, PhaseUsage

logger = logging.getLogger(__name__)

__all__ = [
    "PressureTable",
    "IncompressibleFluidProperties",
    "BlackOilFluidProperties",
]


def _as_float_array(value: npt.ArrayLike) -> npt.NDArray[np.floating]:
    return np.asarray(value, dtype=np.float64)


@attrs.frozen
class PressureTable:
    """
    A property tabulated against pressure.

    Linear interpolation, held constant beyond the end points.
    """

    pressures: npt.NDArray[np.floating] = attrs.field(converter=_as_float_array)
    """Pressures (Pa), strictly increasing."""
    values: npt.NDArray[np.floating] = attrs.field(converter=_as_float_array)
    """Property values at `pressures`."""

    def __attrs_post_init__(self) -> None:
        if self.pressures.shape != self.values.shape:
            raise DataInconsistencyError(
                f"Pressure and value columns must have same length. "
                f"Got {self.pressures.size} vs {self.values.size}"
            )
        if self.pressures.size < 1:
            raise ValidationError("Pressure table must hold at least one row.")
        if np.any(np.diff(self.pressures) <= 0):
            raise ValidationError("Table pressures must be strictly increasing.")

    def __call__(self, pressure: float) -> float:
        return float(np.interp(pressure, self.pressures, self.values))


@attrs.frozen
class IncompressibleFluidProperties:
    """
    Incompressible oil-water fluid.

    Reservoir densities are the surface densities divided by the
    (constant) formation volume factors. Gas is not supported.
    """

    surface_densities: typing.Mapping[FluidPhase, float]
    """Surface densities (kg/m³) of water and oil."""
    formation_volume_factors: typing.Mapping[FluidPhase, float]
    """Formation volume factors (rm³/sm³) of water and oil."""
    viscosities: typing.Mapping[FluidPhase, float]
    """Viscosities (Pa·s) of water and oil."""

    def __attrs_post_init__(self) -> None:
        for name in ("surface_densities", "formation_volume_factors", "viscosities"):
            mapping = getattr(self, name)
            missing = {FluidPhase.WATER, FluidPhase.OIL} - set(mapping)
            if missing:
                raise MissingInputError(
                    f"`{name}` lacks entries for: {sorted(p.value for p in missing)}"
                )
            if any(mapping[phase] <= 0 for phase in (FluidPhase.WATER, FluidPhase.OIL)):
                raise ValidationError(f"`{name}` entries must be positive.")

        if self.reservoir_density(FluidPhase.OIL) >= self.reservoir_density(
            FluidPhase.WATER
        ):
            warnings.warn(
                "Reservoir oil density is not lower than water density. "
                "Oil will not float on water in the equilibrated state.",
                UserWarning,
            )

    @property
    def phase_usage(self) -> PhaseUsage:
        return PhaseUsage(water=True, oil=True, gas=False)

    @property
    def num_phases(self) -> int:
        return 2

    def _check_phase(self, phase: FluidPhase) -> None:
        if phase == FluidPhase.GAS:
            raise UnsupportedConfigurationError(
                "Incompressible fluid properties support only water and oil."
            )

    def reservoir_density(self, phase: FluidPhase) -> float:
        self._check_phase(phase)
        return self.surface_densities[phase] / self.formation_volume_factors[phase]

    def density(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        return self.reservoir_density(phase)

    def formation_volume_factor(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        self._check_phase(phase)
        return self.formation_volume_factors[phase]

    def viscosity(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        self._check_phase(phase)
        return self.viscosities[phase]

    def saturated_rs(self, cell: int, pressure: float, temperature: float) -> float:
        return 0.0

    def saturated_rv(self, cell: int, pressure: float, temperature: float) -> float:
        return 0.0

    @classmethod
    def from_deck_values(
        cls,
        phase_usage: PhaseUsage,
        density: typing.Optional[typing.Mapping[str, float]],
        pvtw: typing.Optional[typing.Mapping[str, float]],
        pvcdo: typing.Optional[typing.Mapping[str, float]],
    ) -> "IncompressibleFluidProperties":
        """
        Build from the first record of the DENSITY, PVTW and PVCDO keywords.

        Compressibility and viscosibility entries are ignored; a warning is
        logged when any of them is non-zero.

        :param phase_usage: Active phases of the run. Must be exactly water and oil.
        :param density: Surface densities keyed "oil" and "water" (kg/m³).
        :param pvtw: Water record with "volume_factor", "viscosity" and optionally
            "compressibility" and "viscosibility".
        :param pvcdo: Oil record with the same keys as `pvtw`.
        :return: A new `IncompressibleFluidProperties`.
        """
        if phase_usage.gas or not phase_usage.water or not phase_usage.oil:
            raise UnsupportedConfigurationError(
                "Incompressible fluid properties require water and oil phases (only)."
            )
        if density is None:
            raise MissingInputError("Input is missing DENSITY.")
        if pvtw is None:
            raise MissingInputError("Input is missing PVTW.")
        if pvcdo is None:
            raise MissingInputError("Input is missing PVCDO.")

        for keyword, record in (("PVTW", pvtw), ("PVCDO", pvcdo)):
            if record.get("compressibility", 0.0) != 0.0 or (
                record.get("viscosibility", 0.0) != 0.0
            ):
                logger.warning(f"Compressibility effects in {keyword} are ignored.")

        return cls(
            surface_densities={
                FluidPhase.WATER: density["water"],
                FluidPhase.OIL: density["oil"],
            },
            formation_volume_factors={
                FluidPhase.WATER: pvtw["volume_factor"],
                FluidPhase.OIL: pvcdo["volume_factor"],
            },
            viscosities={
                FluidPhase.WATER: pvtw["viscosity"],
                FluidPhase.OIL: pvcdo["viscosity"],
            },
        )


@attrs.frozen
class BlackOilFluidProperties:
    """
    Simple black-oil fluid with live oil and wet gas.

    - Water and oil formation volume factors follow a constant compressibility
      about `reference_pressure`: B(p) = B_ref · exp(-c · (p - p_ref)).
    - The gas formation volume factor is tabulated against pressure
      (interpolated in 1/Bg).
    - Saturated Rs and Rv are tabulated against pressure.

    Densities follow from mass conservation between surface and reservoir:

        ρo = (ρo,s + Rs·ρg,s) / Bo
        ρg = (ρg,s + Rv·ρo,s) / Bg
        ρw = ρw,s / Bw
    """

    phase_usage: PhaseUsage
    """Active phases."""
    oil_surface_density: float = attrs.field(validator=attrs.validators.gt(0))
    """Oil density at surface conditions (kg/m³)."""
    water_surface_density: float = attrs.field(validator=attrs.validators.gt(0))
    """Water density at surface conditions (kg/m³)."""
    gas_surface_density: float = attrs.field(validator=attrs.validators.gt(0))
    """Gas density at surface conditions (kg/m³)."""
    reference_pressure: float = 1.0e7
    """Pressure (Pa) at which the oil and water reference volume factors apply."""
    oil_formation_volume_factor: float = attrs.field(
        default=1.0, validator=attrs.validators.gt(0)
    )
    oil_compressibility: float = attrs.field(default=0.0, validator=attrs.validators.ge(0))
    """Oil compressibility (1/Pa)."""
    water_formation_volume_factor: float = attrs.field(
        default=1.0, validator=attrs.validators.gt(0)
    )
    water_compressibility: float = attrs.field(
        default=0.0, validator=attrs.validators.ge(0)
    )
    """Water compressibility (1/Pa)."""
    gas_formation_volume_factor: typing.Optional[PressureTable] = None
    """Gas formation volume factor (rm³/sm³) against pressure."""
    saturated_rs_table: typing.Optional[PressureTable] = None
    """Saturated dissolved gas-oil ratio against pressure."""
    saturated_rv_table: typing.Optional[PressureTable] = None
    """Saturated vaporized oil-gas ratio against pressure."""
    oil_viscosity: float = 1.0e-3
    water_viscosity: float = 5.0e-4
    gas_viscosity: float = 2.0e-5

    def __attrs_post_init__(self) -> None:
        if self.phase_usage.gas and self.gas_formation_volume_factor is None:
            raise MissingInputError(
                "Gas is active but no gas formation volume factor table was given."
            )
        if self.gas_formation_volume_factor is not None and np.any(
            self.gas_formation_volume_factor.values <= 0
        ):
            raise ValidationError("Gas formation volume factors must be positive.")

    @property
    def num_phases(self) -> int:
        return self.phase_usage.num_phases

    def _inverse_gas_formation_volume_factor(self, pressure: float) -> float:
        table = typing.cast(PressureTable, self.gas_formation_volume_factor)
        return float(np.interp(pressure, table.pressures, 1.0 / table.values))

    def formation_volume_factor(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        if not self.phase_usage.is_active(phase):
            raise ValidationError(f"Phase '{phase.value}' is not active.")
        if phase == FluidPhase.GAS:
            return 1.0 / self._inverse_gas_formation_volume_factor(pressure)

        if phase == FluidPhase.OIL:
            reference, compressibility = (
                self.oil_formation_volume_factor,
                self.oil_compressibility,
            )
        else:
            reference, compressibility = (
                self.water_formation_volume_factor,
                self.water_compressibility,
            )
        return reference * math.exp(
            -compressibility * (pressure - self.reference_pressure)
        )

    def density(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        volume_factor = self.formation_volume_factor(
            cell, phase, pressure, temperature, rs, rv
        )
        if phase == FluidPhase.OIL:
            return (self.oil_surface_density + rs * self.gas_surface_density) / volume_factor
        if phase == FluidPhase.GAS:
            return (self.gas_surface_density + rv * self.oil_surface_density) / volume_factor
        return self.water_surface_density / volume_factor

    def viscosity(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        return {
            FluidPhase.OIL: self.oil_viscosity,
            FluidPhase.WATER: self.water_viscosity,
            FluidPhase.GAS: self.gas_viscosity,
        }[phase]

    def saturated_rs(self, cell: int, pressure: float, temperature: float) -> float:
        if self.saturated_rs_table is None:
            return 0.0
        return self.saturated_rs_table(pressure)

    def saturated_rv(self, cell: int, pressure: float, temperature: float) -> float:
        if self.saturated_rv_table is None:
            return 0.0
        return self.saturated_rv_table(pressure)
