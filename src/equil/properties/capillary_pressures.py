"""Tabulated capillary pressure functions for equilibration."""

import typing

import attrs
import numpy as np
import numpy.typing as npt

from equil.errors import DataInconsistencyError, ValidationError
from equil.types import FloatOrArray, FluidPhase, Range


__all__ = [
    "TwoPhaseCapillaryPressureTable",
    "SaturationFunctionTable",
    "SaturationFunctions",
]

_FULL_RANGE = Range(min=0.0, max=1.0)


@attrs.frozen
class TwoPhaseCapillaryPressureTable:
    """
    Capillary pressure of one phase against oil, tabulated versus
    that phase's saturation.

    - Water tables hold Pcow = Po - Pw against Sw (non-increasing).
    - Gas tables hold Pcgo = Pg - Po against Sg (non-decreasing).

    Uses `np.interp` for interpolation, with constant extrapolation
    beyond the tabulated saturations.
    """

    phase: FluidPhase
    """The phase whose saturation tabulates the curve, water or gas."""
    saturation: npt.NDArray[np.floating] = attrs.field(
        converter=lambda value: np.asarray(value, dtype=np.float64)
    )
    """Saturation values of `phase`, strictly increasing within [0, 1]."""
    capillary_pressure: npt.NDArray[np.floating] = attrs.field(
        converter=lambda value: np.asarray(value, dtype=np.float64)
    )
    """Capillary pressure values (Pa) corresponding to `saturation`."""

    def __attrs_post_init__(self) -> None:
        if self.phase == FluidPhase.OIL:
            raise ValidationError(
                "Capillary pressure tables are tabulated against water or gas saturation."
            )
        if len(self.saturation) != len(self.capillary_pressure):
            raise DataInconsistencyError(
                f"Saturation and pressure arrays must have same length. "
                f"Got {len(self.saturation)} vs {len(self.capillary_pressure)}"
            )
        if len(self.saturation) < 2:
            raise ValidationError("At least 2 points required for interpolation")
        if np.any(np.diff(self.saturation) <= 0):
            raise ValidationError(
                f"{self.phase.value.capitalize()} saturation must be strictly increasing"
            )
        if self.saturation[0] < 0.0 or self.saturation[-1] > 1.0:
            raise ValidationError("Saturations must lie within [0, 1].")

        slope = np.diff(self.capillary_pressure)
        if self.phase == FluidPhase.WATER and np.any(slope > 0):
            raise ValidationError(
                "Oil-water capillary pressure must be non-increasing in water saturation."
            )
        if self.phase == FluidPhase.GAS and np.any(slope < 0):
            raise ValidationError(
                "Gas-oil capillary pressure must be non-decreasing in gas saturation."
            )

    @property
    def saturation_range(self) -> Range:
        """Saturation domain covered by the table."""
        return Range(min=float(self.saturation[0]), max=float(self.saturation[-1]))

    def get_capillary_pressure(self, saturation: FloatOrArray) -> FloatOrArray:
        """
        Get capillary pressure at given saturation(s).

        :param saturation: Saturation of `phase` (scalar or array).
        :return: Capillary pressure value(s) - type matches input type.
        """
        result = np.interp(
            x=saturation,
            xp=self.saturation,
            fp=self.capillary_pressure,
            left=self.capillary_pressure[0],
            right=self.capillary_pressure[-1],
        )
        if np.isscalar(saturation):
            return float(result)
        return result

    def __call__(self, saturation: FloatOrArray, **kwargs: typing.Any) -> FloatOrArray:
        return self.get_capillary_pressure(saturation)


@attrs.frozen
class SaturationFunctionTable:
    """
    Capillary pressure curves of one saturation region.

    A missing table means the phase is absent from the region's
    saturation functions.
    """

    water: typing.Optional[TwoPhaseCapillaryPressureTable] = None
    """Oil-water capillary pressure against water saturation."""
    gas: typing.Optional[TwoPhaseCapillaryPressureTable] = None
    """Gas-oil capillary pressure against gas saturation."""

    def __attrs_post_init__(self) -> None:
        if self.water is not None and self.water.phase != FluidPhase.WATER:
            raise ValidationError("`water` table must be tabulated against water saturation.")
        if self.gas is not None and self.gas.phase != FluidPhase.GAS:
            raise ValidationError("`gas` table must be tabulated against gas saturation.")

    def table(self, phase: FluidPhase) -> TwoPhaseCapillaryPressureTable:
        table = self.water if phase == FluidPhase.WATER else self.gas
        if table is None:
            raise ValidationError(
                f"No capillary pressure table is defined for phase '{phase.value}'."
            )
        return table

    def saturation_range(self, phase: FluidPhase) -> Range:
        if phase == FluidPhase.OIL:
            return _FULL_RANGE
        return self.table(phase).saturation_range

    def capillary_pressure(self, phase: FluidPhase, saturation: float) -> float:
        if phase == FluidPhase.OIL:
            return 0.0
        return self.table(phase).get_capillary_pressure(saturation)  # type: ignore[return-value]

    @classmethod
    def from_columns(
        cls,
        water_saturation: typing.Optional[npt.ArrayLike] = None,
        oil_water_capillary_pressure: typing.Optional[npt.ArrayLike] = None,
        gas_saturation: typing.Optional[npt.ArrayLike] = None,
        gas_oil_capillary_pressure: typing.Optional[npt.ArrayLike] = None,
    ) -> "SaturationFunctionTable":
        """
        Build a region table from saturation/capillary pressure columns.

        :param water_saturation: Water saturation column.
        :param oil_water_capillary_pressure: Pcow column (Pa).
        :param gas_saturation: Gas saturation column.
        :param gas_oil_capillary_pressure: Pcgo column (Pa).
        :return: A new `SaturationFunctionTable`.
        """
        water = gas = None
        if water_saturation is not None:
            if oil_water_capillary_pressure is None:
                raise DataInconsistencyError(
                    "Water saturation column given without capillary pressure column."
                )
            water = TwoPhaseCapillaryPressureTable(
                phase=FluidPhase.WATER,
                saturation=water_saturation,
                capillary_pressure=oil_water_capillary_pressure,
            )
        if gas_saturation is not None:
            if gas_oil_capillary_pressure is None:
                raise DataInconsistencyError(
                    "Gas saturation column given without capillary pressure column."
                )
            gas = TwoPhaseCapillaryPressureTable(
                phase=FluidPhase.GAS,
                saturation=gas_saturation,
                capillary_pressure=gas_oil_capillary_pressure,
            )
        return cls(water=water, gas=gas)


def _to_region_array(value: typing.Optional[npt.ArrayLike]):
    if value is None:
        return None
    return np.asarray(value, dtype=np.int64)


@attrs.frozen
class SaturationFunctions:
    """
    Per-cell capillary pressure evaluator.

    Each cell uses the table selected by its 1-based saturation region
    number; without a region array every cell uses the first table.
    """

    tables: typing.Tuple[SaturationFunctionTable, ...] = attrs.field(converter=tuple)
    """Saturation function tables, one per saturation region."""
    satnum: typing.Optional[npt.NDArray[np.integer]] = attrs.field(
        default=None, converter=_to_region_array
    )
    """1-based saturation region number per cell."""

    def __attrs_post_init__(self) -> None:
        if not self.tables:
            raise ValidationError("At least one saturation function table is required.")
        if self.satnum is not None:
            if self.satnum.size and (
                self.satnum.min() < 1 or self.satnum.max() > len(self.tables)
            ):
                raise DataInconsistencyError(
                    f"Saturation region numbers must lie in [1, {len(self.tables)}]."
                )

    def table_for(self, cell: int) -> SaturationFunctionTable:
        if self.satnum is None:
            return self.tables[0]
        return self.tables[int(self.satnum[cell]) - 1]

    def saturation_range(self, cell: int, phase: FluidPhase) -> Range:
        return self.table_for(cell).saturation_range(phase)

    def capillary_pressure(
        self, cell: int, phase: FluidPhase, saturation: float
    ) -> float:
        return self.table_for(cell).capillary_pressure(phase, saturation)

    def has_phase(self, phase: FluidPhase) -> bool:
        """Whether every table defines a curve for `phase`."""
        if phase == FluidPhase.OIL:
            return True
        attribute = "water" if phase == FluidPhase.WATER else "gas"
        return all(getattr(table, attribute) is not None for table in self.tables)
