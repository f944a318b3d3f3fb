import typing

from equil.types import FluidPhase, PhaseUsage, Range


__all__ = ["FluidProperties", "SaturationProperties", "BlackOilProperties"]


@typing.runtime_checkable
class FluidProperties(typing.Protocol):
    """
    Protocol for a PVT property evaluator.

    All quantities are SI: pressures in Pa, temperatures in K,
    densities in kg/m³ and miscibility ratios in sm³/sm³.
    """

    @property
    def phase_usage(self) -> PhaseUsage:
        """Active phases and their array positions."""
        ...

    @property
    def num_phases(self) -> int:
        """Number of active phases."""
        ...

    def density(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        """
        Reservoir density of `phase` in `cell`.

        :param cell: Cell whose PVT region is used.
        :param phase: Fluid phase.
        :param pressure: Phase pressure (Pa).
        :param temperature: Temperature (K).
        :param rs: Dissolved gas-oil ratio (only affects oil).
        :param rv: Vaporized oil-gas ratio (only affects gas).
        :return: Density (kg/m³).
        """
        ...

    def formation_volume_factor(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        """Reservoir volume per surface volume of `phase` (rm³/sm³)."""
        ...

    def viscosity(
        self,
        cell: int,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        """Viscosity of `phase` (Pa·s)."""
        ...

    def saturated_rs(self, cell: int, pressure: float, temperature: float) -> float:
        """Dissolved gas-oil ratio of oil saturated with gas at `pressure`."""
        ...

    def saturated_rv(self, cell: int, pressure: float, temperature: float) -> float:
        """Vaporized oil-gas ratio of gas saturated with oil at `pressure`."""
        ...


@typing.runtime_checkable
class SaturationProperties(typing.Protocol):
    """
    Protocol for a capillary pressure evaluator.

    Water curves are Pcow(Sw) = po - pw, non-increasing in Sw.
    Gas curves are Pcgo(Sg) = pg - po, non-decreasing in Sg.
    """

    def saturation_range(self, cell: int, phase: FluidPhase) -> Range:
        """Tabulated saturation domain of `phase` in `cell`."""
        ...

    def capillary_pressure(
        self, cell: int, phase: FluidPhase, saturation: float
    ) -> float:
        """Capillary pressure (Pa) of `phase` against oil at `saturation`."""
        ...


@typing.runtime_checkable
class BlackOilProperties(FluidProperties, SaturationProperties, typing.Protocol):
    """Combined PVT and capillary pressure evaluator."""

    ...
