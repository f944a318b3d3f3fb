import attrs

from equil.properties.base import FluidProperties
from equil.types import FluidPhase

__all__ = ["DensityCalculator"]


@attrs.frozen
class DensityCalculator:
    """
    Phase densities of an equilibration region.

    Every evaluation uses the PVT region of one representative cell,
    the first cell of the equilibration region.
    """

    props: FluidProperties
    """PVT property evaluator."""
    cell: int
    """Representative cell."""

    def __call__(
        self,
        phase: FluidPhase,
        pressure: float,
        temperature: float,
        rs: float = 0.0,
        rv: float = 0.0,
    ) -> float:
        """
        Density of `phase` at the given conditions.

        :param phase: Fluid phase.
        :param pressure: Phase pressure (Pa).
        :param temperature: Temperature (K).
        :param rs: Dissolved gas-oil ratio, used for oil.
        :param rv: Vaporized oil-gas ratio, used for gas.
        :return: Density (kg/m³).
        """
        return self.props.density(self.cell, phase, pressure, temperature, rs, rv)
