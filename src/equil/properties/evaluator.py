import attrs

from equil.errors import MissingInputError
from equil.properties.base import FluidProperties, SaturationProperties
from equil.types import FluidPhase, PhaseUsage, Range


__all__ = ["PropertyEvaluator"]


@attrs.frozen
class PropertyEvaluator:
    """
    Combines a PVT evaluator and a capillary pressure evaluator into the
    single property object consumed by the equilibration.
    """

    fluid: FluidProperties
    """PVT property evaluator."""
    saturation_functions: SaturationProperties
    """Capillary pressure evaluator."""

    def __attrs_post_init__(self) -> None:
        has_phase = getattr(self.saturation_functions, "has_phase", None)
        if has_phase is None:
            return
        for phase in (FluidPhase.WATER, FluidPhase.GAS):
            if self.phase_usage.is_active(phase) and not has_phase(phase):
                raise MissingInputError(
                    f"Phase '{phase.value}' is active but has no capillary pressure table."
                )

    @property
    def phase_usage(self) -> PhaseUsage:
        return self.fluid.phase_usage

    @property
    def num_phases(self) -> int:
        return self.fluid.num_phases

    def density(self, cell, phase, pressure, temperature, rs=0.0, rv=0.0) -> float:
        return self.fluid.density(cell, phase, pressure, temperature, rs, rv)

    def formation_volume_factor(
        self, cell, phase, pressure, temperature, rs=0.0, rv=0.0
    ) -> float:
        return self.fluid.formation_volume_factor(
            cell, phase, pressure, temperature, rs, rv
        )

    def viscosity(self, cell, phase, pressure, temperature, rs=0.0, rv=0.0) -> float:
        return self.fluid.viscosity(cell, phase, pressure, temperature, rs, rv)

    def saturated_rs(self, cell: int, pressure: float, temperature: float) -> float:
        return self.fluid.saturated_rs(cell, pressure, temperature)

    def saturated_rv(self, cell: int, pressure: float, temperature: float) -> float:
        return self.fluid.saturated_rv(cell, pressure, temperature)

    def saturation_range(self, cell: int, phase: FluidPhase) -> Range:
        return self.saturation_functions.saturation_range(cell, phase)

    def capillary_pressure(
        self, cell: int, phase: FluidPhase, saturation: float
    ) -> float:
        return self.saturation_functions.capillary_pressure(cell, phase, saturation)
