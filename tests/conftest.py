import numpy as np
import pytest

from equil import (
    BlackOilFluidProperties,
    CellGrid,
    FluidPhase,
    IncompressibleFluidProperties,
    PhaseUsage,
    PressureTable,
    PropertyEvaluator,
    SaturationFunctions,
    SaturationFunctionTable,
)

BAR = 1.0e5
OIL_DENSITY = 800.0
WATER_DENSITY = 1000.0


def make_incompressible_props(
    water_saturation=(0.0, 1.0), oil_water_capillary_pressure=(0.0, 0.0)
) -> PropertyEvaluator:
    fluid = IncompressibleFluidProperties(
        surface_densities={
            FluidPhase.WATER: WATER_DENSITY,
            FluidPhase.OIL: OIL_DENSITY,
        },
        formation_volume_factors={FluidPhase.WATER: 1.0, FluidPhase.OIL: 1.0},
        viscosities={FluidPhase.WATER: 5.0e-4, FluidPhase.OIL: 1.0e-3},
    )
    table = SaturationFunctionTable.from_columns(
        water_saturation=water_saturation,
        oil_water_capillary_pressure=oil_water_capillary_pressure,
    )
    return PropertyEvaluator(fluid, SaturationFunctions(tables=[table]))


def make_black_oil_fluid() -> BlackOilFluidProperties:
    return BlackOilFluidProperties(
        phase_usage=PhaseUsage(water=True, oil=True, gas=True),
        oil_surface_density=OIL_DENSITY,
        water_surface_density=WATER_DENSITY,
        gas_surface_density=0.8,
        gas_formation_volume_factor=PressureTable(
            pressures=[1.0 * BAR, 500.0 * BAR], values=[0.9, 0.003]
        ),
        saturated_rs_table=PressureTable(
            pressures=[1.0 * BAR, 500.0 * BAR], values=[0.0, 200.0]
        ),
        saturated_rv_table=PressureTable(
            pressures=[1.0 * BAR, 500.0 * BAR], values=[0.0, 1.0e-4]
        ),
    )


def make_three_phase_props() -> PropertyEvaluator:
    table = SaturationFunctionTable.from_columns(
        water_saturation=[0.2, 1.0],
        oil_water_capillary_pressure=[0.0, 0.0],
        gas_saturation=[0.0, 0.7],
        gas_oil_capillary_pressure=[0.0, 0.0],
    )
    return PropertyEvaluator(
        make_black_oil_fluid(), SaturationFunctions(tables=[table])
    )


@pytest.fixture
def oil_water_props():
    """Incompressible oil and water with zero capillary pressure."""
    return make_incompressible_props()


@pytest.fixture
def transition_zone_props():
    """Incompressible oil and water with a water-oil transition zone."""
    return make_incompressible_props(
        water_saturation=[0.2, 0.6, 1.0],
        oil_water_capillary_pressure=[1.0e5, 2.0e4, 0.0],
    )


@pytest.fixture
def three_phase_props():
    return make_three_phase_props()


@pytest.fixture
def column_grid():
    """Eleven cells from 1950 m to 2050 m, 10 m apart."""
    return CellGrid(cell_depths=np.linspace(1950.0, 2050.0, 11))
