import math

import numpy as np
import pytest

from equil import (
    Config,
    DensityCalculator,
    EquilibrationRecord,
    EquilibrationRegion,
    FluidPhase,
    HydrostaticPressureProfile,
    NoMixing,
    PhaseUsage,
    RK4IVP,
    UnsupportedConfigurationError,
    ValidationError,
    compute_phase_pressures,
    get_integration_span,
)

from conftest import BAR, OIL_DENSITY, WATER_DENSITY

GRAVITY = 9.80665


def _region(props, items, phase_usage=None):
    return EquilibrationRegion(
        record=EquilibrationRecord.from_items(items),
        density=DensityCalculator(props, 0),
        rs_function=NoMixing(),
        rv_function=NoMixing(),
        phase_usage=phase_usage or PhaseUsage(water=True, oil=True, gas=False),
    )


def test_rk4_exponential_growth():
    solution = RK4IVP(lambda x, y: y, (0.0, 1.0), 1.0, steps=100)

    assert solution(0.0) == 1.0
    assert solution(1.0) == pytest.approx(math.e, rel=1e-8)
    assert solution(0.37) == pytest.approx(math.exp(0.37), rel=1e-6)


def test_rk4_backward_integration():
    solution = RK4IVP(lambda x, y: 2.0 * x, (1.0, -1.0), 1.0, steps=50)
    xs = np.linspace(-1.0, 1.0, 9)

    np.testing.assert_allclose(solution(xs), xs**2, atol=1e-10)


def test_rk4_zero_length_span():
    solution = RK4IVP(lambda x, y: 1.0, (5.0, 5.0), 3.0, steps=10)

    assert solution(5.0) == 3.0
    assert solution(7.0) == 3.0


def test_rk4_requires_a_step():
    with pytest.raises(ValidationError):
        RK4IVP(lambda x, y: 1.0, (0.0, 1.0), 0.0, steps=0)


def test_profile_reproduces_anchor():
    profile = HydrostaticPressureProfile(
        lambda z, p: 1.0e4, (0.0, 100.0), anchor_depth=40.0, anchor_pressure=2.0e6, steps=10
    )

    assert profile(40.0) == 2.0e6
    assert profile(0.0) == pytest.approx(2.0e6 - 4.0e5)
    assert profile(100.0) == pytest.approx(2.0e6 + 6.0e5)


def test_integration_span_covers_cells_and_contacts(three_phase_props):
    region = _region(
        three_phase_props,
        [2000.0, 300.0 * BAR, 2100.0, 0.0, 1900.0],
        phase_usage=PhaseUsage(water=True, oil=True, gas=True),
    )

    assert get_integration_span(region, np.array([1950.0, 2050.0])) == (1900.0, 2100.0)
    assert get_integration_span(region, np.array([1800.0, 2200.0])) == (1800.0, 2200.0)


def test_integration_span_ignores_inactive_contacts(oil_water_props):
    region = _region(oil_water_props, [2000.0, 300.0 * BAR, 2100.0, 0.0, 1900.0])

    assert get_integration_span(region, np.array([1950.0, 2050.0])) == (1950.0, 2100.0)


def test_oil_water_hydrostatic_pressures(oil_water_props):
    region = _region(oil_water_props, [2000.0, 300.0 * BAR, 2020.0, 0.5 * BAR, 1900.0])
    depths = np.linspace(1950.0, 2050.0, 11)

    water, oil = compute_phase_pressures(region, depths, Config())

    np.testing.assert_allclose(
        oil, 300.0 * BAR + OIL_DENSITY * GRAVITY * (depths - 2000.0), rtol=1e-10
    )
    water_at_contact = 300.0 * BAR + OIL_DENSITY * GRAVITY * 20.0 - 0.5 * BAR
    np.testing.assert_allclose(
        water,
        water_at_contact + WATER_DENSITY * GRAVITY * (depths - 2020.0),
        rtol=1e-10,
    )
    assert oil[5] == 300.0 * BAR
    assert oil[7] - water[7] == pytest.approx(0.5 * BAR)
    assert np.all(np.diff(oil) > 0.0)


def test_gravity_is_configurable(oil_water_props):
    region = _region(oil_water_props, [2000.0, 300.0 * BAR, 2000.0, 0.0, 2000.0])
    depths = np.array([1990.0, 2010.0])

    _, oil = compute_phase_pressures(region, depths, Config(gravity=10.0))
    np.testing.assert_allclose(oil, [300.0 * BAR - 8.0e4, 300.0 * BAR + 8.0e4])


def test_gas_pressure_anchored_at_gas_oil_contact(three_phase_props):
    usage = PhaseUsage(water=True, oil=True, gas=True)
    region = _region(
        three_phase_props,
        [2000.0, 300.0 * BAR, 2020.0, 0.0, 1980.0, 0.2 * BAR],
        phase_usage=usage,
    )
    depths = np.array([1960.0, 1980.0, 2000.0, 2020.0, 2040.0])

    water, oil, gas = compute_phase_pressures(region, depths, Config())

    assert oil[2] == 300.0 * BAR
    assert gas[1] - oil[1] == pytest.approx(0.2 * BAR)
    assert oil[3] - water[3] == pytest.approx(0.0, abs=1e-6)
    # Gas is lighter than oil, oil lighter than water
    assert gas[4] - gas[0] < oil[4] - oil[0] < water[4] - water[0]


def test_datum_outside_oil_zone(oil_water_props):
    region = _region(oil_water_props, [2100.0, 300.0 * BAR, 2050.0, 0.0, 1900.0])
    with pytest.raises(UnsupportedConfigurationError):
        compute_phase_pressures(region, np.array([2000.0]))


def test_oil_gas_run_ignores_water_oil_contact(three_phase_props):
    region = _region(
        three_phase_props,
        [2000.0, 300.0 * BAR],
        phase_usage=PhaseUsage(water=False, oil=True, gas=True),
    )
    depths = np.array([1990.0, 2000.0, 2010.0])

    oil, gas = compute_phase_pressures(region, depths, Config())

    assert oil[1] == 300.0 * BAR
    assert np.all(np.diff(oil) > 0.0)
    assert np.all(np.diff(gas) > 0.0)


def test_oil_water_run_ignores_gas_oil_contact(oil_water_props):
    region = _region(oil_water_props, [2000.0, 300.0 * BAR, 2050.0, 0.0, 2100.0])
    depths = np.array([1990.0, 2000.0, 2010.0])

    _, oil = compute_phase_pressures(region, depths, Config())

    np.testing.assert_allclose(
        oil, 300.0 * BAR + OIL_DENSITY * GRAVITY * (depths - 2000.0), rtol=1e-10
    )


def test_oil_phase_required(oil_water_props):
    region = _region(
        oil_water_props,
        [2000.0, 300.0 * BAR, 2050.0, 0.0, 1900.0],
        phase_usage=PhaseUsage(water=True, oil=False, gas=True),
    )
    with pytest.raises(UnsupportedConfigurationError):
        compute_phase_pressures(region, np.array([2000.0]))


def test_density_calculator_uses_representative_cell(oil_water_props):
    density = DensityCalculator(oil_water_props, 3)
    assert density(FluidPhase.OIL, 300.0 * BAR, 293.15) == OIL_DENSITY
    assert density(FluidPhase.WATER, 300.0 * BAR, 293.15) == WATER_DENSITY
