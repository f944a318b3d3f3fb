import logging

import numpy as np
import pytest

from equil import (
    ComputationError,
    Config,
    DensityCalculator,
    EquilibrationRecord,
    EquilibrationRegion,
    FluidPhase,
    NoMixing,
    PhaseUsage,
    SaturationFunctions,
    SaturationFunctionTable,
    compute_phase_saturations,
    is_constant_capillary_pressure,
    saturation_from_capillary_pressure,
    saturation_from_depth,
    saturation_from_sum_of_capillary_pressures,
)

from conftest import BAR, make_three_phase_props


@pytest.fixture
def curves():
    """Linear oil-water and gas-oil capillary pressure curves."""
    table = SaturationFunctionTable.from_columns(
        water_saturation=[0.2, 0.6, 1.0],
        oil_water_capillary_pressure=[1.0e5, 2.0e4, 0.0],
        gas_saturation=[0.0, 0.8],
        gas_oil_capillary_pressure=[0.0, 3.0e4],
    )
    return SaturationFunctions(tables=[table])


@pytest.fixture
def overlap_curves():
    table = SaturationFunctionTable.from_columns(
        water_saturation=[0.2, 1.0],
        oil_water_capillary_pressure=[2.0e4, 0.0],
        gas_saturation=[0.0, 0.8],
        gas_oil_capillary_pressure=[0.0, 3.0e4],
    )
    return SaturationFunctions(tables=[table])


def _region(items, phase_usage):
    return EquilibrationRegion(
        record=EquilibrationRecord.from_items(items),
        density=DensityCalculator(make_three_phase_props(), 0),
        rs_function=NoMixing(),
        rv_function=NoMixing(),
        phase_usage=phase_usage,
    )


@pytest.mark.parametrize(
    "capillary_pressure, expected",
    [(6.0e4, 0.4), (2.0e4, 0.6), (2.0e5, 0.2), (-1.0, 1.0)],
)
def test_water_saturation_from_capillary_pressure(curves, capillary_pressure, expected):
    saturation = saturation_from_capillary_pressure(
        curves, 0, FluidPhase.WATER, capillary_pressure
    )
    assert saturation == pytest.approx(expected, abs=1e-5)


@pytest.mark.parametrize(
    "capillary_pressure, expected",
    [(1.5e4, 0.4), (5.0e4, 0.8), (-1.0, 0.0)],
)
def test_gas_saturation_from_capillary_pressure(curves, capillary_pressure, expected):
    saturation = saturation_from_capillary_pressure(
        curves, 0, FluidPhase.GAS, capillary_pressure, increasing=True
    )
    assert saturation == pytest.approx(expected, abs=1e-5)


def test_scaled_inversion(curves):
    saturation = saturation_from_capillary_pressure(
        curves, 0, FluidPhase.WATER, 1.2e5, scaling=2.0
    )
    assert saturation == pytest.approx(0.4, abs=1e-5)


def test_root_finder_failure_is_reported(curves):
    config = Config(max_iterations=1, saturation_tolerance=1e-12)
    with pytest.raises(ComputationError):
        saturation_from_capillary_pressure(
            curves, 0, FluidPhase.WATER, 5.3e4, config=config
        )


def test_saturation_from_depth(curves):
    assert saturation_from_depth(curves, 0, FluidPhase.WATER, 1990.0, 2000.0) == 0.2
    assert saturation_from_depth(curves, 0, FluidPhase.WATER, 2000.0, 2000.0) == 1.0
    assert saturation_from_depth(curves, 0, FluidPhase.GAS, 1990.0, 2000.0) == 0.8
    assert saturation_from_depth(curves, 0, FluidPhase.GAS, 2000.0, 2000.0) == 0.0


def test_constant_curve_detection(curves, oil_water_props):
    assert not is_constant_capillary_pressure(curves, 0, FluidPhase.WATER)
    assert is_constant_capillary_pressure(oil_water_props, 0, FluidPhase.WATER)


def test_sum_of_capillary_pressures(overlap_curves):
    water_saturation = saturation_from_sum_of_capillary_pressures(
        overlap_curves, 0, 2.0e4
    )
    assert water_saturation == pytest.approx(0.68, abs=1e-5)


def test_overlapping_transition_zones(overlap_curves):
    usage = PhaseUsage(water=True, oil=True, gas=True)
    region = _region([2000.0, 100.0 * BAR, 2100.0, 0.0, 1900.0], usage)
    oil_pressure = np.array([100.0 * BAR])
    pressures = [oil_pressure, oil_pressure.copy(), oil_pressure + 1.5e4]

    result = compute_phase_saturations(
        region, overlap_curves, np.array([0]), np.array([2000.0]), pressures
    )
    water, oil, gas = result.saturations

    assert water[0] == pytest.approx(0.76, abs=1e-5)
    assert gas[0] == pytest.approx(1.0 - water[0])
    assert oil[0] == pytest.approx(0.0, abs=1e-12)
    assert result.phase_pressures[1][0] == pytest.approx(100.0 * BAR + 6.0e3, abs=1.0)
    # Input pressures are left alone
    assert pressures[1][0] == 100.0 * BAR


def test_saturations_sum_to_one_and_stay_in_range(curves):
    usage = PhaseUsage(water=True, oil=True, gas=True)
    region = _region([2000.0, 100.0 * BAR, 2100.0, 0.0, 1900.0], usage)
    num_cells = 25
    rng = np.random.default_rng(0)
    oil_pressure = np.full(num_cells, 100.0 * BAR)
    pressures = [
        oil_pressure - rng.uniform(-1.0e4, 1.2e5, num_cells),
        oil_pressure,
        oil_pressure + rng.uniform(-1.0e4, 4.0e4, num_cells),
    ]

    result = compute_phase_saturations(
        region,
        curves,
        np.arange(num_cells),
        np.linspace(1950.0, 2050.0, num_cells),
        pressures,
    )
    water, oil, gas = result.saturations

    np.testing.assert_allclose(water + oil + gas, 1.0, atol=1e-12)
    assert np.all((water >= 0.2) & (water <= 1.0))
    assert np.all((gas >= 0.0) & (gas <= 0.8))
    assert np.all(oil >= -1e-12)


def test_sharp_contact_for_constant_curves(oil_water_props):
    region = _region([2000.0, 100.0 * BAR, 2000.0, 0.0, 2000.0], PhaseUsage())
    depths = np.array([1990.0, 2000.0, 2010.0])
    pressures = [np.full(3, 100.0 * BAR), np.full(3, 100.0 * BAR)]

    result = compute_phase_saturations(
        region, oil_water_props, np.arange(3), depths, pressures
    )
    water, oil = result.saturations

    np.testing.assert_array_equal(water, [0.0, 1.0, 1.0])
    np.testing.assert_array_equal(oil, [1.0, 0.0, 0.0])


def test_initial_water_saturation_scales_curve(curves):
    region = _region([2000.0, 100.0 * BAR, 2100.0, 0.0, 1900.0], PhaseUsage())
    pcow = np.array([8.0e4, 3.0e4, 0.0, 5.0e4])
    oil_pressure = np.full(4, 100.0 * BAR)
    pressures = [oil_pressure - pcow, oil_pressure]
    swatinit = np.array([0.4, 0.4, 0.4, 0.1])

    result = compute_phase_saturations(
        region,
        curves,
        np.arange(4),
        np.full(4, 2000.0),
        pressures,
        initial_water_saturation=swatinit,
    )
    (water, _), scaling = result.saturations, result.capillary_pressure_scaling

    np.testing.assert_allclose(water, [0.4, 0.4, 1.0, 0.2])
    np.testing.assert_allclose(scaling, [8.0 / 6.0, 3.0 / 6.0, 1.0, 1.0])
    for cell in range(2):
        assert scaling[cell] * curves.capillary_pressure(
            cell, FluidPhase.WATER, swatinit[cell]
        ) == pytest.approx(pcow[cell])


def test_unusable_initial_water_saturation_is_logged(caplog):
    table = SaturationFunctionTable.from_columns(
        water_saturation=[0.2, 0.8, 1.0],
        oil_water_capillary_pressure=[1.0e5, 0.0, 0.0],
    )
    curves = SaturationFunctions(tables=[table])
    region = _region([2000.0, 100.0 * BAR, 2100.0, 0.0, 1900.0], PhaseUsage())
    pressures = [np.array([100.0 * BAR - 6.0e4]), np.array([100.0 * BAR])]

    with caplog.at_level(logging.WARNING, logger="equil.saturations"):
        result = compute_phase_saturations(
            region,
            curves,
            np.array([0]),
            np.array([2000.0]),
            pressures,
            initial_water_saturation=np.array([0.9]),
        )

    assert result.saturations[0][0] == pytest.approx(0.44, abs=1e-5)
    assert result.capillary_pressure_scaling[0] == 1.0
    assert "SWATINIT" in caplog.text


@pytest.fixture
def signed_curves():
    """Oil-water curve that changes sign inside its saturation range."""
    table = SaturationFunctionTable.from_columns(
        water_saturation=[0.2, 0.8],
        oil_water_capillary_pressure=[1.0e5, -1.0e4],
    )
    return SaturationFunctions(tables=[table])


def _water_from_initial_saturation(curves, pcow, initial_saturation):
    region = _region([2000.0, 100.0 * BAR, 2100.0, 0.0, 1900.0], PhaseUsage())
    pressures = [np.array([100.0 * BAR - pcow]), np.array([100.0 * BAR])]
    result = compute_phase_saturations(
        region,
        curves,
        np.array([0]),
        np.array([2000.0]),
        pressures,
        initial_water_saturation=np.array([initial_saturation]),
    )
    return result.saturations[0][0], result.capillary_pressure_scaling[0]


def test_initial_water_saturation_above_range_is_clamped(signed_curves):
    water, scaling = _water_from_initial_saturation(signed_curves, 5.0e4, 0.95)

    assert water == 0.8
    assert scaling == 1.0


def test_initial_water_saturation_with_opposite_sign_is_not_honoured(
    signed_curves, caplog
):
    with caplog.at_level(logging.WARNING, logger="equil.saturations"):
        water, scaling = _water_from_initial_saturation(signed_curves, 5.0e4, 0.75)

    assert water == pytest.approx(0.2 + 0.6 * 5.0e4 / 1.1e5, abs=1e-5)
    assert 0.2 <= water <= 0.8
    assert scaling == 1.0
    assert "opposite sign" in caplog.text
