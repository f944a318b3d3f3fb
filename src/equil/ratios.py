import typing

import numpy as np
import numpy.typing as npt

from equil.config import Config
from equil.regions import EquilibrationRegion
from equil.types import FluidPhase, OneDimensionalGrid

__all__ = ["compute_miscibility_ratios"]


def compute_miscibility_ratios(
    region: EquilibrationRegion,
    cell_depths: OneDimensionalGrid,
    phase_pressures: typing.Sequence[npt.NDArray[np.float64]],
    saturations: typing.Sequence[npt.NDArray[np.float64]],
    config: typing.Optional[Config] = None,
) -> typing.Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Dissolved gas-oil (Rs) and vaporized oil-gas (Rv) ratios of a region's cells.

    Rs is evaluated at the oil pressure and is saturated wherever free gas is
    present. Rv is evaluated at the gas pressure and is saturated wherever oil
    is present. Both stay zero unless oil and gas are active.

    :param region: Equilibration region.
    :param cell_depths: Depths of the region's cells (m).
    :param phase_pressures: Phase pressures, one array per active phase.
    :param saturations: Phase saturations, one array per active phase.
    :param config: Run configuration.
    :return: (rs, rv) arrays.
    """
    config = config or Config()
    num_cells = len(cell_depths)
    rs = np.zeros(num_cells)
    rv = np.zeros(num_cells)

    usage = region.phase_usage
    if not (usage.oil and usage.gas):
        return rs, rv

    oil = usage.position(FluidPhase.OIL)
    gas = usage.position(FluidPhase.GAS)
    temperature = config.temperature
    for local in range(num_cells):
        depth = float(cell_depths[local])
        rs[local] = region.rs_function(
            depth,
            float(phase_pressures[oil][local]),
            temperature,
            float(saturations[gas][local]),
        )
        rv[local] = region.rv_function(
            depth,
            float(phase_pressures[gas][local]),
            temperature,
            float(saturations[oil][local]),
        )
    return rs, rv
