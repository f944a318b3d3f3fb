"""Equilibration of the initial reservoir state."""

from concurrent.futures import ThreadPoolExecutor
import logging
from os import PathLike
import typing

import attrs
import numpy as np
import numpy.typing as npt

from equil._precision import get_dtype
from equil.config import Config
from equil.density import DensityCalculator
from equil.errors import DataInconsistencyError
from equil.grids import Grid
from equil.miscibility import build_rs_functions, build_rv_functions
from equil.pressures import compute_phase_pressures
from equil.properties.base import BlackOilProperties
from equil.ratios import compute_miscibility_ratios
from equil.records import (
    EquilibrationDeck,
    get_equilibration_records,
    get_initial_water_saturation,
    get_region_ids,
)
from equil.regions import EquilibrationRegion, RegionMapping
from equil.saturations import compute_phase_saturations
from equil.types import FluidPhase, PhaseUsage, RegionPartition
from equil.utils import load_from_pickle, save_as_pickle, scatter

logger = logging.getLogger(__name__)

__all__ = [
    "BlackOilState",
    "RegionSolution",
    "InitialStateComputer",
    "compute_surface_volumes",
    "initialize_state_equilibrium",
]


@attrs.define
class BlackOilState:
    """
    Initial black-oil state of every grid cell.

    Per-phase arrays have shape (num_phases, num_cells), with active phases
    in the order water, oil, gas.
    """

    phase_usage: PhaseUsage
    """Active phases."""
    phase_pressures: npt.NDArray[np.floating]
    """Phase pressures (Pa)."""
    saturations: npt.NDArray[np.floating]
    """Phase saturations."""
    rs: npt.NDArray[np.floating]
    """Dissolved gas-oil ratio (sm³/sm³)."""
    rv: npt.NDArray[np.floating]
    """Vaporized oil-gas ratio (sm³/sm³)."""
    surface_volumes: npt.NDArray[np.floating]
    """Surface volume of each component per unit reservoir volume."""
    capillary_pressure_scaling: npt.NDArray[np.floating]
    """Oil-water capillary pressure scaling factor from honouring SWATINIT."""

    @classmethod
    def empty(cls, phase_usage: PhaseUsage, num_cells: int) -> "BlackOilState":
        """
        Zero-filled state.

        :param phase_usage: Active phases.
        :param num_cells: Number of grid cells.
        :return: A new `BlackOilState`.
        """
        dtype = get_dtype()
        num_phases = phase_usage.num_phases
        return cls(
            phase_usage=phase_usage,
            phase_pressures=np.zeros((num_phases, num_cells), dtype=dtype),
            saturations=np.zeros((num_phases, num_cells), dtype=dtype),
            rs=np.zeros(num_cells, dtype=dtype),
            rv=np.zeros(num_cells, dtype=dtype),
            surface_volumes=np.zeros((num_phases, num_cells), dtype=dtype),
            capillary_pressure_scaling=np.ones(num_cells, dtype=dtype),
        )

    @property
    def num_cells(self) -> int:
        return int(self.rs.size)

    @property
    def pressure(self) -> npt.NDArray[np.floating]:
        """Oil pressure (Pa), the primary pressure of the state."""
        return self.phase_pressures[self.phase_usage.position(FluidPhase.OIL)]

    def phase_pressure(self, phase: FluidPhase) -> npt.NDArray[np.floating]:
        return self.phase_pressures[self.phase_usage.position(phase)]

    def saturation(self, phase: FluidPhase) -> npt.NDArray[np.floating]:
        return self.saturations[self.phase_usage.position(phase)]

    def dump(
        self,
        filepath: PathLike,
        exist_ok: bool = True,
        compression: typing.Optional[typing.Literal["gzip", "lzma"]] = "gzip",
        compression_level: int = 6,
    ) -> None:
        """
        Dumps the state to a pickle file.

        :param filepath: The path to the pickle file.
        :param exist_ok: If True, will overwrite existing files.
        :param compression: Compression method - "gzip" (fast, good compression),
            "lzma" (slower, better compression), or None
        :param compression_level: Compression level (1-9 for gzip, 0-9 for lzma)
        """
        save_as_pickle(
            self,
            filepath,
            exist_ok=exist_ok,
            compression=compression,
            compression_level=compression_level,
        )

    @classmethod
    def load(cls, filepath: PathLike) -> "BlackOilState":
        """
        Loads a state from a pickle file.

        :param filepath: The path to the pickle file.
        :return: The loaded `BlackOilState`.
        """
        state = load_from_pickle(filepath)
        if not isinstance(state, cls):
            raise TypeError(
                f"Expected {cls.__name__} instance, got {type(state).__name__} instead."
            )
        return state


@attrs.frozen
class RegionSolution:
    """Equilibrated quantities of one region's cells."""

    cells: npt.NDArray[np.integer]
    phase_pressures: typing.List[npt.NDArray[np.float64]]
    saturations: typing.List[npt.NDArray[np.float64]]
    rs: npt.NDArray[np.float64]
    rv: npt.NDArray[np.float64]
    capillary_pressure_scaling: npt.NDArray[np.float64]


def compute_surface_volumes(
    props: BlackOilProperties,
    cells: npt.NDArray[np.integer],
    phase_pressures: typing.Sequence[npt.NDArray[np.floating]],
    saturations: typing.Sequence[npt.NDArray[np.floating]],
    rs: npt.NDArray[np.floating],
    rv: npt.NDArray[np.floating],
    temperature: float,
) -> typing.List[npt.NDArray[np.float64]]:
    """
    Surface volume of each component per unit reservoir volume.

    - Water: Sw / Bw
    - Oil: So / Bo + Sg · Rv / Bg
    - Gas: Sg / Bg + So · Rs / Bo

    :param props: Property evaluator.
    :param cells: Global cell indices.
    :param phase_pressures: Phase pressures, one array per active phase.
    :param saturations: Phase saturations, one array per active phase.
    :param rs: Dissolved gas-oil ratios.
    :param rv: Vaporized oil-gas ratios.
    :param temperature: Temperature (K).
    :return: One array per active phase, in phase order.
    """
    usage = props.phase_usage
    phases = usage.active_phases
    num_cells = len(cells)
    inverse_fvf = {phase: np.zeros(num_cells) for phase in phases}
    for local, cell in enumerate(cells):
        for position, phase in enumerate(phases):
            inverse_fvf[phase][local] = 1.0 / props.formation_volume_factor(
                int(cell),
                phase,
                float(phase_pressures[position][local]),
                temperature,
                rs=float(rs[local]),
                rv=float(rv[local]),
            )

    by_phase = {
        phase: saturations[position] * inverse_fvf[phase]
        for position, phase in enumerate(phases)
    }
    if usage.oil and usage.gas:
        oil_volume = by_phase[FluidPhase.OIL]
        gas_volume = by_phase[FluidPhase.GAS]
        by_phase[FluidPhase.OIL] = oil_volume + gas_volume * rv
        by_phase[FluidPhase.GAS] = gas_volume + oil_volume * rs
    return [by_phase[phase] for phase in phases]


class InitialStateComputer:
    """
    Computes the equilibrated initial state of every grid cell.

    All inputs are validated and every region is solved on construction.
    The results are held on the instance and are only copied into an
    externally owned state by `write_to`, so a failure leaves that state
    untouched.
    """

    def __init__(
        self,
        grid: Grid,
        props: BlackOilProperties,
        deck: EquilibrationDeck,
        config: typing.Optional[Config] = None,
        partition: typing.Optional[RegionPartition] = None,
    ) -> None:
        """
        :param grid: Grid geometry.
        :param props: Fluid and capillary pressure property evaluator.
        :param deck: Deck data.
        :param config: Run configuration.
        :param partition: Region partition of the grid cells. Built from the
            deck's EQLNUM when not given.
        """
        self.config = config or Config()
        self.props = props
        self.phase_usage = props.phase_usage
        self.num_cells = grid.num_cells

        records = get_equilibration_records(deck)
        self.mapping: RegionPartition = (
            partition
            if partition is not None
            else RegionMapping(get_region_ids(deck, grid))
        )
        num_regions = self.mapping.num_regions
        if num_regions > len(records):
            raise DataInconsistencyError(
                f"Grid has {num_regions} equilibration regions but only "
                f"{len(records)} equilibration record(s) are given."
            )
        if num_regions < len(records):
            logger.warning(
                f"Only {num_regions} of {len(records)} equilibration records are used."
            )
        records = records[:num_regions]

        self.cell_depths = np.asarray(grid.cell_depths, dtype=np.float64)
        if self.cell_depths.size != self.num_cells:
            raise DataInconsistencyError(
                f"Grid reports {self.num_cells} cells but {self.cell_depths.size} depths."
            )
        self.initial_water_saturation = get_initial_water_saturation(deck, grid)

        representative_cells = [
            int(self.mapping.cells(region)[0]) for region in range(num_regions)
        ]
        temperature = self.config.temperature
        rs_functions = build_rs_functions(
            deck, records, props, representative_cells, temperature
        )
        rv_functions = build_rv_functions(
            deck, records, props, representative_cells, temperature
        )
        self.regions = [
            EquilibrationRegion(
                record=records[region],
                density=DensityCalculator(props, representative_cells[region]),
                rs_function=rs_functions[region],
                rv_function=rv_functions[region],
                phase_usage=self.phase_usage,
            )
            for region in range(num_regions)
        ]

        logger.info(
            f"Equilibrating {self.num_cells} cells in {num_regions} region(s)"
        )
        self.solutions = self._solve_regions()
        self._assemble()
        logger.info("Equilibration complete")

    def _solve_region(self, region_index: int) -> RegionSolution:
        region = self.regions[region_index]
        cells = np.asarray(self.mapping.cells(region_index), dtype=np.int64)
        depths = self.cell_depths[cells]
        logger.debug(f"Equilibrating region {region_index} ({len(cells)} cells)")

        pressures = compute_phase_pressures(region, depths, self.config)
        swatinit = (
            self.initial_water_saturation[cells]
            if self.initial_water_saturation is not None
            else None
        )
        result = compute_phase_saturations(
            region,
            self.props,
            cells,
            depths,
            pressures,
            initial_water_saturation=swatinit,
            config=self.config,
        )
        rs, rv = compute_miscibility_ratios(
            region, depths, result.phase_pressures, result.saturations, self.config
        )
        return RegionSolution(
            cells=cells,
            phase_pressures=result.phase_pressures,
            saturations=result.saturations,
            rs=rs,
            rv=rv,
            capillary_pressure_scaling=result.capillary_pressure_scaling,
        )

    def _solve_regions(self) -> typing.List[RegionSolution]:
        region_indices = range(len(self.regions))
        max_workers = self.config.max_workers
        if max_workers is None or max_workers <= 1 or len(self.regions) <= 1:
            return [self._solve_region(index) for index in region_indices]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self._solve_region, region_indices))

    def _assemble(self) -> None:
        dtype = get_dtype()
        num_phases = self.phase_usage.num_phases
        self.phase_pressures = np.zeros((num_phases, self.num_cells), dtype=dtype)
        self.saturations = np.zeros((num_phases, self.num_cells), dtype=dtype)
        self.surface_volumes = np.zeros((num_phases, self.num_cells), dtype=dtype)
        self.rs = np.zeros(self.num_cells, dtype=dtype)
        self.rv = np.zeros(self.num_cells, dtype=dtype)
        self.capillary_pressure_scaling = np.ones(self.num_cells, dtype=dtype)

        for solution in self.solutions:
            cells = solution.cells
            surface_volumes = compute_surface_volumes(
                self.props,
                cells,
                solution.phase_pressures,
                solution.saturations,
                solution.rs,
                solution.rv,
                self.config.temperature,
            )
            for position in range(num_phases):
                scatter(
                    solution.phase_pressures[position],
                    cells,
                    self.phase_pressures[position],
                )
                scatter(
                    solution.saturations[position], cells, self.saturations[position]
                )
                scatter(
                    surface_volumes[position], cells, self.surface_volumes[position]
                )
            scatter(solution.rs, cells, self.rs)
            scatter(solution.rv, cells, self.rv)
            scatter(
                solution.capillary_pressure_scaling,
                cells,
                self.capillary_pressure_scaling,
            )

    def write_to(self, state: BlackOilState) -> BlackOilState:
        """
        Copy the computed quantities into `state`.

        :param state: State sized for the grid and phases of this computation.
        :return: `state`.
        """
        if state.phase_usage != self.phase_usage:
            raise DataInconsistencyError(
                "State phase usage differs from the property evaluator's."
            )
        if state.phase_pressures.shape != self.phase_pressures.shape:
            raise DataInconsistencyError(
                f"State holds arrays of shape {state.phase_pressures.shape}, "
                f"expected {self.phase_pressures.shape}."
            )
        np.copyto(state.phase_pressures, self.phase_pressures)
        np.copyto(state.saturations, self.saturations)
        np.copyto(state.surface_volumes, self.surface_volumes)
        np.copyto(state.rs, self.rs)
        np.copyto(state.rv, self.rv)
        np.copyto(state.capillary_pressure_scaling, self.capillary_pressure_scaling)
        return state

    def to_state(self) -> BlackOilState:
        return self.write_to(BlackOilState.empty(self.phase_usage, self.num_cells))


def initialize_state_equilibrium(
    grid: Grid,
    props: BlackOilProperties,
    deck: EquilibrationDeck,
    state: typing.Optional[BlackOilState] = None,
    config: typing.Optional[Config] = None,
) -> BlackOilState:
    """
    Compute the hydrostatic equilibrium initial state of a reservoir.

    Per equilibration region: phase pressures are integrated from the datum
    and the contacts, saturations follow from inverting the capillary pressure
    curves, and Rs and Rv from the region's miscibility functions. Results
    are scattered into per-cell arrays.

    Example:
    ```python
    import equil

    grid = equil.CellGrid(cell_depths=[2000.0, 2050.0, 2100.0])
    state = equil.initialize_state_equilibrium(grid, props, deck)
    print(state.pressure)
    ```

    :param grid: Grid geometry.
    :param props: Fluid and capillary pressure property evaluator.
    :param deck: Deck data.
    :param state: Optional state to fill. A new one is created if not given.
        It is only written once every region has been equilibrated.
    :param config: Run configuration.
    :return: The filled state.
    """
    computer = InitialStateComputer(grid, props, deck, config=config)
    if state is None:
        return computer.to_state()
    return computer.write_to(state)
