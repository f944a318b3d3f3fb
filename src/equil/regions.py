import typing

import attrs
import numpy as np
import numpy.typing as npt

from equil.errors import DataInconsistencyError, ValidationError
from equil.types import CellRange, FluidPhase, PhaseUsage

if typing.TYPE_CHECKING:
    from equil.density import DensityCalculator
    from equil.miscibility import MiscibilityFunction
    from equil.records import EquilibrationRecord


__all__ = ["RegionMapping", "EquilibrationRegion"]


class RegionMapping:
    """
    Inverse of a per-cell region id array: the cells of each region.

    Region ids must be non-negative and densely populate `[0, num_regions)`.
    Cells of a region are listed in ascending (grid) order.
    """

    def __init__(self, region_ids: npt.ArrayLike) -> None:
        """
        :param region_ids: Zero-based region id of every cell.
        """
        region_ids = np.asarray(region_ids)
        if region_ids.ndim != 1:
            raise ValidationError("Region ids must be a one-dimensional array.")
        if region_ids.size and not np.issubdtype(region_ids.dtype, np.integer):
            raise ValidationError("Region ids must be integers.")
        region_ids = region_ids.astype(np.int64, copy=False)
        if region_ids.size and region_ids.min() < 0:
            raise ValidationError("Region ids must be non-negative.")

        counts = np.bincount(region_ids) if region_ids.size else np.zeros(0, np.int64)
        empty = np.flatnonzero(counts == 0)
        if empty.size:
            raise DataInconsistencyError(
                f"Region ids do not densely populate [0, {counts.size}): "
                f"no cells in region(s) {empty.tolist()}."
            )

        # Stable sort keeps grid order within each region
        order = np.argsort(region_ids, kind="stable")
        offsets = np.concatenate(([0], np.cumsum(counts)))
        self._region_ids = region_ids
        self._cells = tuple(
            order[offsets[region] : offsets[region + 1]]
            for region in range(counts.size)
        )
        for cells in self._cells:
            cells.setflags(write=False)

    @property
    def num_regions(self) -> int:
        return len(self._cells)

    @property
    def num_cells(self) -> int:
        return int(self._region_ids.size)

    def cells(self, region: int) -> CellRange:
        """
        Global cell indices of `region`.

        :param region: Zero-based region id.
        :return: Read-only array of cell indices in ascending order.
        """
        if not 0 <= region < self.num_regions:
            raise IndexError(
                f"Region {region} out of range [0, {self.num_regions})."
            )
        return self._cells[region]

    def region_of(self, cell: int) -> int:
        """Zero-based region id of `cell`."""
        return int(self._region_ids[cell])

    def __iter__(self) -> typing.Iterator[CellRange]:
        return iter(self._cells)

    def __len__(self) -> int:
        return self.num_regions


@attrs.frozen
class EquilibrationRegion:
    """
    Everything needed to equilibrate one region: its record, the density
    calculator of its representative cell, its Rs and Rv functions and the
    active phases.
    """

    record: "EquilibrationRecord"
    """Equilibration parameters of the region."""
    density: "DensityCalculator"
    """Phase density evaluator for the region."""
    rs_function: "MiscibilityFunction"
    """Dissolved gas-oil ratio function."""
    rv_function: "MiscibilityFunction"
    """Vaporized oil-gas ratio function."""
    phase_usage: PhaseUsage
    """Active phases."""

    @property
    def datum_depth(self) -> float:
        return self.record.datum.depth

    @property
    def datum_pressure(self) -> float:
        return self.record.datum.pressure

    @property
    def water_oil_contact_depth(self) -> float:
        return self.record.water_oil_contact.depth

    @property
    def water_oil_contact_capillary_pressure(self) -> float:
        return self.record.water_oil_contact.capillary_pressure

    @property
    def gas_oil_contact_depth(self) -> float:
        return self.record.gas_oil_contact.depth

    @property
    def gas_oil_contact_capillary_pressure(self) -> float:
        return self.record.gas_oil_contact.capillary_pressure

    def position(self, phase: FluidPhase) -> int:
        return self.phase_usage.position(phase)
