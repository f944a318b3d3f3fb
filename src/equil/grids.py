import typing

import attrs
import numba
import numpy as np
import numpy.typing as npt
from typing_extensions import Self

from equil._precision import get_dtype
from equil.errors import DataInconsistencyError, ValidationError
from equil.types import OneDimensionalGrid, ThreeDimensionalGrid

__all__ = ["Grid", "CellGrid", "build_depth_grid", "depth_grid"]


@typing.runtime_checkable
class Grid(typing.Protocol):
    """
    Protocol for the grid geometry consumed by the equilibration.

    Only the vertical position of each cell centre matters here.
    """

    @property
    def num_cells(self) -> int:
        """Number of (active) cells in the grid."""
        ...

    @property
    def cell_depths(self) -> OneDimensionalGrid:
        """Cell centre depths, positive downward."""
        ...

    @property
    def global_cell(self) -> typing.Optional[npt.NDArray[np.integer]]:
        """
        Deck (global) index of each cell, or None when the grid
        holds every deck cell in deck order.
        """
        ...


@numba.njit(cache=True)
def _compute_depth_downward(
    thickness_grid: ThreeDimensionalGrid,
    top_depth: float,
) -> ThreeDimensionalGrid:
    """
    Compute cell centre depths from the top of the grid downward.

    :param thickness_grid: 3D array of cell thicknesses (m)
    :param top_depth: Depth of the top face of the first layer (m)
    :return: 3D depth grid (m)
    """
    nx, ny, nz = thickness_grid.shape
    depth_grid = np.zeros_like(thickness_grid)

    depth_grid[:, :, 0] = top_depth + thickness_grid[:, :, 0] / 2
    for k in range(1, nz):
        depth_grid[:, :, k] = (
            depth_grid[:, :, k - 1]
            + thickness_grid[:, :, k - 1] / 2
            + thickness_grid[:, :, k] / 2
        )
    return depth_grid  # type: ignore


def build_depth_grid(
    thickness_grid: ThreeDimensionalGrid, top_depth: float = 0.0
) -> ThreeDimensionalGrid:
    """
    Convert a cell thickness grid into a grid of cell centre depths.

    Layers are stacked along the last axis, the first layer on top.

    :param thickness_grid: 3D (nx, ny, nz) array of cell thicknesses (m).
    :param top_depth: Depth of the top of the grid (m).
    :return: 3D array of cell centre depths (m), positive downward.
    """
    thickness_grid = np.asarray(thickness_grid, dtype=get_dtype())
    if thickness_grid.ndim != 3:
        raise ValidationError("Thickness grid must be three-dimensional (nx, ny, nz).")
    if np.any(thickness_grid < 0):
        raise ValidationError("Cell thicknesses must be non-negative.")
    return _compute_depth_downward(
        np.ascontiguousarray(thickness_grid), float(top_depth)
    )


depth_grid = build_depth_grid  # Alias for convenience


@attrs.frozen
class CellGrid:
    """
    Minimal cell-list grid: a depth per active cell plus the mapping
    from active cells back to deck cells.
    """

    cell_depths: OneDimensionalGrid = attrs.field(
        converter=lambda value: np.asarray(value, dtype=get_dtype())
    )
    """Cell centre depths (m), positive downward."""
    global_cell: typing.Optional[npt.NDArray[np.integer]] = attrs.field(
        default=None,
        converter=attrs.converters.optional(
            lambda value: np.asarray(value, dtype=np.int64)
        ),
    )
    """Deck index of each active cell, or None for the identity mapping."""

    def __attrs_post_init__(self) -> None:
        if self.cell_depths.ndim != 1:
            raise ValidationError("Cell depths must be a one-dimensional array.")
        if not np.all(np.isfinite(self.cell_depths)):
            raise ValidationError("Cell depths must be finite.")
        if self.global_cell is not None:
            if self.global_cell.shape != self.cell_depths.shape:
                raise DataInconsistencyError(
                    f"Global cell mapping has {self.global_cell.size} entries "
                    f"for {self.cell_depths.size} cells."
                )
            if np.any(self.global_cell < 0):
                raise ValidationError("Global cell indices must be non-negative.")

    @property
    def num_cells(self) -> int:
        return int(self.cell_depths.size)

    @classmethod
    def from_thickness(
        cls,
        thickness_grid: ThreeDimensionalGrid,
        top_depth: float = 0.0,
        active: typing.Optional[npt.NDArray[np.bool_]] = None,
    ) -> Self:
        """
        Build a cell grid from a structured (nx, ny, nz) thickness grid.

        Cells are numbered in deck order, with i running fastest and k slowest.
        Inactive cells are dropped and `global_cell` records the deck index of
        every cell kept.

        :param thickness_grid: 3D array of cell thicknesses (m).
        :param top_depth: Depth of the top of the grid (m).
        :param active: Optional 3D boolean mask of active cells.
        :return: A new `CellGrid`.
        """
        depths = build_depth_grid(thickness_grid, top_depth).ravel(order="F")
        if active is None:
            return cls(cell_depths=depths)

        active = np.asarray(active, dtype=bool)
        if active.shape != np.shape(thickness_grid):
            raise DataInconsistencyError(
                "Active cell mask must have the same shape as the thickness grid."
            )
        global_cell = np.flatnonzero(active.ravel(order="F"))
        return cls(cell_depths=depths[global_cell], global_cell=global_cell)
