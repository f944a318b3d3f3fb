import numpy as np
import pytest

from equil import (
    CellGrid,
    DataInconsistencyError,
    Grid,
    ValidationError,
    build_depth_grid,
    scatter,
)


def test_depth_grid_cell_centres():
    thickness = np.ones((2, 1, 3))
    thickness[:, :, 1] = 4.0

    depths = build_depth_grid(thickness, top_depth=1000.0)

    assert depths.shape == (2, 1, 3)
    np.testing.assert_allclose(depths[0, 0], [1000.5, 1003.0, 1005.5])
    np.testing.assert_allclose(depths[1, 0], depths[0, 0])


def test_depth_grid_validation():
    with pytest.raises(ValidationError):
        build_depth_grid(np.ones((2, 2)))
    with pytest.raises(ValidationError):
        build_depth_grid(-np.ones((1, 1, 2)))


def test_cell_grid_from_thickness_drops_inactive_cells():
    thickness = np.full((2, 1, 2), 10.0)
    active = np.array([[[True, False]], [[True, True]]])

    grid = CellGrid.from_thickness(thickness, top_depth=2000.0, active=active)

    # Deck order runs i fastest: (0,0,0), (1,0,0), (0,0,1), (1,0,1)
    np.testing.assert_array_equal(grid.global_cell, [0, 1, 3])
    np.testing.assert_allclose(grid.cell_depths, [2005.0, 2005.0, 2015.0])
    assert grid.num_cells == 3
    assert isinstance(grid, Grid)


def test_cell_grid_validation():
    with pytest.raises(DataInconsistencyError):
        CellGrid(cell_depths=[1.0, 2.0], global_cell=[0])
    with pytest.raises(ValidationError):
        CellGrid(cell_depths=[1.0, np.nan])
    with pytest.raises(ValidationError):
        CellGrid(cell_depths=[[1.0, 2.0]])


def test_scatter_writes_in_place():
    destination = np.zeros(5)
    scatter(np.array([1.0, 2.0]), np.array([4, 1]), destination)

    np.testing.assert_array_equal(destination, [0.0, 2.0, 0.0, 0.0, 1.0])


def test_scatter_checks_lengths():
    with pytest.raises(ValueError):
        scatter(np.array([1.0]), np.array([0, 1]), np.zeros(2))
