"""
Test spatial domain geometry and cell lookup.
"""

import pytest

from foodweb.domain import SpatialDomain


def test_cell_index_row_major():
    """Index is row * nx + col"""
    domain = SpatialDomain(100.0, 50.0, 10, 5)

    assert domain.delta_x == 10.0
    assert domain.delta_y == 10.0
    assert domain.num_cells == 50

    assert domain.cell_index_of(0.0, 0.0) == 0
    assert domain.cell_index_of(15.0, 25.0) == 21
    assert domain.cell_index_of(99.9, 0.0) == 9
    assert domain.cell_index_of(0.0, 49.9) == 40

    print("[OK] Row-major indexing")


def test_far_boundary_clamps_to_last_cell():
    """Coordinates on x_length / y_length land in the last column / row"""
    domain = SpatialDomain(100.0, 50.0, 10, 5)

    assert domain.cell_index_of(100.0, 50.0) == 49
    assert domain.cell_index_of(100.0, 0.0) == 9
    assert domain.cell_index_of(0.0, 50.0) == 40


def test_every_in_bounds_point_maps_to_valid_cell():
    domain = SpatialDomain(7.0, 3.0, 7, 3)
    steps = 50
    for i in range(steps + 1):
        for j in range(steps + 1):
            x = domain.x_length * i / steps
            y = domain.y_length * j / steps
            index = domain.cell_index_of(x, y)
            assert 0 <= index < domain.num_cells, f"({x}, {y}) -> {index}"


def test_cell_center_and_bounds():
    domain = SpatialDomain(100.0, 50.0, 10, 5)

    assert domain.cell_center(21) == (15.0, 25.0)
    (x0, x1), (y0, y1) = domain.cell_bounds(21)
    assert (x0, x1) == (10.0, 20.0)
    assert (y0, y1) == (20.0, 30.0)

    # Center maps back to its own cell
    for index in range(domain.num_cells):
        assert domain.cell_index_of(*domain.cell_center(index)) == index


def test_invalid_geometry_rejected():
    with pytest.raises(ValueError):
        SpatialDomain(0.0, 10.0, 5, 5)
    with pytest.raises(ValueError):
        SpatialDomain(10.0, 10.0, 0, 5)
