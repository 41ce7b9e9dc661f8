"""
Spatial domain for the food web grid.

Rectangular extent with origin at (0, 0), split into nx * ny uniform cells
laid out row-major (index = row * nx + col).
"""

from typing import Tuple

from .data_types import WorldConfig


class SpatialDomain:
    """
    Grid geometry and coordinate -> cell index mapping.

    Attributes:
        x_length, y_length: Domain extent
        nx, ny: Cell counts along x and y
        delta_x, delta_y: Cell dimensions
    """

    def __init__(self, x_length: float, y_length: float, nx: int, ny: int):
        if x_length <= 0 or y_length <= 0:
            raise ValueError(f"Domain extent must be positive, got ({x_length}, {y_length})")
        if nx <= 0 or ny <= 0:
            raise ValueError(f"Cell counts must be positive, got ({nx}, {ny})")

        self.x_length = float(x_length)
        self.y_length = float(y_length)
        self.nx = int(nx)
        self.ny = int(ny)
        self.delta_x = self.x_length / self.nx
        self.delta_y = self.y_length / self.ny

    @classmethod
    def from_config(cls, world: WorldConfig) -> 'SpatialDomain':
        return cls(world.x_length, world.y_length, world.nx, world.ny)

    @property
    def num_cells(self) -> int:
        return self.nx * self.ny

    def cell_index_of(self, x: float, y: float) -> int:
        """
        Find the cell index for a location inside the domain.

        Coordinates on the far boundary (x == x_length or y == y_length)
        truncate into the last column/row. Callers keep coordinates within
        [0, x_length] x [0, y_length]; anything outside yields an invalid index.

        Args:
            x, y: Location

        Returns:
            Row-major cell index
        """
        col = min(int(x / self.x_length * self.nx), self.nx - 1)
        row = min(int(y / self.y_length * self.ny), self.ny - 1)
        return row * self.nx + col

    def cell_center(self, index: int) -> Tuple[float, float]:
        """Return the (x, y) center of a cell"""
        row, col = divmod(index, self.nx)
        return (col + 0.5) * self.delta_x, (row + 0.5) * self.delta_y

    def cell_bounds(self, index: int) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """
        Return ((x0, x1), (y0, y1)) spatial bounds of a cell.
        """
        row, col = divmod(index, self.nx)
        x0 = col * self.delta_x
        y0 = row * self.delta_y
        return (x0, x0 + self.delta_x), (y0, y0 + self.delta_y)

    def __repr__(self) -> str:
        return (f"SpatialDomain(extent=({self.x_length}, {self.y_length}), "
                f"cells=({self.nx}, {self.ny}))")
