"""
World seeding.

Creates the cell grid with evenly divided free carbon, then places each
genotype's initial population at uniform random positions.
"""

import numpy as np
from typing import Dict, List

from .cell import Cell
from .data_types import Genotype
from .domain import SpatialDomain
from .organism import Organism
from .rng import random_point_in_rect


def create_cells(domain: SpatialDomain, total_carbon: float) -> List[Cell]:
    """
    Create the row-major cell grid.

    Args:
        domain: Grid geometry
        total_carbon: Free carbon split evenly among all cells

    Returns:
        Cells indexed by row * nx + col
    """
    cell_carbon = total_carbon / domain.num_cells

    cells = []
    for index in range(domain.num_cells):
        x, y = domain.cell_center(index)
        cells.append(Cell(index, x, y, cell_carbon))

    return cells


def seed_organisms(
    cells: List[Cell],
    genotypes: List[Genotype],
    populations: Dict[str, int],
    domain: SpatialDomain,
    rng: np.random.Generator
) -> int:
    """
    Place initial populations in the grid.

    Genotypes are seeded in table order; each organism starts with carbon_0
    at a uniform position in [0, x_length) x [0, y_length).

    Args:
        cells: Cell grid (mutated)
        genotypes: All genotypes
        populations: {species: initial count}; missing species seed nothing
        domain: Grid geometry
        rng: Shared random source

    Returns:
        Number of organisms seeded
    """
    total = 0
    for genotype in genotypes:
        count = populations.get(genotype.species, 0)
        for _ in range(count):
            x, y = random_point_in_rect(rng, (0.0, domain.x_length), (0.0, domain.y_length))
            organism = Organism(genotype=genotype, x=x, y=y)
            cells[domain.cell_index_of(x, y)].add(organism)
        total += count

    return total
