"""
Tab-delimited state writers.

Each writer reads simulation state at call time and never mutates it.
Cell summaries report bound carbon as last refreshed by the caller.
"""

from pathlib import Path
from typing import Dict, List

from .cell import Cell
from .data_types import Genotype
from .ledger import FoodWebLedger
from .constants import OUTPUT_DELIMITER


def _write_rows(file_path: Path, header: List[str], rows: List[List]):
    with open(file_path, 'w') as f:
        f.write(OUTPUT_DELIMITER.join(header) + "\n")
        for row in rows:
            f.write(OUTPUT_DELIMITER.join(str(v) for v in row) + "\n")


def write_organisms(cells: List[Cell], file_path: Path):
    """Write one row per organism: x, y, species, carbon, age (plants first per cell)"""
    rows = []
    for cell in cells:
        for organism in cell.plants + cell.animals:
            rows.append([organism.x, organism.y, organism.species, organism.carbon, organism.age])
    _write_rows(file_path, ['x', 'y', 'species', 'carbon', 'age'], rows)


def write_cells(cells: List[Cell], file_path: Path):
    """Write one row per cell: center, free and bound carbon, population counts"""
    rows = [
        [cell.x, cell.y, cell.carbon, cell.bound_carbon, len(cell.animals), len(cell.plants)]
        for cell in cells
    ]
    _write_rows(file_path, ['x', 'y', 'free_carbon', 'bound_carbon', 'animals', 'plants'], rows)


def count_species(cells: List[Cell], genotypes: List[Genotype]) -> Dict[str, int]:
    """
    Count living organisms per species across all cells.

    Every genotype is present in the result, including extinct ones.
    """
    counts = {g.species: 0 for g in genotypes}
    for cell in cells:
        for organism in cell.plants:
            counts[organism.species] += 1
        for organism in cell.animals:
            counts[organism.species] += 1
    return counts


def write_census(cells: List[Cell], genotypes: List[Genotype], file_path: Path):
    """Write species, count rows in genotype order"""
    counts = count_species(cells, genotypes)
    rows = [[g.species, counts[g.species]] for g in genotypes]
    _write_rows(file_path, ['species', 'count'], rows)


def write_meal_matrix(ledger: FoodWebLedger, file_path: Path):
    """Write the victim x eater matrix (eater columns are animal species only)"""
    eaters = [g.species for g in ledger.animal_genotypes]
    matrix = ledger.as_dict()
    rows = [
        [victim.species] + [matrix[victim.species][eater] for eater in eaters]
        for victim in ledger.genotypes
    ]
    _write_rows(file_path, ['victim/eater'] + eaters, rows)
