"""
Organism runtime representation.

Organisms are seeded from genotypes at world creation or budded from a parent.
Each organism carries its own carbon, position, age and alive/moved flags,
plus a shared read-only reference to its Genotype.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .data_types import Genotype
from .domain import SpatialDomain


@dataclass(eq=False)
class Organism:
    """
    Living instance of a genotype.

    Attributes:
        genotype: Shared species parameters (never mutated)
        x, y: Position within the domain
        carbon: Current carbon content (> 0 while alive)
        age: Steps survived since birth
        cell_index: Index of the cell whose collection owns this organism
        alive: False once starved or eaten (removed at the next death sweep)
        moved: Set once moved during the current step's movement phase
    """
    genotype: Genotype
    x: float
    y: float
    carbon: Optional[float] = None
    age: int = 0
    cell_index: int = 0
    alive: bool = True
    moved: bool = False

    def __post_init__(self):
        """Organisms start with the genotype's birth carbon unless given"""
        if self.carbon is None:
            self.carbon = self.genotype.carbon_0
        self.x = float(self.x)
        self.y = float(self.y)

    @property
    def species(self) -> str:
        return self.genotype.species

    def metabolize(self, meal: float) -> float:
        """
        Apply one step of mass balance.

        Order: metabolic burn, meal intake, obesity clip (excess discharged as
        food waste), then the starvation check. A starving organism is marked
        dead and its remaining carbon (negative after a burn overshoot) is
        folded into the discharge, leaving carbon at exactly zero.

        Args:
            meal: Carbon taken in this step (prey carbon or photosynthetic growth)

        Returns:
            Carbon discharged to the environment (burn + waste + starvation remainder)
        """
        gen = self.genotype

        discharged = gen.burn
        self.carbon -= gen.burn
        self.carbon += meal

        food_waste = max(self.carbon - gen.carbon_max, 0.0)
        discharged += food_waste
        self.carbon -= food_waste

        if self.carbon < gen.carbon_min:
            self.alive = False
            discharged += self.carbon
            self.carbon = 0.0

        return discharged

    def move(self, domain: SpatialDomain, rng: np.random.Generator):
        """
        Random-walk one step and recompute the owning cell index.

        Per-axis displacement is uniform in [-mobility, mobility]. A step that
        would leave the domain bounces off the boundary (see _reflect).

        Args:
            domain: Grid geometry (bounds and cell lookup)
            rng: Shared random source
        """
        mobility = self.genotype.mobility
        dx = float(rng.uniform(-mobility, mobility))
        dy = float(rng.uniform(-mobility, mobility))

        self.x = _reflect(self.x, dx, domain.x_length)
        self.y = _reflect(self.y, dy, domain.y_length)

        self.cell_index = domain.cell_index_of(self.x, self.y)
        self.moved = True

    def to_dict(self) -> dict:
        """
        Serialize organism to JSON-compatible dict.

        Returns:
            Dict with position, species, carbon, age and flags
        """
        return {
            'species': self.genotype.species,
            'x': self.x,
            'y': self.y,
            'carbon': self.carbon,
            'age': self.age,
            'cell_index': self.cell_index,
            'alive': self.alive,
        }


def _reflect(position: float, displacement: float, length: float) -> float:
    """
    Apply displacement along one axis of [0, length], bouncing off the walls.

    Below 0 the displacement becomes -displacement - position; above length it
    becomes -displacement - (length - position). The result is clamped to
    [0, length] so mobilities larger than the domain stay in bounds.
    """
    target = position + displacement
    if target < 0.0:
        displacement = -displacement - position
    elif target > length:
        displacement = -displacement - (length - position)

    return min(max(position + displacement, 0.0), length)
