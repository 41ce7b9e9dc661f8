"""
Data types mirroring the data pack structures.

These dataclasses are populated by loader.py from YAML (or legacy text) files.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import KINGDOM_ANIMAL, KINGDOM_PLANT, DIET_HERBIVORE, DIET_CARNIVORE


# ============================================================================
# Genotype Definition
# ============================================================================

@dataclass(frozen=True)
class Genotype:
    """
    Immutable species parameters, shared by reference across all organisms
    of a species.

    Attributes:
        species: Unique species name
        kingdom: 'plant' or 'animal'
        diet: 'none', 'herbivore' or 'carnivore'
        carbon_0: Carbon content at birth (seeding)
        carbon_min: Starvation threshold
        carbon_max: Obesity threshold (excess is discharged as food waste)
        carbon_breed: Minimum carbon content required to bud
        burn: Metabolic loss per step
        small_meal: Smallest meal as a fraction of own carbon (plants: growth fraction)
        big_meal: Largest meal as a fraction of own carbon
        mobility: Maximum per-axis wander distance per step
        spawn_prob: Budding probability per step
        gid: Dense integer id assigned at load time (ledger row/column)
    """
    species: str
    kingdom: str
    diet: str
    carbon_0: float
    carbon_min: float
    carbon_max: float
    carbon_breed: float
    burn: float
    small_meal: float
    big_meal: float
    mobility: float
    spawn_prob: float
    gid: int = 0

    @property
    def is_animal(self) -> bool:
        return self.kingdom == KINGDOM_ANIMAL

    @property
    def is_plant(self) -> bool:
        return self.kingdom == KINGDOM_PLANT

    @property
    def is_herbivore(self) -> bool:
        return self.diet == DIET_HERBIVORE

    @property
    def is_carnivore(self) -> bool:
        return self.diet == DIET_CARNIVORE


# ============================================================================
# World Definition
# ============================================================================

@dataclass
class WorldConfig:
    """Grid extent (origin at 0, 0) and cell counts"""
    x_length: float
    y_length: float
    nx: int
    ny: int


@dataclass
class SimulationSettings:
    """Global run settings"""
    total_carbon: float  # Free carbon divided evenly among cells at start
    print_step: int  # Emission interval (steps)
    max_steps: int  # Run length (steps)
    seed: Optional[int] = None  # Run seed (None = OS entropy)
    output_dir: Optional[str] = None  # Override for output directory


@dataclass
class DataPack:
    """Complete simulation input: world, genotypes, initial populations, settings"""
    world: WorldConfig
    genotypes: List[Genotype]
    populations: Dict[str, int]  # {species: initial organism count}
    settings: SimulationSettings
    source: Optional[str] = None  # Directory the pack was loaded from

    @property
    def animal_genotypes(self) -> List[Genotype]:
        return [g for g in self.genotypes if g.is_animal]


@dataclass
class StepStats:
    """Per-step population and carbon summary"""
    step: int
    plants: int
    animals: int
    free_carbon: float
    bound_carbon: float
    meals: int = 0
    deaths: int = 0
    births: int = 0
    relocations: int = 0
    census: Dict[str, int] = field(default_factory=dict)

    @property
    def total_carbon(self) -> float:
        return self.free_carbon + self.bound_carbon
