"""
Grid cell: local organism collections plus a free carbon pool.

Feeding and photosynthesis are local to a cell; the simulation drives them
cell by cell and handles everything that crosses cell boundaries.
"""

import numpy as np
from typing import List

from .organism import Organism
from .ledger import FoodWebLedger
from .rng import random_order


class Cell:
    """
    Distribution of organisms within one grid cell and the cell's carbon.

    Attributes:
        index: Row-major cell index
        x, y: Cell center
        carbon: Free carbon available for photosynthesis
        bound_carbon: Carbon held by resident organisms (refreshed by update_bound)
        animals: Resident animals
        plants: Resident plants
    """

    def __init__(self, index: int, x: float, y: float, carbon: float):
        self.index = index
        self.x = x
        self.y = y
        self.carbon = carbon
        self.bound_carbon = 0.0
        self.animals: List[Organism] = []
        self.plants: List[Organism] = []

    def add(self, organism: Organism):
        """Take ownership of an organism (sorted by kingdom)"""
        organism.cell_index = self.index
        if organism.genotype.is_animal:
            self.animals.append(organism)
        else:
            self.plants.append(organism)

    def update_bound(self) -> float:
        """
        Recompute bound carbon from resident organisms.

        Returns:
            Refreshed bound carbon
        """
        self.bound_carbon = (sum(a.carbon for a in self.animals)
                             + sum(p.carbon for p in self.plants))
        return self.bound_carbon

    def food_list(self, member: Organism) -> List[Organism]:
        """
        Collect suitable meals for an animal.

        Herbivores choose among living plants, carnivores among living animals
        of other species. Either way the meal carbon must fall within
        [carbon * small_meal, carbon * big_meal] of the eater.

        Args:
            member: Hungry animal resident in this cell

        Returns:
            Candidate prey (possibly empty)
        """
        gen = member.genotype
        smallest = member.carbon * gen.small_meal
        largest = member.carbon * gen.big_meal

        if gen.is_herbivore:
            return [p for p in self.plants
                    if p.alive and smallest <= p.carbon <= largest]

        if gen.is_carnivore:
            return [a for a in self.animals
                    if a.alive and smallest <= a.carbon <= largest
                    and a.genotype.species != gen.species]

        return []

    def feed(self, ledger: FoodWebLedger, rng: np.random.Generator) -> int:
        """
        Let every living animal eat at most one meal.

        Animals are visited in a fresh random order so that storage order gives
        no advantage over a scarce menu. Each eater picks a random menu item,
        takes all its carbon and kills it; an eater with nothing on the menu
        still pays its metabolic burn. All discharged carbon joins the pool.

        Args:
            ledger: Meal counts, updated in place
            rng: Shared random source

        Returns:
            Number of meals eaten
        """
        meals = 0
        animals = self.animals
        for i in random_order(rng, len(animals)):
            critter = animals[i]
            if not critter.alive:
                continue  # Eaten earlier this step

            menu = self.food_list(critter)
            if menu:
                prey = menu[int(rng.integers(0, len(menu)))]
                meal = prey.carbon
                prey.carbon = 0.0
                prey.alive = False
                self.carbon += critter.metabolize(meal)
                ledger.record(prey.genotype, critter.genotype)
                meals += 1
            else:
                self.carbon += critter.metabolize(0.0)

        return meals

    def photosynthesis(self, rng: np.random.Generator):
        """
        Grow every living plant from the free carbon pool.

        Plants are visited in a fresh random order since they compete for the
        same finite pool. Growth is min(pool, carbon * small_meal); the pool
        pays for growth and takes back whatever metabolize discharges.

        Args:
            rng: Shared random source
        """
        plants = self.plants
        for i in random_order(rng, len(plants)):
            flora = plants[i]
            if not flora.alive:
                continue  # Eaten this step

            growth = min(self.carbon, flora.carbon * flora.genotype.small_meal)
            self.carbon += flora.metabolize(growth) - growth

    def remove_dead(self) -> int:
        """
        Drop organisms marked dead from both collections.

        Returns:
            Number of organisms removed
        """
        n_before = len(self.animals) + len(self.plants)
        self.animals = [a for a in self.animals if a.alive]
        self.plants = [p for p in self.plants if p.alive]
        return n_before - len(self.animals) - len(self.plants)

    @property
    def population(self) -> int:
        return len(self.animals) + len(self.plants)

    def to_dict(self) -> dict:
        """
        Serialize cell summary to JSON-compatible dict.

        bound_carbon is reported as last refreshed.
        """
        return {
            'index': self.index,
            'x': self.x,
            'y': self.y,
            'free_carbon': self.carbon,
            'bound_carbon': self.bound_carbon,
            'animals': len(self.animals),
            'plants': len(self.plants),
        }
