"""
Food web ledger.

Accumulates a victim x eater meal count matrix over a run. Genotypes carry
dense integer ids (assigned at load time), so counts live in a numpy int64
matrix and the hot feeding loop never hashes species names.
"""

import numpy as np
from typing import Dict, List

from .data_types import Genotype


class FoodWebLedger:
    """
    Victim x eater interaction counts.

    Rows cover every species; the exported view keeps only animal columns
    (plants never eat). Counts start at zero and only ever increase.
    """

    def __init__(self, genotypes: List[Genotype]):
        """
        Args:
            genotypes: All genotypes, each with a unique dense gid
        """
        self.genotypes: List[Genotype] = list(genotypes)
        self._by_species: Dict[str, Genotype] = {g.species: g for g in self.genotypes}

        size = max((g.gid for g in self.genotypes), default=-1) + 1
        self._counts: np.ndarray = np.zeros((size, size), dtype=np.int64)

    @property
    def animal_genotypes(self) -> List[Genotype]:
        return [g for g in self.genotypes if g.is_animal]

    def record(self, victim: Genotype, eater: Genotype):
        """
        Record one meal.

        Raises:
            ValueError: if the eater is not an animal or is the victim's own species
        """
        if not eater.is_animal:
            raise ValueError(f"Eater {eater.species} is not an animal")
        if victim.species == eater.species:
            raise ValueError(f"Cannibalism is excluded ({eater.species})")

        self._counts[victim.gid, eater.gid] += 1

    def count(self, victim: str, eater: str) -> int:
        """Return the meal count for a (victim species, eater species) pair"""
        v = self._by_species[victim]
        e = self._by_species[eater]
        if not e.is_animal:
            raise KeyError(f"{eater} is not an animal species")
        return int(self._counts[v.gid, e.gid])

    @property
    def total_meals(self) -> int:
        return int(self._counts.sum())

    def as_matrix(self) -> np.ndarray:
        """
        Return a copy of the counts as (num_species, num_animal_species).

        Rows follow genotype order, columns follow animal genotype order.
        """
        rows = [g.gid for g in self.genotypes]
        cols = [g.gid for g in self.animal_genotypes]
        return self._counts[np.ix_(rows, cols)].copy()

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        """
        Return {victim: {eater: count}} over all species x animal species.
        """
        animals = self.animal_genotypes
        return {
            victim.species: {
                eater.species: int(self._counts[victim.gid, eater.gid])
                for eater in animals
            }
            for victim in self.genotypes
        }
