"""
Reproduction by budding.

An organism that is both lucky (spawn probability) and large enough
(carbon_breed) splits its carbon exactly in half with a new daughter placed
at a random point inside the parent's cell.
"""

import numpy as np
from typing import List

from .organism import Organism
from .domain import SpatialDomain
from .rng import random_point_in_rect


def breed(organisms: List[Organism], domain: SpatialDomain, rng: np.random.Generator) -> List[Organism]:
    """
    Bud every eligible organism in a list.

    One uniform draw per organism, in list order. Daughters are collected in a
    separate batch and appended after the full pass, so they never breed in
    the same call.

    Args:
        organisms: One cell's animal or plant list
        domain: Grid geometry (for the parent cell's bounds)
        rng: Shared random source

    Returns:
        New list: the original organisms followed by their daughters
    """
    batch = []
    for parent in organisms:
        r = rng.random()
        gen = parent.genotype
        if r < gen.spawn_prob and parent.carbon >= gen.carbon_breed:
            batch.append(bud(parent, domain, rng))

    return organisms + batch


def bud(parent: Organism, domain: SpatialDomain, rng: np.random.Generator) -> Organism:
    """
    Split a parent into two halves and return the daughter.

    The daughter shares the genotype and cell index, starts at age 0, and is
    jittered within the cell so parent and daughter never coincide.
    """
    parent.carbon *= 0.5

    x_range, y_range = domain.cell_bounds(parent.cell_index)
    x, y = random_point_in_rect(rng, x_range, y_range)

    return Organism(
        genotype=parent.genotype,
        x=x,
        y=y,
        carbon=parent.carbon,
        age=0,
        cell_index=parent.cell_index
    )
