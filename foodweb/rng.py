"""
Random source utilities for the food web simulation.

All randomness in a run is drawn sequentially from a single
numpy.random.Generator(PCG64) built from the run seed, so a fixed seed
reproduces the run exactly. Runs without a configured seed draw one from
OS entropy and report it, so they can be replayed too.
"""

import numpy as np
from typing import Tuple


def fresh_seed() -> int:
    """Draw a run seed from OS entropy (a 128-bit integer)"""
    return int(np.random.SeedSequence().entropy)


def make_generator(seed: int) -> np.random.Generator:
    """
    Create the shared random source for a run.

    The seed goes through SeedSequence, so nearby seeds (1, 2, 3...) still
    give well-separated PCG64 streams.

    Args:
        seed: Non-negative run seed

    Returns:
        PCG64-backed numpy Generator
    """
    return np.random.Generator(np.random.PCG64(np.random.SeedSequence(seed)))


def random_order(rng: np.random.Generator, n: int) -> np.ndarray:
    """
    Return a uniformly random permutation of range(n).

    Generator.permutation is a Fisher-Yates shuffle, drawn fresh per call.
    """
    return rng.permutation(n)


def random_point_in_rect(
    rng: np.random.Generator,
    x_range: Tuple[float, float],
    y_range: Tuple[float, float]
) -> Tuple[float, float]:
    """
    Draw a uniform point in the half-open rectangle [x0, x1) x [y0, y1).

    The x coordinate is drawn before y.
    """
    x = float(rng.uniform(x_range[0], x_range[1]))
    y = float(rng.uniform(y_range[0], y_range[1]))
    return x, y
