# aad_montecarlo/stochastic/random_numbers.py
"""
Random number interfaces consumed by stochastic-process generators.

    MersenneTwister      : seeded uniform source on [0, 1)
    InverseCDF           : (time_index, factor) -> (uniform -> sample)
    normal_inverse_cdf   : the standard normal inverse CDF for every (time, factor)
    generate_increments  : uniforms -> inverse CDF -> values through a factory
"""
from __future__ import annotations

import logging
import math
from typing import Callable, List, Sequence

import numpy as np
from scipy.stats import norm

from ..errors import PreconditionViolation
from .factory import DenseRandomVariableFactory, RandomVariableFactory

logger = logging.getLogger(__name__)

InverseCDF = Callable[[int, int], Callable]


class MersenneTwister:
    """
    Uniform random numbers in [0, 1) from numpy's MT19937 bit generator.
    Identical seeds give bit-identical streams.
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._generator = np.random.Generator(np.random.MT19937(self.seed))

    def next_double(self) -> float:
        return float(self._generator.random())

    def next_doubles(self, count: int) -> np.ndarray:
        return self._generator.random(count)


def normal_inverse_cdf(time_index: int, factor: int):
    """Standard normal inverse CDF, the same for every time step and factor."""
    return norm.ppf


def _apply_inverse_cdf(function, uniforms: np.ndarray) -> np.ndarray:
    try:
        values = np.asarray(function(uniforms), dtype=np.float64)
    except TypeError:
        # scalar-only inverse CDF
        values = None
    if values is None or values.shape != uniforms.shape:
        values = np.fromiter((function(u) for u in uniforms), dtype=np.float64, count=uniforms.size)
    return values


def generate_increments(times: Sequence[float], number_of_factors: int, number_of_paths: int,
                        seed: int, inverse_cdf: InverseCDF = normal_inverse_cdf,
                        factory: RandomVariableFactory = None,
                        scale_by_sqrt_dt: bool = True) -> List[List]:
    """
    Independent increments for each time step and factor.

    Uniforms are consumed path by path (path outer, then time step, then
    factor), so every path is an independent stream regardless of the grid.

    Args:
        times: time discretization t_0 < t_1 < ... < t_n.
        number_of_factors: number of independent factors per step.
        number_of_paths: number of Monte Carlo paths.
        seed: seed of the Mersenne Twister.
        inverse_cdf: maps (time_index, factor) to an inverse CDF.
        factory: creates the values (dense float64 if omitted).
        scale_by_sqrt_dt: multiply each sample by sqrt(t_{i+1} - t_i) (Brownian increments).

    Returns:
        increments[time_index][factor], each observed at t_{time_index + 1}.
    """
    times = [float(t) for t in times]
    if len(times) < 2 or any(b <= a for a, b in zip(times, times[1:])):
        raise PreconditionViolation("times must be strictly increasing with at least two points")
    factory = factory if factory is not None else DenseRandomVariableFactory()

    number_of_steps = len(times) - 1
    generator = MersenneTwister(seed)
    uniforms = generator.next_doubles(number_of_paths * number_of_steps * number_of_factors)
    uniforms = uniforms.reshape(number_of_paths, number_of_steps, number_of_factors)

    increments = []
    for time_index in range(number_of_steps):
        scale = math.sqrt(times[time_index + 1] - times[time_index]) if scale_by_sqrt_dt else 1.0
        row = []
        for factor in range(number_of_factors):
            samples = _apply_inverse_cdf(inverse_cdf(time_index, factor), uniforms[:, time_index, factor])
            row.append(factory.create(times[time_index + 1], samples * scale))
        increments.append(row)

    logger.debug("Generated %d x %d increments on %d paths (seed %d)",
                 number_of_steps, number_of_factors, number_of_paths, seed)
    return increments
