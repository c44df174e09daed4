# aad_montecarlo/stochastic/__init__.py
"""Value engine: random variables, storage strategies, factories and random numbers."""

from .random_variable import RandomVariable
from .storage import DenseStorage, LazyStorage
from .summation import kahan_sum, kahan_mean
from .factory import RandomVariableFactory, DenseRandomVariableFactory, LazyRandomVariableFactory
from .random_numbers import MersenneTwister, normal_inverse_cdf, generate_increments

__all__ = [
    "RandomVariable",
    "DenseStorage", "LazyStorage",
    "kahan_sum", "kahan_mean",
    "RandomVariableFactory", "DenseRandomVariableFactory", "LazyRandomVariableFactory",
    "MersenneTwister", "normal_inverse_cdf", "generate_increments",
]
