# aad_montecarlo/stochastic/factory.py
"""
Value factories.

Stochastic-process generators create their values through a factory so the
caller decides the representation (dense float64, narrow float32, lazy, or
differentiable - see aad.core.factory) without the generator depending on a
concrete type.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from .random_variable import RandomVariable


class RandomVariableFactory(ABC):

    @abstractmethod
    def create(self, time: float, value):
        """Create a value at `time` from a number (deterministic) or an array (one entry per path)."""
        raise NotImplementedError

    def create_constant(self, value: float):
        return self.create(float("-inf"), value)


class DenseRandomVariableFactory(RandomVariableFactory):
    """Eager dense arrays. `dtype=np.float32` gives the narrow, memory-constrained variant."""

    def __init__(self, dtype=np.float64):
        self.dtype = np.dtype(dtype)

    def create(self, time: float, value) -> RandomVariable:
        if np.ndim(value) == 0:
            return RandomVariable(time, float(value))
        return RandomVariable(time, np.asarray(value), dtype=self.dtype)


class LazyRandomVariableFactory(RandomVariableFactory):
    """
    Deferred arrays: realizations are read through an index generator and
    materialized on first access. `on_materialize` is forwarded to every
    created storage (instrumentation hook).
    """

    def __init__(self, dtype=np.float64, on_materialize: Optional[Callable] = None):
        self.dtype = np.dtype(dtype)
        self.on_materialize = on_materialize

    def create(self, time: float, value) -> RandomVariable:
        if np.ndim(value) == 0:
            return RandomVariable(time, float(value))
        values = np.asarray(value, dtype=self.dtype)
        if values.shape[0] == 1:
            return RandomVariable(time, float(values[0]))
        return RandomVariable.lazy(time, values.__getitem__, values.shape[0],
                                   dtype=self.dtype, on_materialize=self.on_materialize)

    def create_from_function(self, time: float, generator: Callable[[np.ndarray], np.ndarray],
                             size: int) -> RandomVariable:
        return RandomVariable.lazy(time, generator, size, dtype=self.dtype,
                                   on_materialize=self.on_materialize)
