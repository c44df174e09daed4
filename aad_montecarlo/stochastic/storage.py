# aad_montecarlo/stochastic/storage.py
"""
Storage strategies for the realizations of a stochastic value.

Both strategies hold a one-dimensional numpy array of length N once they are
read; they differ only in *when* the array exists:

    DenseStorage : the array is given up front (float64, or float32 for
                   memory-constrained runs).
    LazyStorage  : an index -> value generator is kept instead; the array is
                   filled on first read, exactly once, under a lock.

Deterministic values carry no storage at all (see RandomVariable).
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import numpy as np

logger = logging.getLogger(__name__)

Generator = Callable[[np.ndarray], np.ndarray]


class DenseStorage:
    __slots__ = ("_array",)

    lazy = False

    def __init__(self, array: np.ndarray):
        array.flags.writeable = False
        self._array = array

    @property
    def size(self) -> int:
        return self._array.shape[0]

    @property
    def dtype(self):
        return self._array.dtype

    @property
    def materialized(self) -> bool:
        return True

    def array(self) -> np.ndarray:
        return self._array

    def read(self, indices: np.ndarray) -> np.ndarray:
        return self._array[indices]


class LazyStorage:
    """
    Deferred realizations.

    Parameters
    ----------
    size : int
        Number of paths N.
    generator : callable(np.ndarray[int]) -> np.ndarray
        Vectorised index -> value function. It receives an array of path
        indices and returns the realizations for exactly those paths.
    dtype : numpy dtype of the materialised array.
    on_materialize : optional callable(LazyStorage)
        Instrumentation hook, called once when the array is filled.

    Notes
    -----
    `array()` uses double-checked locking: the array reference is published
    only after it is completely filled and inside the lock, so every thread
    that sees a non-None `_array` sees the finished values. The generator is
    dropped after the fill to release whatever it closes over.
    """

    __slots__ = ("_size", "_generator", "_dtype", "_array", "_lock", "_on_materialize")

    lazy = True

    def __init__(self, size: int, generator: Generator, dtype=np.float64,
                 on_materialize: Optional[Callable[["LazyStorage"], None]] = None):
        self._size = int(size)
        self._generator = generator
        self._dtype = np.dtype(dtype)
        self._array: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self._on_materialize = on_materialize

    @property
    def size(self) -> int:
        return self._size

    @property
    def dtype(self):
        return self._dtype

    @property
    def on_materialize(self):
        return self._on_materialize

    @property
    def materialized(self) -> bool:
        return self._array is not None

    def array(self) -> np.ndarray:
        array = self._array
        if array is None:
            with self._lock:
                if self._array is None:
                    values = self._generate(np.arange(self._size))
                    values.flags.writeable = False
                    self._array = values
                    self._generator = None
                    logger.debug("Materialized lazy storage of %d paths", self._size)
                    if self._on_materialize is not None:
                        self._on_materialize(self)
            array = self._array
        return array

    def read(self, indices: np.ndarray) -> np.ndarray:
        """Values for `indices` without forcing materialization."""
        array = self._array
        if array is not None:
            return array[indices]
        generator = self._generator
        if generator is None:
            # filled concurrently between the two reads
            return self.array()[indices]
        return _evaluate(generator, indices, self._dtype)

    def _generate(self, indices: np.ndarray) -> np.ndarray:
        values = _evaluate(self._generator, indices, self._dtype)
        if not values.flags.owndata or not values.flags.writeable:
            values = values.copy()
        return values


def _evaluate(generator: Generator, indices: np.ndarray, dtype) -> np.ndarray:
    with np.errstate(all="ignore"):
        values = np.asarray(generator(indices), dtype=dtype)
    if values.shape != indices.shape:
        values = np.broadcast_to(values, indices.shape)
    return values
