# aad_montecarlo/stochastic/random_variable.py
"""
The value engine: an immutable random variable on a Monte Carlo path space.

A `RandomVariable` is either

    deterministic : a single float, valid on every path (size() == 1), or
    stochastic    : one realization per path, held by a storage strategy
                    (dense array or lazy generator, see storage.py),

together with its filtration time (the simulation time at which it becomes
known). Every operator returns a new value; nothing is mutated in place.

Broadcasting rule (shared by every unary/binary/ternary operator):
    scalar o scalar  -> scalar
    scalar o vector  -> vector (scalar used on every path)
    vector o vector  -> vector, sizes must agree
The result's filtration time is the maximum of the operand times.

All elementwise math runs under `np.errstate(all="ignore")`: division by
zero, log/sqrt of negatives etc. produce IEEE-754 Infinity/NaN and never raise.
"""
from __future__ import annotations

import math
import numbers
from typing import Callable, Optional, Sequence

import numpy as np

from ..errors import OperatorArityError, PreconditionViolation
from .storage import DenseStorage, LazyStorage
from .summation import kahan_sum

NEGATIVE_INFINITY = float("-inf")


def _is_number(x) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


class RandomVariable:
    """
    Scalar-or-vector stochastic value with an observation (filtration) time.

    Parameters
    ----------
    time : float
        Filtration time.
    value : float | array-like
        A number gives a deterministic value. A one-dimensional array gives a
        stochastic value with one realization per path; an array of length one
        collapses to a deterministic value.
    dtype : numpy dtype, optional
        Storage precision for stochastic values (float64 default; float32 to
        halve memory).
    """

    __slots__ = ("_time", "_value", "_storage")

    # Arguments with a higher priority take over binary operators (see ADVar).
    type_priority = 1

    # Keep numpy from broadcasting over us; it defers to our reflected operators.
    __array_ufunc__ = None

    def __init__(self, time: float = 0.0, value=0.0, *, dtype=None):
        self._time = float(time)
        if isinstance(value, (DenseStorage, LazyStorage)):
            self._value = math.nan
            self._storage = value
        elif _is_number(value) or (isinstance(value, np.ndarray) and value.ndim == 0) \
                or isinstance(value, np.floating):
            self._value = float(value)
            self._storage = None
        else:
            array = np.array(value, dtype=dtype if dtype is not None else np.float64)
            if array.ndim != 1:
                raise PreconditionViolation(
                    f"Realizations must be one-dimensional, got shape {array.shape}")
            if array.shape[0] == 1:
                self._value = float(array[0])
                self._storage = None
            else:
                if not np.issubdtype(array.dtype, np.floating):
                    array = array.astype(np.float64)
                self._value = math.nan
                self._storage = DenseStorage(array)

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    @classmethod
    def of(cls, value) -> "RandomVariable":
        """Lift a plain number to a deterministic constant (time -inf); pass values through."""
        if isinstance(value, RandomVariable):
            return value
        if _is_number(value) or isinstance(value, np.floating):
            return cls(NEGATIVE_INFINITY, float(value))
        raise TypeError(f"Cannot use {type(value).__name__} as a random variable")

    @classmethod
    def constant(cls, value: float, time: float = NEGATIVE_INFINITY) -> "RandomVariable":
        return cls(time, float(value))

    @classmethod
    def from_array(cls, time: float, realizations, dtype=np.float64) -> "RandomVariable":
        return cls(time, np.asarray(realizations), dtype=dtype)

    @classmethod
    def from_function(cls, time: float, function: Callable, size: int, *,
                      dtype=np.float64, vectorized: bool = True) -> "RandomVariable":
        """
        Build realizations from an index generator.

        With `vectorized=True` the function receives `np.arange(size)` and must
        return all realizations; otherwise it is called once per path index.
        """
        if vectorized:
            with np.errstate(all="ignore"):
                values = np.asarray(function(np.arange(size)), dtype=dtype)
            values = np.broadcast_to(values, (size,)).copy() if values.shape != (size,) else values
        else:
            values = np.fromiter((function(i) for i in range(size)), dtype=dtype, count=size)
        return cls(time, values, dtype=dtype)

    @classmethod
    def lazy(cls, time: float, generator: Callable[[np.ndarray], np.ndarray], size: int, *,
             dtype=np.float64, on_materialize=None) -> "RandomVariable":
        """Deferred realizations, filled once on first read (see LazyStorage)."""
        if size == 1:
            return cls(time, float(np.asarray(generator(np.arange(1)), dtype=np.float64).ravel()[0]))
        return cls(time, LazyStorage(size, generator, dtype, on_materialize))

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #
    @property
    def filtration_time(self) -> float:
        return self._time

    @property
    def dtype(self):
        return np.dtype(np.float64) if self._storage is None else self._storage.dtype

    def is_deterministic(self) -> bool:
        return self._storage is None

    def size(self) -> int:
        return 1 if self._storage is None else self._storage.size

    def get(self, path: int) -> float:
        """Realization on `path`; the constant for every path if deterministic."""
        if self._storage is None:
            return self._value
        if not 0 <= path < self._storage.size:
            raise IndexError(f"Path index {path} out of range for {self._storage.size} paths")
        return float(self._storage.array()[path])

    def get_realizations(self) -> np.ndarray:
        """Read-only realizations (length 1 for a deterministic value)."""
        if self._storage is None:
            return np.array([self._value])
        return self._storage.array()

    def double_value(self) -> float:
        if self._storage is not None:
            raise PreconditionViolation("double_value() requires a deterministic random variable")
        return self._value

    def __float__(self) -> float:
        return self.double_value()

    def cache(self) -> "RandomVariable":
        """Force materialization of lazy realizations."""
        if self._storage is not None:
            self._storage.array()
        return self

    def equals(self, other, tolerance: float = 0.0) -> bool:
        other = RandomVariable.of(other)
        if self._time != other._time:
            return False
        if self.is_deterministic() and other.is_deterministic():
            return abs(self._value - other._value) <= tolerance or self._value == other._value
        if self.size() != other.size() and not (self.is_deterministic() or other.is_deterministic()):
            return False
        a, b = self._data(), other._data()
        return bool(np.all((np.abs(a - b) <= tolerance) | (a == b)))

    def __repr__(self) -> str:
        if self._storage is None:
            return f"RandomVariable(time={self._time}, value={self._value!r})"
        if self._storage.lazy and not self._storage.materialized:
            return f"RandomVariable(time={self._time}, size={self.size()}, lazy)"
        return f"RandomVariable(time={self._time}, size={self.size()}, dtype={self.dtype})"

    def _data(self):
        return np.float64(self._value) if self._storage is None else self._storage.array()

    def _float64(self) -> np.ndarray:
        return np.asarray(self._storage.array(), dtype=np.float64)

    # ------------------------------------------------------------------ #
    # Elementwise operator protocol
    # ------------------------------------------------------------------ #
    def apply(self, operator: Callable, *arguments) -> "RandomVariable":
        """
        Apply a vectorised elementwise operator.

        `operator` receives numpy float64 scalars (deterministic operands) or
        arrays (stochastic operands) and must broadcast like a numpy ufunc.
        Up to two further arguments are supported (binary and ternary operators).
        """
        if len(arguments) > 2:
            raise OperatorArityError(f"apply supports at most 3 operands, got {len(arguments) + 1}")
        return _apply(operator, (self,) + tuple(RandomVariable.of(a) for a in arguments))

    def _promoted(self, arguments: Sequence):
        """The argument that takes over this operator, if any has a higher type priority."""
        for argument in arguments:
            if getattr(argument, "type_priority", 0) > self.type_priority:
                return argument.lift(self)
        return None

    def _binary(self, name: str, operator, other) -> "RandomVariable":
        promoted = self._promoted((other,))
        if promoted is not None:
            return getattr(promoted, name)(other)
        return _apply(operator, (self, RandomVariable.of(other)))

    def _ternary(self, name: str, operator, first, second) -> "RandomVariable":
        promoted = self._promoted((first, second))
        if promoted is not None:
            return getattr(promoted, name)(first, second)
        return _apply(operator, (self, RandomVariable.of(first), RandomVariable.of(second)))

    # unary
    def squared(self):
        return _apply(np.square, (self,))

    def sqrt(self):
        return _apply(np.sqrt, (self,))

    def invert(self):
        return _apply(_invert, (self,))

    def abs(self):
        return _apply(np.abs, (self,))

    def exp(self):
        return _apply(np.exp, (self,))

    def log(self):
        return _apply(np.log, (self,))

    def sin(self):
        return _apply(np.sin, (self,))

    def cos(self):
        return _apply(np.cos, (self,))

    def pow(self, exponent: float):
        """Power with a deterministic, non-differentiable exponent."""
        return _apply(_power(_exponent(exponent)), (self,))

    def neg(self):
        return _apply(np.negative, (self,))

    def is_nan(self):
        """Indicator (1.0 / 0.0) of NaN realizations."""
        return _apply(_is_nan, (self,))

    # binary
    def add(self, other):
        return self._binary("add", np.add, other)

    def sub(self, other):
        return self._binary("sub", np.subtract, other)

    def bus(self, other):
        """other - self."""
        return self._binary("bus", _bus, other)

    def mult(self, other):
        return self._binary("mult", np.multiply, other)

    def div(self, other):
        return self._binary("div", np.true_divide, other)

    def vid(self, other):
        """other / self."""
        return self._binary("vid", _vid, other)

    def cap(self, other):
        return self._binary("cap", np.minimum, other)

    def floor(self, other):
        return self._binary("floor", np.maximum, other)

    def accrue(self, rate, period_length: float):
        """self * (1 + rate * period_length)."""
        period_length = float(period_length)
        promoted = self._promoted((rate,))
        if promoted is not None:
            return promoted.accrue(rate, period_length)
        return _apply(lambda x, r: x * (1.0 + r * period_length), (self, RandomVariable.of(rate)))

    def discount(self, rate, period_length: float):
        """self / (1 + rate * period_length)."""
        period_length = float(period_length)
        promoted = self._promoted((rate,))
        if promoted is not None:
            return promoted.discount(rate, period_length)
        return _apply(lambda x, r: x / (1.0 + r * period_length), (self, RandomVariable.of(rate)))

    # ternary
    def choose(self, value_if_trigger_non_negative, value_if_trigger_negative):
        """Barrier selection with `self` as trigger: sign(trigger) picks the branch per path."""
        return self._ternary("choose", _choose, value_if_trigger_non_negative, value_if_trigger_negative)

    def add_product(self, factor1, factor2):
        """self + factor1 * factor2."""
        return self._ternary("add_product", _add_product, factor1, factor2)

    def add_ratio(self, numerator, denominator):
        """self + numerator / denominator."""
        return self._ternary("add_ratio", _add_ratio, numerator, denominator)

    def sub_ratio(self, numerator, denominator):
        """self - numerator / denominator."""
        return self._ternary("sub_ratio", _sub_ratio, numerator, denominator)

    def add_sum_product(self, factors1: Sequence, factors2: Sequence):
        if len(factors1) != len(factors2):
            raise PreconditionViolation("add_sum_product needs factor lists of equal length")
        result = self
        for factor1, factor2 in zip(factors1, factors2):
            result = result.add_product(factor1, factor2)
        return result

    # python operators
    def __add__(self, other):
        return self.add(other) if _is_operand(other) else NotImplemented

    def __radd__(self, other):
        return self.add(other) if _is_operand(other) else NotImplemented

    def __sub__(self, other):
        return self.sub(other) if _is_operand(other) else NotImplemented

    def __rsub__(self, other):
        return self.bus(other) if _is_operand(other) else NotImplemented

    def __mul__(self, other):
        return self.mult(other) if _is_operand(other) else NotImplemented

    def __rmul__(self, other):
        return self.mult(other) if _is_operand(other) else NotImplemented

    def __truediv__(self, other):
        return self.div(other) if _is_operand(other) else NotImplemented

    def __rtruediv__(self, other):
        return self.vid(other) if _is_operand(other) else NotImplemented

    def __pow__(self, exponent):
        return self.pow(exponent) if _is_number(exponent) else NotImplemented

    def __neg__(self):
        return self.neg()

    def __abs__(self):
        return self.abs()

    # ------------------------------------------------------------------ #
    # Aggregates (compensated summation throughout)
    # ------------------------------------------------------------------ #
    def get_sum(self) -> float:
        if self._storage is None:
            return self._value
        return kahan_sum(self._float64())

    def get_min(self) -> float:
        if self._storage is None:
            return self._value
        if self.size() == 0:
            return math.nan
        return float(np.min(self._storage.array()))

    def get_max(self) -> float:
        if self._storage is None:
            return self._value
        if self.size() == 0:
            return math.nan
        return float(np.max(self._storage.array()))

    def get_average(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if probabilities is not None:
            return self._weighted_sum(RandomVariable.of(probabilities))
        if self._storage is None:
            return self._value
        if self.size() == 0:
            return math.nan
        return kahan_sum(self._float64()) / self.size()

    def get_variance(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if self._storage is None or self.size() == 1:
            return 0.0
        if self.size() == 0:
            return math.nan
        if probabilities is not None:
            probabilities = RandomVariable.of(probabilities)
            average = self.get_average(probabilities)
            return self.sub(average).squared()._weighted_sum(probabilities)
        values = self._float64()
        average = kahan_sum(values) / values.size
        return kahan_sum(np.square(values - average)) / values.size

    def get_sample_variance(self) -> float:
        if self._storage is None or self.size() == 1:
            return 0.0
        if self.size() == 0:
            return math.nan
        return self.get_variance() * self.size() / (self.size() - 1)

    def get_standard_deviation(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if self._storage is None:
            return 0.0
        if self.size() == 0:
            return math.nan
        return math.sqrt(self.get_variance(probabilities))

    def get_standard_error(self, probabilities: Optional["RandomVariable"] = None) -> float:
        if self._storage is None:
            return 0.0
        if self.size() == 0:
            return math.nan
        return self.get_standard_deviation(probabilities) / math.sqrt(self.size())

    def get_quantile(self, quantile: float) -> float:
        if self._storage is None:
            return self._value
        if self.size() == 0:
            return math.nan
        realizations = np.sort(self._float64())
        return float(realizations[_quantile_index(quantile, realizations.size)])

    def get_quantile_expectation(self, quantile_start: float, quantile_end: float) -> float:
        """Average of the sorted realizations between two quantiles (inclusive)."""
        if self._storage is None:
            return self._value
        if self.size() == 0:
            return math.nan
        if quantile_start > quantile_end:
            return self.get_quantile_expectation(quantile_end, quantile_start)
        realizations = np.sort(self._float64())
        start = _quantile_index(quantile_start, realizations.size)
        end = _quantile_index(quantile_end, realizations.size)
        return kahan_sum(realizations[start:end + 1]) / (end - start + 1)

    def get_histogram(self, interval_points: Sequence[float]) -> np.ndarray:
        """
        Relative frequencies of the buckets
        (-inf, p0], (p0, p1], ..., (p_{n-1}, +inf), for increasing points.
        A deterministic value counts as a single sample.
        """
        points = np.asarray(interval_points, dtype=np.float64)
        samples = np.sort(self._float64()) if self._storage is not None else np.array([self._value])
        if samples.size == 0:
            return np.zeros(points.size + 1)
        cumulative = np.searchsorted(samples, points, side="right")
        counts = np.diff(np.concatenate(([0], cumulative, [samples.size])))
        return counts / samples.size

    def get_histogram_around(self, number_of_points: int, standard_deviations: float):
        """
        Histogram on `number_of_points` points centred at the mean and spread
        over +/- `standard_deviations` standard deviations.

        Returns (anchor_points, frequencies), both of length number_of_points + 1.
        A single point sits at the mean, with anchors at mean -/+ the radius.
        """
        center = self.get_average()
        radius = standard_deviations * self.get_standard_deviation()
        if number_of_points == 1:
            interval_points = np.array([center])
            return np.array([center - radius, center + radius]), self.get_histogram(interval_points)
        step = (number_of_points - 1) / 2.0
        alpha = (np.arange(number_of_points) - step) / step
        interval_points = center + alpha * radius
        anchor_points = np.append(interval_points - radius / (2 * step), center + radius + radius / (2 * step))
        return anchor_points, self.get_histogram(interval_points)

    def _weighted_sum(self, probabilities: "RandomVariable") -> float:
        weighted = self.mult(probabilities)
        if weighted.is_deterministic():
            return weighted._value
        return kahan_sum(weighted._float64())

    # reducers returning deterministic random variables
    def average(self):
        return RandomVariable(self._time, self.get_average())

    def variance(self):
        return RandomVariable(self._time, self.get_variance())

    def sample_variance(self):
        return RandomVariable(self._time, self.get_sample_variance())

    def standard_deviation(self):
        return RandomVariable(self._time, self.get_standard_deviation())

    def standard_error(self):
        return RandomVariable(self._time, self.get_standard_error())

    def min(self):
        return RandomVariable(self._time, self.get_min())

    def max(self):
        return RandomVariable(self._time, self.get_max())


# ---------------------------------------------------------------------- #
# elementwise kernels
# ---------------------------------------------------------------------- #
def _invert(x):
    return 1.0 / x


def _bus(x, y):
    return y - x


def _vid(x, y):
    return y / x


def _choose(trigger, if_non_negative, if_negative):
    return np.where(trigger >= 0.0, if_non_negative, if_negative)


def _add_product(x, y, z):
    return x + y * z


def _add_ratio(x, y, z):
    return x + y / z


def _sub_ratio(x, y, z):
    return x - y / z


def _is_nan(x):
    return np.where(np.isnan(x), 1.0, 0.0)


def _power(exponent: float):
    def power(x):
        return np.power(x, exponent)
    return power


def _exponent(exponent) -> float:
    if isinstance(exponent, RandomVariable):
        if not exponent.is_deterministic():
            raise PreconditionViolation("pow requires a deterministic exponent")
        return exponent.double_value()
    if not _is_number(exponent):
        raise PreconditionViolation(f"pow requires a number as exponent, got {type(exponent).__name__}")
    return float(exponent)


def _is_operand(x) -> bool:
    return _is_number(x) or isinstance(x, (RandomVariable, np.floating)) or hasattr(x, "lift")


def _quantile_index(quantile: float, size: int) -> int:
    return min(max(int(math.floor((size + 1) * quantile - 1 + 0.5)), 0), size - 1)


def _common_size(operands) -> Optional[int]:
    size = None
    for operand in operands:
        if operand._storage is None:
            continue
        if size is None:
            size = operand._storage.size
        elif operand._storage.size != size:
            raise PreconditionViolation(
                f"Stochastic operands must have equal size, got {size} and {operand._storage.size}")
    return size


def _apply(operator: Callable, operands) -> RandomVariable:
    time = max(operand._time for operand in operands)
    size = _common_size(operands)

    if size is None:
        with np.errstate(all="ignore"):
            result = operator(*(np.float64(operand._value) for operand in operands))
        return RandomVariable(time, float(result))

    storages = [operand._storage for operand in operands if operand._storage is not None]
    if all(storage.lazy and not storage.materialized for storage in storages):
        return RandomVariable(time, _compose(operator, operands, size, storages))

    with np.errstate(all="ignore"):
        result = np.asarray(operator(*(operand._data() for operand in operands)))
    if result.shape != (size,):
        result = np.broadcast_to(result, (size,))
    # results keep the storage precision of their stochastic operands
    return RandomVariable(time, result, dtype=np.result_type(*(storage.dtype for storage in storages)))


def _compose(operator: Callable, operands, size: int, storages) -> LazyStorage:
    """Lazy result of `operator` over unmaterialised lazy (or deterministic) operands."""
    def generator(indices):
        arguments = [np.float64(operand._value) if operand._storage is None
                     else operand._storage.read(indices) for operand in operands]
        with np.errstate(all="ignore"):
            return operator(*arguments)

    dtype = np.result_type(*(storage.dtype for storage in storages))
    return LazyStorage(size, generator, dtype, storages[0].on_materialize)
