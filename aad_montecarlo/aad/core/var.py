# aad/core/var.py
from __future__ import annotations

import numbers
from typing import Optional

import numpy as np

from ...errors import PreconditionViolation
from ...stochastic.random_variable import RandomVariable
from .node import NodeKind


def _ops():
    from .. import ops
    return ops


class ADVar:
    """
    Differentiable handle on a tape node.

    Every operator of the value engine has a counterpart here: it computes the
    forward value with the value engine and records a node (operator tag plus
    operand ids) on the tape, returning a new ADVar. Plain numbers and
    RandomVariables used as operands are recorded as constant leaves.

    Attributes
    ----------
    tape  : Tape owning the node.
    id    : node id (position on the tape).
    value : RandomVariable, the forward value.
    kind  : NodeKind of the node.
    name  : optional debug name.
    """

    __slots__ = ("tape", "id", "value", "kind", "name")

    # Higher than RandomVariable.type_priority: mixed operations become differentiable.
    type_priority = 3

    __array_ufunc__ = None

    def __init__(self, val, *, tape, requires_grad: bool = True, name: Optional[str] = None,
                 time: float = 0.0):
        if isinstance(val, RandomVariable):
            value = val
        elif isinstance(val, (numbers.Real, list, tuple, np.ndarray)) and not isinstance(val, bool):
            value = RandomVariable(time, val)
        else:
            raise TypeError(
                f"ADVar only accepts RandomVariable, numbers, sequences or ndarray, but got {type(val)}")
        kind = NodeKind.VARIABLE if requires_grad else NodeKind.CONSTANT
        self.tape = tape
        self.value = value
        self.kind = kind
        self.name = name
        self.id = tape.push_node(value=value, kind=kind)

    @classmethod
    def _expression(cls, tape, node_id: int, value: RandomVariable, kind: NodeKind = NodeKind.EXPRESSION):
        var = cls.__new__(cls)
        var.tape = tape
        var.id = node_id
        var.value = value
        var.kind = kind
        var.name = None
        return var

    def __repr__(self):
        return f"ADVar(id={self.id}, {self.kind.value}, value={self.value!r}, name={self.name!r})"

    @property
    def is_constant(self) -> bool:
        return self.kind is NodeKind.CONSTANT

    def lift(self, value) -> "ADVar":
        """`value` as a handle on this tape (constants for plain values)."""
        if isinstance(value, ADVar):
            if value.tape is not self.tape:
                raise PreconditionViolation("Cannot combine ADVars recorded on different tapes")
            return value
        return self.tape.constant(value)

    def get_gradient(self, independent_ids=None):
        """
        Reverse pass from this node: mapping node id -> adjoint RandomVariable.
        See engine.reverse.
        """
        from .engine import reverse
        return reverse(self, independent_ids)

    # ------------------------------------------------------------------ #
    # Non-differentiable end points (delegate to the forward value)
    # ------------------------------------------------------------------ #
    @property
    def filtration_time(self) -> float:
        return self.value.filtration_time

    def is_deterministic(self) -> bool:
        return self.value.is_deterministic()

    def size(self) -> int:
        return self.value.size()

    def get(self, path: int) -> float:
        return self.value.get(path)

    def get_realizations(self) -> np.ndarray:
        return self.value.get_realizations()

    def double_value(self) -> float:
        return self.value.double_value()

    def __float__(self) -> float:
        return self.value.double_value()

    def is_nan(self) -> RandomVariable:
        return self.value.is_nan()

    def equals(self, other, tolerance: float = 0.0) -> bool:
        other = other.value if isinstance(other, ADVar) else other
        return self.value.equals(other, tolerance)

    def get_sum(self) -> float:
        return self.value.get_sum()

    def get_min(self) -> float:
        return self.value.get_min()

    def get_max(self) -> float:
        return self.value.get_max()

    def get_average(self, probabilities=None) -> float:
        return self.value.get_average(_plain(probabilities))

    def get_variance(self, probabilities=None) -> float:
        return self.value.get_variance(_plain(probabilities))

    def get_sample_variance(self) -> float:
        return self.value.get_sample_variance()

    def get_standard_deviation(self, probabilities=None) -> float:
        return self.value.get_standard_deviation(_plain(probabilities))

    def get_standard_error(self, probabilities=None) -> float:
        return self.value.get_standard_error(_plain(probabilities))

    def get_quantile(self, quantile: float) -> float:
        return self.value.get_quantile(quantile)

    def get_quantile_expectation(self, quantile_start: float, quantile_end: float) -> float:
        return self.value.get_quantile_expectation(quantile_start, quantile_end)

    def get_histogram(self, interval_points):
        return self.value.get_histogram(interval_points)

    def get_histogram_around(self, number_of_points: int, standard_deviations: float):
        return self.value.get_histogram_around(number_of_points, standard_deviations)

    def cache(self) -> "ADVar":
        self.value.cache()
        return self

    # ------------------------------------------------------------------ #
    # Differentiable operators
    # ------------------------------------------------------------------ #
    def add(self, other):
        return _ops().add(self, other)

    def sub(self, other):
        return _ops().sub(self, other)

    def bus(self, other):
        return _ops().sub(other, self)

    def mult(self, other):
        return _ops().mul(self, other)

    def div(self, other):
        return _ops().div(self, other)

    def vid(self, other):
        return _ops().div(other, self)

    def cap(self, other):
        return _ops().cap(self, other)

    def floor(self, other):
        return _ops().floor(self, other)

    def pow(self, exponent):
        return _ops().pow(self, exponent)

    def neg(self):
        return _ops().neg(self)

    def squared(self):
        return _ops().squared(self)

    def sqrt(self):
        return _ops().sqrt(self)

    def invert(self):
        return _ops().invert(self)

    def abs(self):
        return _ops().abs(self)

    def exp(self):
        return _ops().exp(self)

    def log(self):
        return _ops().log(self)

    def sin(self):
        return _ops().sin(self)

    def cos(self):
        return _ops().cos(self)

    def accrue(self, rate, period_length: float):
        return _ops().accrue(self, rate, period_length)

    def discount(self, rate, period_length: float):
        return _ops().discount(self, rate, period_length)

    def choose(self, value_if_trigger_non_negative, value_if_trigger_negative):
        return _ops().barrier(self, value_if_trigger_non_negative, value_if_trigger_negative)

    def add_product(self, factor1, factor2):
        return _ops().add_product(self, factor1, factor2)

    def add_ratio(self, numerator, denominator):
        return _ops().add_ratio(self, numerator, denominator)

    def sub_ratio(self, numerator, denominator):
        return _ops().sub_ratio(self, numerator, denominator)

    def add_sum_product(self, factors1, factors2):
        return _ops().add_sum_product(self, factors1, factors2)

    def average(self):
        return _ops().average(self)

    def variance(self):
        return _ops().variance(self)

    def sample_variance(self):
        return _ops().sample_variance(self)

    def standard_deviation(self):
        return _ops().standard_deviation(self)

    def standard_error(self):
        return _ops().standard_error(self)

    def min(self):
        return _ops().min(self)

    def max(self):
        return _ops().max(self)

    # Operator overloading
    def __add__(self, other):
        return _ops().add(self, other)

    def __radd__(self, other):
        return _ops().add(other, self)

    def __sub__(self, other):
        return _ops().sub(self, other)

    def __rsub__(self, other):
        return _ops().sub(other, self)

    def __mul__(self, other):
        return _ops().mul(self, other)

    def __rmul__(self, other):
        return _ops().mul(other, self)

    def __truediv__(self, other):
        return _ops().div(self, other)

    def __rtruediv__(self, other):
        return _ops().div(other, self)

    def __neg__(self):
        return _ops().neg(self)

    def __pow__(self, exponent):
        return _ops().pow(self, exponent)

    def __abs__(self):
        return _ops().abs(self)


def _plain(x):
    return x.value if isinstance(x, ADVar) else x
