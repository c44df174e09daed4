# aad/ops/special.py
"""
Non-smooth and reducing primitives.

barrier(trigger, a, b) selects a where trigger >= 0 and b elsewhere; its
derivative with respect to the trigger follows the tape's BarrierPolicy.

The reducers map a path vector to a deterministic value. Their local partial
with respect to the path vector is itself a path vector (e.g. 1/N for the
average), see core/partials.py.
"""
from ...stochastic.random_variable import RandomVariable
from ..core.node import OperatorType
from .arithmetic import _record


def barrier(trigger, value_if_trigger_non_negative, value_if_trigger_negative):
    return _record(OperatorType.BARRIER, RandomVariable.choose, trigger,
                   value_if_trigger_non_negative, value_if_trigger_negative)


def average(x):
    return _record(OperatorType.AVERAGE, RandomVariable.average, x)


def variance(x):
    return _record(OperatorType.VARIANCE, RandomVariable.variance, x)


def sample_variance(x):
    return _record(OperatorType.SAMPLE_VARIANCE, RandomVariable.sample_variance, x)


def standard_deviation(x):
    return _record(OperatorType.STDEV, RandomVariable.standard_deviation, x)


def standard_error(x):
    return _record(OperatorType.STDERROR, RandomVariable.standard_error, x)


def min(x):
    return _record(OperatorType.MIN, RandomVariable.min, x)


def max(x):
    return _record(OperatorType.MAX, RandomVariable.max, x)
