# aad/core/partials.py
"""
Local partial derivatives, one rule per OperatorType.

A rule receives the forward values of the node's operands (X, Y, Z in
operand order), the node's own forward value and the index of the operand
to differentiate with respect to, and returns d(node)/d(operand) as a
RandomVariable. Partials use the same value-engine arithmetic as the forward
pass, so Infinity/NaN propagate instead of raising.

Reducers (average, variance, ...) return a path vector: the derivative of
the reduced scalar with respect to every realization of X.
"""
from __future__ import annotations

import math
from typing import Callable, Dict, Sequence

import numpy as np

from ...errors import OperatorArityError
from ...stochastic.random_variable import RandomVariable
from .config import AADConfig, BarrierPolicy
from .node import OperatorType

ZERO = RandomVariable.constant(0.0)
ONE = RandomVariable.constant(1.0)
MINUS_ONE = RandomVariable.constant(-1.0)

Rule = Callable[[Sequence[RandomVariable], RandomVariable, int, AADConfig], RandomVariable]


def _indicator_non_negative(trigger: RandomVariable) -> RandomVariable:
    return trigger.choose(ONE, ZERO)


def _indicator_negative(trigger: RandomVariable) -> RandomVariable:
    return trigger.choose(ZERO, ONE)


def _add(args, result, index, config):
    return ONE


def _sub(args, result, index, config):
    return ONE if index == 0 else MINUS_ONE


def _mult(args, result, index, config):
    X, Y = args
    return Y if index == 0 else X


def _div(args, result, index, config):
    X, Y = args
    return Y.invert() if index == 0 else X.div(Y.squared()).neg()


def _squared(args, result, index, config):
    return args[0].mult(2.0)


def _sqrt(args, result, index, config):
    return result.invert().mult(0.5)


def _log(args, result, index, config):
    return args[0].invert()


def _sin(args, result, index, config):
    return args[0].cos()


def _cos(args, result, index, config):
    return args[0].sin().neg()


def _exp(args, result, index, config):
    return result


def _invert(args, result, index, config):
    return result.squared().neg()


def _abs(args, result, index, config):
    return args[0].choose(ONE, MINUS_ONE)


def _cap(args, result, index, config):
    # min(X, Y): X on paths where X < Y, Y elsewhere
    X, Y = args
    difference = X.sub(Y)
    return _indicator_negative(difference) if index == 0 else _indicator_non_negative(difference)


def _floor(args, result, index, config):
    # max(X, Y): X on paths where X >= Y, Y elsewhere
    X, Y = args
    difference = X.sub(Y)
    return _indicator_non_negative(difference) if index == 0 else _indicator_negative(difference)


def _pow(args, result, index, config):
    # the exponent is a constant
    X, P = args
    if index == 1:
        return ZERO
    exponent = P.double_value()
    return X.pow(exponent - 1.0).mult(exponent)


def _add_product(args, result, index, config):
    X, Y, Z = args
    return (ONE, Z, Y)[index]


def _add_ratio(args, result, index, config):
    X, Y, Z = args
    if index == 0:
        return ONE
    if index == 1:
        return Z.invert()
    return Y.div(Z.squared()).neg()


def _sub_ratio(args, result, index, config):
    X, Y, Z = args
    if index == 0:
        return ONE
    if index == 1:
        return Z.invert().neg()
    return Y.div(Z.squared())


def _accrue(args, result, index, config):
    X, Y, Z = args
    if index == 0:
        return Y.mult(Z).add(1.0)
    if index == 1:
        return X.mult(Z)
    return X.mult(Y)


def _discount(args, result, index, config):
    X, Y, Z = args
    growth = Y.mult(Z).add(1.0)
    if index == 0:
        return growth.invert()
    if index == 1:
        return X.mult(Z).div(growth.squared()).neg()
    return X.mult(Y).div(growth.squared()).neg()


def _barrier(args, result, index, config):
    trigger, if_non_negative, if_negative = args
    if index == 1:
        return _indicator_non_negative(trigger)
    if index == 2:
        return _indicator_negative(trigger)

    policy = config.barrier_policy
    if policy is BarrierPolicy.ZERO:
        return ZERO
    if policy is BarrierPolicy.DIRAC:
        return trigger.apply(lambda t: np.where(t == 0.0, np.inf, 0.0))
    # SMOOTHED: local finite difference across the jump
    epsilon = config.barrier_dirac_width * trigger.get_standard_deviation()
    if not epsilon > 0.0:
        return ZERO
    half = epsilon / 2.0
    inside = trigger.apply(lambda t: np.where((t >= -half) & (t < half), 1.0, 0.0))
    return if_non_negative.sub(if_negative).mult(inside).div(epsilon)


def _deviation(X: RandomVariable) -> RandomVariable:
    return X.sub(X.get_average())


def _average(args, result, index, config):
    X = args[0]
    return RandomVariable.constant(1.0 / X.size())


def _variance(args, result, index, config):
    X = args[0]
    if X.is_deterministic():
        return ZERO
    return _deviation(X).mult(2.0 / X.size())


def _sample_variance(args, result, index, config):
    X = args[0]
    if X.is_deterministic():
        return ZERO
    return _deviation(X).mult(2.0 / (X.size() - 1))


def _stdev(args, result, index, config):
    X = args[0]
    if X.is_deterministic():
        return ZERO
    return _deviation(X).div(X.size() * result.double_value())


def _stderror(args, result, index, config):
    X = args[0]
    if X.is_deterministic():
        return ZERO
    size = X.size()
    return _deviation(X).div(size * math.sqrt(size) * X.get_standard_deviation())


def _extremum_indicator(X: RandomVariable, position: int) -> RandomVariable:
    indicator = np.zeros(X.size())
    indicator[position] = 1.0
    return RandomVariable(X.filtration_time, indicator)


def _min(args, result, index, config):
    # ties go to the first path attaining the minimum
    X = args[0]
    if X.is_deterministic():
        return ONE
    return _extremum_indicator(X, int(np.argmin(X.get_realizations())))


def _max(args, result, index, config):
    # ties go to the first path attaining the maximum
    X = args[0]
    if X.is_deterministic():
        return ONE
    return _extremum_indicator(X, int(np.argmax(X.get_realizations())))


RULES: Dict[OperatorType, Rule] = {
    OperatorType.ADD: _add,
    OperatorType.SUB: _sub,
    OperatorType.MULT: _mult,
    OperatorType.DIV: _div,
    OperatorType.SQUARED: _squared,
    OperatorType.SQRT: _sqrt,
    OperatorType.LOG: _log,
    OperatorType.SIN: _sin,
    OperatorType.COS: _cos,
    OperatorType.EXP: _exp,
    OperatorType.INVERT: _invert,
    OperatorType.ABS: _abs,
    OperatorType.CAP: _cap,
    OperatorType.FLOOR: _floor,
    OperatorType.POW: _pow,
    OperatorType.ADD_PRODUCT: _add_product,
    OperatorType.ADD_RATIO: _add_ratio,
    OperatorType.SUB_RATIO: _sub_ratio,
    OperatorType.ACCRUE: _accrue,
    OperatorType.DISCOUNT: _discount,
    OperatorType.BARRIER: _barrier,
    OperatorType.AVERAGE: _average,
    OperatorType.VARIANCE: _variance,
    OperatorType.STDEV: _stdev,
    OperatorType.STDERROR: _stderror,
    OperatorType.SAMPLE_VARIANCE: _sample_variance,
    OperatorType.MIN: _min,
    OperatorType.MAX: _max,
}


def partial_derivative(operator: OperatorType, args: Sequence[RandomVariable], result: RandomVariable,
                       index: int, config: AADConfig) -> RandomVariable:
    """d(operator(args)) / d(args[index])."""
    if len(args) != operator.arity:
        raise OperatorArityError(f"{operator.tag} takes {operator.arity} operands, got {len(args)}")
    if not 0 <= index < operator.arity:
        raise OperatorArityError(f"{operator.tag} has no operand {index}")
    return RULES[operator](args, result, index, config)
