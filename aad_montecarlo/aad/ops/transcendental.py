# aad/ops/transcendental.py
from ...stochastic.random_variable import RandomVariable
from ..core.node import OperatorType
from .arithmetic import _record


def exp(x):
    return _record(OperatorType.EXP, RandomVariable.exp, x)


def log(x):
    return _record(OperatorType.LOG, RandomVariable.log, x)


def sqrt(x):
    return _record(OperatorType.SQRT, RandomVariable.sqrt, x)


def sin(x):
    return _record(OperatorType.SIN, RandomVariable.sin, x)


def cos(x):
    return _record(OperatorType.COS, RandomVariable.cos, x)
