# aad/ops/arithmetic.py
from ...errors import PreconditionViolation
from ...stochastic.random_variable import RandomVariable
from ..core.node import NodeKind, OperatorType
from ..core.var import ADVar


def _tape_of(args):
    tape = None
    for a in args:
        if isinstance(a, ADVar):
            if tape is None:
                tape = a.tape
            elif a.tape is not tape:
                raise PreconditionViolation("Cannot combine ADVars recorded on different tapes")
    if tape is None:
        raise PreconditionViolation("At least one operand must be an ADVar")
    return tape


def _as_ad(tape, x):
    """Resolve an operand once: ADVars pass through, plain values become constant leaves."""
    if isinstance(x, ADVar):
        return x
    return tape.constant(x)


def _record(operator, forward, *args):
    """
    Generic primitive:
      - resolves every operand to a node on the common tape
      - computes out.value = forward(operand values) with the value engine
      - pushes a Node(operator, operand ids)
    An operator applied to constants only is itself recorded as a constant.
    """
    tape = _tape_of(args)
    handles = [_as_ad(tape, a) for a in args]
    value = forward(*(h.value for h in handles))
    if all(h.is_constant for h in handles):
        node_id = tape.push_node(value=value, kind=NodeKind.CONSTANT)
        return ADVar._expression(tape, node_id, value, NodeKind.CONSTANT)
    node_id = tape.push_node(value=value, kind=NodeKind.EXPRESSION, operator=operator,
                             operands=tuple(h.id for h in handles))
    return ADVar._expression(tape, node_id, value)


def add(x, y): return _record(OperatorType.ADD, RandomVariable.add, x, y)
def sub(x, y): return _record(OperatorType.SUB, RandomVariable.sub, x, y)
def mul(x, y): return _record(OperatorType.MULT, RandomVariable.mult, x, y)
def div(x, y): return _record(OperatorType.DIV, RandomVariable.div, x, y)
def cap(x, y): return _record(OperatorType.CAP, RandomVariable.cap, x, y)
def floor(x, y): return _record(OperatorType.FLOOR, RandomVariable.floor, x, y)


def neg(x):
    return mul(x, -1.0)


def squared(x):
    return _record(OperatorType.SQUARED, RandomVariable.squared, x)


def invert(x):
    return _record(OperatorType.INVERT, RandomVariable.invert, x)


def abs(x):
    return _record(OperatorType.ABS, RandomVariable.abs, x)


def pow(x, exponent):
    """
    Power with a constant exponent:
      out.value = x ** p
    The exponent is recorded as a constant operand; it is never differentiated.
    """
    if isinstance(exponent, ADVar):
        if not exponent.is_constant:
            raise PreconditionViolation("pow requires a constant exponent")
        exponent = exponent.value
    if isinstance(exponent, RandomVariable):
        exponent = exponent.double_value()
    return _record(OperatorType.POW, RandomVariable.pow, x, float(exponent))


def add_product(x, y, z):
    """x + y * z"""
    return _record(OperatorType.ADD_PRODUCT, RandomVariable.add_product, x, y, z)


def add_ratio(x, y, z):
    """x + y / z"""
    return _record(OperatorType.ADD_RATIO, RandomVariable.add_ratio, x, y, z)


def sub_ratio(x, y, z):
    """x - y / z"""
    return _record(OperatorType.SUB_RATIO, RandomVariable.sub_ratio, x, y, z)


def accrue(x, rate, period_length):
    """x * (1 + rate * period_length); the period length is a constant."""
    return _record(OperatorType.ACCRUE, _accrue, x, rate, float(period_length))


def discount(x, rate, period_length):
    """x / (1 + rate * period_length); the period length is a constant."""
    return _record(OperatorType.DISCOUNT, _discount, x, rate, float(period_length))


def add_sum_product(x, factors1, factors2):
    if len(factors1) != len(factors2):
        raise PreconditionViolation("add_sum_product needs factor lists of equal length")
    result = x
    for factor1, factor2 in zip(factors1, factors2):
        result = add_product(result, factor1, factor2)
    return result


def _accrue(x, rate, period_length):
    return x.accrue(rate, period_length.double_value())


def _discount(x, rate, period_length):
    return x.discount(rate, period_length.double_value())
