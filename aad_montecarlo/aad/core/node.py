# aad/core/node.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ...stochastic.random_variable import RandomVariable


class OperatorType(Enum):
    """Closed set of recorded operators: (tag, number of operands)."""
    ADD = ("add", 2)
    SUB = ("sub", 2)
    MULT = ("mult", 2)
    DIV = ("div", 2)
    SQUARED = ("squared", 1)
    SQRT = ("sqrt", 1)
    LOG = ("log", 1)
    SIN = ("sin", 1)
    COS = ("cos", 1)
    EXP = ("exp", 1)
    INVERT = ("invert", 1)
    ABS = ("abs", 1)
    CAP = ("cap", 2)
    FLOOR = ("floor", 2)
    POW = ("pow", 2)
    ADD_PRODUCT = ("add_product", 3)
    ADD_RATIO = ("add_ratio", 3)
    SUB_RATIO = ("sub_ratio", 3)
    ACCRUE = ("accrue", 3)
    DISCOUNT = ("discount", 3)
    BARRIER = ("barrier", 3)
    AVERAGE = ("average", 1)
    VARIANCE = ("variance", 1)
    STDEV = ("stdev", 1)
    STDERROR = ("stderror", 1)
    SAMPLE_VARIANCE = ("sample_variance", 1)
    MIN = ("min", 1)
    MAX = ("max", 1)

    def __init__(self, tag: str, arity: int):
        self.tag = tag
        self.arity = arity

    @property
    def is_reducer(self) -> bool:
        """Maps a path vector to a single deterministic value."""
        return self.tag in _REDUCER_TAGS


_REDUCER_TAGS = frozenset(("average", "variance", "stdev", "stderror", "sample_variance", "min", "max"))


class NodeKind(Enum):
    CONSTANT = "constant"       # lifted plain value, never differentiated
    VARIABLE = "variable"       # differentiable input
    EXPRESSION = "expression"   # result of a recorded operator


@dataclass(frozen=True)
class Node:
    """
    One entry of the tape.

    Attributes
    ----------
    id       : position in the tape; strictly increasing in creation order.
    value    : forward value, computed when the node is recorded.
    kind     : constant / variable / expression.
    operator : recorded operator (None for leaves).
    operands : ids of the operand nodes, all smaller than `id`.
    """
    id: int
    value: RandomVariable
    kind: NodeKind
    operator: Optional[OperatorType] = None
    operands: Tuple[int, ...] = ()

    @property
    def is_constant(self) -> bool:
        return self.kind is NodeKind.CONSTANT

    @property
    def is_leaf(self) -> bool:
        return self.operator is None
