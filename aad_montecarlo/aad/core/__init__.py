# aad/core/__init__.py

"""
Core public API for the AAD layer.

Exports:
    ADVar         : Differentiable handle on a tape node.
    Tape          : Arena recording the operator graph of one computation.
    use_tape      : Context manager for a fresh tape, released on exit.
    AADConfig     : Tape settings (barrier policy, leaf-only gradients).
    reverse       : Run a single reverse pass, returning a Gradient.
    grad, grads   : Convenience: adjoints of a function at given inputs.
    value         : Convenience: extract the forward value from an ADVar.
"""

from .config import AADConfig, BarrierPolicy
from .node import Node, NodeKind, OperatorType
from .var import ADVar
from .tape import Tape, use_tape
from .engine import Gradient, reverse
from .partials import partial_derivative
from .seeds import grad, grads, grads_list, value
from .factory import ADRandomVariableFactory
from .graph_utils import graph_summary, consumers

__all__ = [
    "AADConfig", "BarrierPolicy",
    "Node", "NodeKind", "OperatorType",
    "ADVar",
    "Tape", "use_tape",
    "Gradient", "reverse",
    "partial_derivative",
    "grad", "grads", "grads_list", "value",
    "ADRandomVariableFactory",
    "graph_summary", "consumers",
]
