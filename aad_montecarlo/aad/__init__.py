# aad/__init__.py
# Adjoint algorithmic differentiation over Monte Carlo random variables

from .core.config import AADConfig, BarrierPolicy
from .core.node import NodeKind, OperatorType
from .core.var import ADVar
from .core.tape import Tape, use_tape
from .core.engine import Gradient, reverse
from .core.seeds import grad, grads, grads_list, value
from .core.factory import ADRandomVariableFactory
from . import ops

__all__ = [
    # Core
    'AADConfig',
    'BarrierPolicy',
    'NodeKind',
    'OperatorType',
    'ADVar',
    'Tape',
    'use_tape',
    # Engine
    'Gradient',
    'reverse',
    'grad',
    'grads',
    'grads_list',
    'value',
    'ADRandomVariableFactory',
    # Primitives
    'ops',
]
