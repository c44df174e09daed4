# aad_montecarlo/__init__.py
# Monte Carlo random variables with adjoint algorithmic differentiation

import logging

from .errors import AADMonteCarloError, PreconditionViolation, OperatorArityError, TapeReleasedError
from .stochastic import (
    RandomVariable,
    RandomVariableFactory,
    DenseRandomVariableFactory,
    LazyRandomVariableFactory,
    MersenneTwister,
    generate_increments,
    kahan_sum,
)
from .aad import AADConfig, BarrierPolicy, ADVar, Tape, use_tape, Gradient, ADRandomVariableFactory

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    'AADMonteCarloError',
    'PreconditionViolation',
    'OperatorArityError',
    'TapeReleasedError',
    'RandomVariable',
    'RandomVariableFactory',
    'DenseRandomVariableFactory',
    'LazyRandomVariableFactory',
    'MersenneTwister',
    'generate_increments',
    'kahan_sum',
    'AADConfig',
    'BarrierPolicy',
    'ADVar',
    'Tape',
    'use_tape',
    'Gradient',
    'ADRandomVariableFactory',
]
