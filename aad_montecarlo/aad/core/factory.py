# aad/core/factory.py
from typing import Optional

import numpy as np

from ...stochastic.factory import RandomVariableFactory
from ...stochastic.random_variable import RandomVariable
from .tape import Tape


class ADRandomVariableFactory(RandomVariableFactory):
    """
    Creates differentiable inputs: every value becomes a variable node on `tape`,
    so a generator built on this factory yields values the gradient can reach.
    """

    def __init__(self, tape: Tape, dtype=np.float64):
        self.tape = tape
        self.dtype = np.dtype(dtype)

    def create(self, time: float, value, name: Optional[str] = None):
        if np.ndim(value) == 0:
            value = RandomVariable(time, float(value))
        else:
            value = RandomVariable(time, np.asarray(value), dtype=self.dtype)
        return self.tape.variable(value, name=name)

    def create_constant(self, value: float):
        return self.tape.constant(float(value))
