# aad/ops/__init__.py

# Convenience re-exports so users can do: from aad_montecarlo.aad.ops import mul, exp, ...
from .arithmetic import (
    add, sub, mul, div, neg, pow, cap, floor, squared, invert, abs,
    add_product, add_ratio, sub_ratio, accrue, discount, add_sum_product,
)
from .transcendental import exp, log, sqrt, sin, cos
from .special import (
    barrier, average, variance, sample_variance, standard_deviation, standard_error, min, max,
)

__all__ = [
    "add", "sub", "mul", "div", "neg", "pow", "cap", "floor", "squared", "invert", "abs",
    "add_product", "add_ratio", "sub_ratio", "accrue", "discount", "add_sum_product",
    "exp", "log", "sqrt", "sin", "cos",
    "barrier", "average", "variance", "sample_variance", "standard_deviation", "standard_error",
    "min", "max",
]
