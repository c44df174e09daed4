# aad/core/config.py
from dataclasses import dataclass
from enum import Enum


class BarrierPolicy(str, Enum):
    """
    Partial derivative of barrier-select with respect to its trigger.

    DIRAC    : +inf on paths where trigger == 0, 0 elsewhere (the exact
               distributional derivative evaluated pointwise). On such a
               path a zero adjoint arriving from downstream gives
               inf * 0 = NaN in the trigger's adjoint.
    ZERO     : 0 everywhere; the jump is treated as a measure-zero event.
    SMOOTHED : local finite difference of width
               barrier_dirac_width * stdev(trigger):
               (a - b) / eps on paths with -eps/2 <= trigger < eps/2.
    """
    DIRAC = "dirac"
    ZERO = "zero"
    SMOOTHED = "smoothed"


@dataclass(frozen=True)
class AADConfig:
    """
    Settings of one tape.

    Attributes
    ----------
    barrier_policy : BarrierPolicy
        How barrier-select differentiates with respect to its trigger.
    barrier_dirac_width : float
        Width factor (in standard deviations of the trigger) for SMOOTHED.
    retain_leaf_nodes_only : bool
        Drop adjoints of intermediate nodes from the gradient once they have
        been propagated; only leaves are returned.
    """
    barrier_policy: BarrierPolicy = BarrierPolicy.DIRAC
    barrier_dirac_width: float = 0.2
    retain_leaf_nodes_only: bool = False

    def __post_init__(self):
        object.__setattr__(self, "barrier_policy", BarrierPolicy(self.barrier_policy))
