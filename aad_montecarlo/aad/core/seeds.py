# aad/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the output and let adjoints grow
# backwards through the tape. Every helper records on its own tape and
# releases it before returning.
#-----------------------------------------------------------------------------
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from ...stochastic.random_variable import RandomVariable
from .config import AADConfig
from .engine import reverse
from .tape import Tape, use_tape
from .var import ADVar


def value(x: Any) -> Any:
    """Return the forward value of an ADVar; pass through anything else unchanged."""
    return x.value if isinstance(x, ADVar) else x


def _ensure_ad(tape: Tape, v: Any, *, name: str) -> ADVar:
    """Record a plain value as a differentiable input; ADVars on `tape` pass through."""
    return v if isinstance(v, ADVar) else tape.variable(v, name=name)


def _output(tape: Tape, y: Any) -> ADVar:
    return y if isinstance(y, ADVar) else tape.constant(y, name="y")


# ----------------------------- single-input grad ----------------------------- #
def grad(f: Callable[[ADVar], ADVar], x0, config: Optional[AADConfig] = None) -> RandomVariable:
    """
    Adjoint of y=f(x) with respect to x at x0 (single input).
    Runs one reverse pass within a fresh, isolated tape.
    """
    with use_tape(config) as tape:
        x = _ensure_ad(tape, x0, name="x")
        y = _output(tape, f(x))
        return reverse(y)[x]


# ----------------------------- multi-input grads ----------------------------- #
def grads(f: Callable[[Dict[str, ADVar]], ADVar], inputs: Dict[str, Any],
          config: Optional[AADConfig] = None) -> Dict[str, RandomVariable]:
    """
    Adjoints of y=f(vars) with respect to ALL inputs (dict form).
    Performs ONE reverse pass to obtain every dy/dvar simultaneously.

    Parameters
    ----------
    f       : function taking a dict {name: ADVar} and returning an ADVar
    inputs  : dict {name: number | array | RandomVariable}

    Returns
    -------
    dict {name: RandomVariable}  # in the same key order as `inputs`
    """
    with use_tape(config) as tape:
        vars_ad = {k: _ensure_ad(tape, v, name=k) for k, v in inputs.items()}
        y = _output(tape, f(vars_ad))
        gradient = reverse(y, vars_ad.values())
        return {k: gradient[vars_ad[k]] for k in inputs}


def grads_list(f: Callable[[List[ADVar]], ADVar], x0_list: Iterable[Any],
               config: Optional[AADConfig] = None) -> List[RandomVariable]:
    """
    Same as grads(), but the inputs are provided as a list and the result is a list
    of adjoints in the same order.

    Example
    -------
    f = lambda xs: xs[0]*xs[0] + 3*xs[1]
    grads_list(f, [2.0, 4.0]) -> [RandomVariable(4.0), RandomVariable(3.0)]
    """
    with use_tape(config) as tape:
        xs = [_ensure_ad(tape, v, name=f"x{i}") for i, v in enumerate(x0_list)]
        y = _output(tape, f(xs))
        gradient = reverse(y, xs)
        return [gradient[x] for x in xs]
