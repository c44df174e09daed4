# aad/core/engine.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, Optional, Union

import numpy as np

from ...errors import PreconditionViolation
from ...stochastic.random_variable import RandomVariable
from ...stochastic.summation import kahan_sum
from .partials import partial_derivative
from .var import ADVar

logger = logging.getLogger(__name__)

ZERO = RandomVariable.constant(0.0)


class Gradient(Mapping):
    """
    Result of a reverse pass: node id -> adjoint RandomVariable.

    Keys may be given as node ids or as ADVars of the tape the pass ran on.
    Looking up a node that does not influence the output gives a
    deterministic zero.
    """

    def __init__(self, adjoints: Dict[int, RandomVariable], tape=None):
        self._adjoints = adjoints
        self._tape = tape

    def _key(self, key) -> int:
        if isinstance(key, ADVar):
            if self._tape is not None and key.tape is not self._tape:
                raise PreconditionViolation("ADVar was recorded on a different tape than this gradient")
            return key.id
        return key

    def __getitem__(self, key) -> RandomVariable:
        return self._adjoints.get(self._key(key), ZERO)

    def __contains__(self, key) -> bool:
        return self._key(key) in self._adjoints

    def __iter__(self) -> Iterator[int]:
        return iter(self._adjoints)

    def __len__(self) -> int:
        return len(self._adjoints)

    def __repr__(self):
        return f"Gradient({self._adjoints!r})"


def _total(adjoint: RandomVariable) -> RandomVariable:
    """Sum of a per-path adjoint over its paths."""
    if adjoint.is_deterministic():
        return adjoint
    return RandomVariable(adjoint.filtration_time, kahan_sum(adjoint.get_realizations()))


def _on_paths(contribution: RandomVariable, size: int) -> RandomVariable:
    """A deterministic contribution repeated on each of `size` paths."""
    return RandomVariable(contribution.filtration_time, np.full(size, contribution.double_value()))


def _accumulate(previous: Optional[RandomVariable], contribution: RandomVariable,
                per_path: bool) -> RandomVariable:
    if previous is None:
        return contribution
    if not per_path and previous.is_deterministic() != contribution.is_deterministic():
        # a single deterministic adjoint joins a per-path one: spread it evenly
        if previous.is_deterministic():
            previous = previous.div(float(contribution.size()))
        else:
            contribution = contribution.div(float(previous.size()))
    return previous.add(contribution)


def reverse(output: ADVar, independent_ids: Optional[Iterable[Union[int, ADVar]]] = None) -> Gradient:
    """
    Single reverse sweep from `output`.

    Adjoints are accumulated path by path. On a stochastic node the adjoint
    on path i is the derivative of the output on path i with respect to the
    node's realization on path i. A deterministic node used inside a
    stochastic expression gets one adjoint per path as well: the output
    path derivatives dY_i/dx. Summing those over the paths (`get_sum()`)
    gives the derivative of the sum of the output, and for an output that
    is an average it gives the ordinary scalar derivative. A reducer
    (average, variance, min, ...) couples the paths: its adjoint is summed
    over paths before it is passed on to the reduced operand.

    Nodes are visited by strictly decreasing id starting at the output; ids
    without an adjoint are skipped, constant operands receive none.

    Parameters
    ----------
    output : ADVar
        Terminal node, seeded with a deterministic 1.0.
    independent_ids : iterable of node ids or ADVars, optional
        Restrict the returned mapping to these nodes.

    Returns
    -------
    Gradient
    """
    tape = output.tape
    nodes = tape.nodes
    config = tape.config
    adjoints: Dict[int, RandomVariable] = {output.id: RandomVariable.constant(1.0)}

    for node_id in range(output.id, -1, -1):
        adjoint = adjoints.get(node_id)
        if adjoint is None:
            continue
        node = nodes[node_id]
        if node.is_leaf:
            continue
        if node.operator.is_reducer:
            adjoint = _total(adjoint)
        args = [nodes[operand].value for operand in node.operands]
        for index, operand_id in enumerate(node.operands):
            operand = nodes[operand_id]
            if operand.is_constant:
                continue
            partial = partial_derivative(node.operator, args, node.value, index, config)
            contribution = partial.mult(adjoint)
            per_path = not operand.value.is_deterministic()
            if not per_path and contribution.is_deterministic() and not node.value.is_deterministic():
                contribution = _on_paths(contribution, node.value.size())
            adjoints[operand_id] = _accumulate(adjoints.get(operand_id), contribution, per_path)
        if config.retain_leaf_nodes_only and node_id != output.id:
            del adjoints[node_id]

    if config.retain_leaf_nodes_only and not nodes[output.id].is_leaf:
        del adjoints[output.id]

    gradient = Gradient(adjoints, tape)
    if independent_ids is not None:
        wanted = {gradient._key(key) for key in independent_ids}
        gradient = Gradient({key: adjoint for key, adjoint in adjoints.items() if key in wanted}, tape)

    logger.debug("Reverse sweep from node %d: %d adjoints", output.id, len(gradient))
    return gradient
