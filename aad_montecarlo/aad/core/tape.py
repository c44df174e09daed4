# aad/core/tape.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import List, Optional, Tuple

from ...errors import OperatorArityError, PreconditionViolation, TapeReleasedError
from ...stochastic.random_variable import RandomVariable
from .config import AADConfig
from .node import Node, NodeKind, OperatorType

logger = logging.getLogger(__name__)


class Tape:
    """
    Arena of one computation: records Nodes in forward order.

    Node ids are positions in the arena, so every operand id is smaller than
    the id of the node that uses it and the graph is acyclic by construction.
    The tape is append-only and has a single writer: nodes may only be
    recorded from the thread that created it.

    Release the tape once the gradient has been extracted (or use it as a
    context manager); a released tape holds no nodes and rejects any further use.
    """

    def __init__(self, config: Optional[AADConfig] = None):
        self.config = config if config is not None else AADConfig()
        self._nodes: List[Node] = []
        self._released = False
        self._owner = threading.get_ident()
        logger.debug("Created tape %#x", id(self))

    def __enter__(self) -> "Tape":
        return self

    def __exit__(self, *exc_info):
        self.release()
        return False

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def nodes(self) -> List[Node]:
        """The recorded nodes (do not modify)."""
        if self._released:
            raise TapeReleasedError("Tape has been released")
        return self._nodes

    def node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def push_node(self, *, value: RandomVariable, kind: NodeKind,
                  operator: Optional[OperatorType] = None, operands: Tuple[int, ...] = ()) -> int:
        """
        Append a Node and return its id.
        `operands` are ids of earlier nodes; their count must match the operator's arity.
        """
        nodes = self.nodes
        if threading.get_ident() != self._owner:
            raise PreconditionViolation("A tape can only be written by the thread that created it")
        if operator is not None and len(operands) != operator.arity:
            raise OperatorArityError(
                f"{operator.tag} takes {operator.arity} operands, got {len(operands)}")
        if operator is None and operands:
            raise OperatorArityError("Leaf nodes take no operands")
        node_id = len(nodes)
        if any(not 0 <= operand < node_id for operand in operands):
            raise PreconditionViolation(f"Operands {operands} must reference earlier nodes")
        nodes.append(Node(id=node_id, value=value, kind=kind, operator=operator, operands=tuple(operands)))
        return node_id

    def variable(self, value, *, time: float = 0.0, name: Optional[str] = None):
        """Record a differentiable input."""
        from .var import ADVar
        return ADVar(value, tape=self, requires_grad=True, name=name, time=time)

    def constant(self, value, *, name: Optional[str] = None):
        """Record a non-differentiable leaf."""
        from .var import ADVar
        if not isinstance(value, RandomVariable):
            value = RandomVariable.of(value)
        return ADVar(value, tape=self, requires_grad=False, name=name)

    def release(self):
        if self._released:
            return
        logger.debug("Releasing tape %#x with %d nodes", id(self), len(self._nodes))
        self._nodes = []
        self._released = True


@contextmanager
def use_tape(config: Optional[AADConfig] = None):
    """
    Context manager for a fresh tape that is released on exit:
        with use_tape() as tape:
            x = tape.variable(3.0)
            ... build computation ...
            gradient = y.get_gradient()
    """
    tape = Tape(config)
    try:
        yield tape
    finally:
        tape.release()
