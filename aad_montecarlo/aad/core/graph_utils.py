"""
Graph utilities: summarize and inspect the structure recorded on a tape.
"""
import logging
from collections import Counter
from typing import Dict, List

import numpy as np

logger = logging.getLogger(__name__)


def _label(node) -> str:
    return node.operator.tag if node.operator is not None else node.kind.value


def graph_summary(tape, detailed: bool = False) -> Dict:
    """
    Summary statistics of the computation graph on `tape`.

    Args:
        tape: Tape to inspect (must not be released)
        detailed: also log one line per node (first 100 nodes)

    Returns:
        dict with node/edge counts, fan-in/fan-out and the operation breakdown
    """
    nodes = tape.nodes
    if not nodes:
        logger.info("Empty computation graph")
        return {}

    n_nodes = len(nodes)
    fan_ins = [len(node.operands) for node in nodes]
    n_edges = sum(fan_ins)

    fan_outs = [0] * n_nodes
    for node in nodes:
        for operand in node.operands:
            fan_outs[operand] += 1

    op_counter = Counter(_label(node) for node in nodes)

    summary = {
        'nodes': n_nodes,
        'edges': n_edges,
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(op_counter),
    }

    logger.info("Computation graph: %d nodes, %d edges, max fan-in %d, max fan-out %d",
                n_nodes, n_edges, summary['max_fan_in'], summary['max_fan_out'])
    for op_type, count in op_counter.most_common(10):
        logger.info("  %-16s: %6d (%5.1f%%)", op_type, count, 100.0 * count / n_nodes)

    if detailed:
        for node in nodes[:100]:
            operands = ", ".join(f"Node{operand}" for operand in node.operands)
            logger.info("Node %3d: %-16s <- [%s]", node.id, _label(node), operands)

    return summary


def consumers(tape, node_id: int) -> List[int]:
    """Ids of the nodes that use `node_id` as an operand, in recording order."""
    return [node.id for node in tape.nodes[node_id + 1:] if node_id in node.operands]
