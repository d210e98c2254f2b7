"""Strategy selection — picks an arranger from the shape of the graph."""

from __future__ import annotations

from typing import Literal, Sequence

from .models import Edge, Node

Strategy = Literal["grid", "circular", "hierarchical", "layered"]

# Share of nodes with at most one parent above which a graph counts as a tree
TREE_FRACTION_THRESHOLD = 0.8

# Edge-less graphs up to this size are arranged on a circle, larger ones on a grid
MAX_CIRCULAR_NODES = 10


def select_strategy(nodes: Sequence[Node], edges: Sequence[Edge]) -> Strategy:
    """Suggest a layout strategy for the graph.

    Decision table, first match wins:
      - at most one node               → grid
      - two or three nodes             → circular
      - edges, and more than 80% of nodes have in-degree ≤ 1 → hierarchical
      - edges otherwise                → layered
      - no edges, ten nodes or fewer   → circular, otherwise grid

    Only edges whose endpoints both exist are counted.  Duplicate edges and
    self-loops count towards in-degree.
    """
    node_count = len(nodes)
    if node_count <= 1:
        return "grid"
    if node_count <= 3:
        return "circular"

    in_degree: dict[str, int] = {node.id: 0 for node in nodes}
    edge_count = 0
    for edge in edges:
        if edge.source in in_degree and edge.target in in_degree:
            in_degree[edge.target] += 1
            edge_count += 1

    # Without edges every node has in-degree 0, so the tree test only
    # applies to graphs that have at least one edge.
    if edge_count > 0:
        tree_like = sum(1 for node in nodes if in_degree[node.id] <= 1)
        if tree_like / node_count > TREE_FRACTION_THRESHOLD:
            return "hierarchical"
        return "layered"
    return "circular" if node_count <= MAX_CIRCULAR_NODES else "grid"
