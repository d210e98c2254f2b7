"""
Basic arrangers for dag-canvas: grid, circular and hierarchical placement.

Each arranger is a pure function from a node list to a new node list.  Input
nodes are never modified; relocated copies are returned in input order.

  - Grid          — row-major placement, used for trivial and edge-less graphs
  - Circular      — nodes evenly spaced on a circle
  - Hierarchical  — breadth-first topological leveling for tree-like graphs,
                    also the fallback of the layered engine

Spacing constants (canvas pixels):
  - Grid cells: 150px horizontal, 100px vertical
  - Hierarchy: 120px between levels, 150px between siblings
  - Every arrangement keeps a 50px margin from the canvas origin
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .models import NODE_HEIGHT, NODE_WIDTH, Edge, LayoutOptions, Node


# --- Spacing constants ---

LAYOUT_MARGIN = 50.0

GRID_COLUMNS = 3
GRID_SPACING = (150.0, 100.0)

CIRCLE_RADIUS = 200.0
CIRCLE_CENTER = (300.0, 200.0)

LEVEL_SPACING = 120.0
NODE_SPACING = 150.0
HIERARCHY_CENTER_X = 300.0


def anchor_to_margin(nodes: Sequence[Node], margin: float = LAYOUT_MARGIN) -> list[Node]:
    """Translate a layout so its top-left-most corner sits at ``(margin, margin)``."""
    if not nodes:
        return []
    dx = margin - min(node.position.x for node in nodes)
    dy = margin - min(node.position.y for node in nodes)
    return [node.moved_to(node.position.x + dx, node.position.y + dy) for node in nodes]


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

def grid_columns_for(count: int) -> int:
    """Column count for a roughly square grid: ``ceil(sqrt(count))``."""
    return max(1, math.ceil(math.sqrt(count)))


def calculate_grid_layout(
    nodes: Sequence[Node],
    columns: int = GRID_COLUMNS,
    spacing: tuple[float, float] = GRID_SPACING,
    margin: float = LAYOUT_MARGIN,
) -> list[Node]:
    """Place nodes row-major: ``column = index % columns``, ``row = index // columns``."""
    columns = max(1, columns)
    spacing_x, spacing_y = spacing
    result = []
    for index, node in enumerate(nodes):
        col = index % columns
        row = index // columns
        result.append(node.moved_to(col * spacing_x + margin, row * spacing_y + margin))
    return result


# ---------------------------------------------------------------------------
# Circular
# ---------------------------------------------------------------------------

def calculate_circular_layout(
    nodes: Sequence[Node],
    radius: float = CIRCLE_RADIUS,
    center: tuple[float, float] = CIRCLE_CENTER,
    node_width: float = NODE_WIDTH,
    node_height: float = NODE_HEIGHT,
) -> list[Node]:
    """Spread nodes evenly around a circle, starting at angle 0.

    The *box* of each node is centered on its circle point, so half the
    width/height is subtracted from the raw coordinate.  A lone node is put
    at ``center`` as-is.
    """
    if not nodes:
        return []
    center_x, center_y = center
    if len(nodes) == 1:
        return [nodes[0].moved_to(center_x, center_y)]

    angle_step = 2 * math.pi / len(nodes)
    result = []
    for index, node in enumerate(nodes):
        angle = index * angle_step
        result.append(node.moved_to(
            center_x + radius * math.cos(angle) - node_width / 2,
            center_y + radius * math.sin(angle) - node_height / 2,
        ))
    return result


# ---------------------------------------------------------------------------
# Hierarchical
# ---------------------------------------------------------------------------

def hierarchy_spacing(options: LayoutOptions) -> tuple[float, float]:
    """``(level_spacing, node_spacing)`` for a node box plus the options' gaps."""
    return (
        options.node_height + options.rank_sep,
        options.node_width + options.node_sep,
    )


def build_adjacency(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Build ``incoming`` and ``outgoing`` id lists, skipping edges whose
    endpoints are not in ``nodes``.  Duplicate edges are kept."""
    incoming: dict[str, list[str]] = {node.id: [] for node in nodes}
    outgoing: dict[str, list[str]] = {node.id: [] for node in nodes}
    for edge in edges:
        if edge.source in outgoing and edge.target in incoming:
            incoming[edge.target].append(edge.source)
            outgoing[edge.source].append(edge.target)
    return incoming, outgoing


def _level_rows(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> Optional[list[list[str]]]:
    """Group node ids into levels.  Returns None when the graph has no root."""
    incoming, outgoing = build_adjacency(nodes, edges)

    roots = [node.id for node in nodes if not incoming[node.id]]
    if not roots:
        return None

    levels: list[list[str]] = []
    visited: set[str] = set()
    frontier = roots

    while frontier:
        levels.append(frontier)
        visited.update(frontier)

        # dict keeps first-enqueued order and drops repeats
        next_level: dict[str, None] = {}
        for node_id in frontier:
            for child_id in outgoing[node_id]:
                if child_id in visited or child_id in next_level:
                    continue
                # Deferred until every parent has a level; a later frontier
                # reaches it again through its remaining parents.
                if all(parent in visited for parent in incoming[child_id]):
                    next_level[child_id] = None
        frontier = list(next_level)

    # Nodes never reached (e.g. inside a cycle with no entry from a root)
    # share level 0 with the roots.
    unreached = [node.id for node in nodes if node.id not in visited]
    levels[0] = levels[0] + unreached
    return levels


def assign_levels(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> Optional[dict[str, int]]:
    """Map each node id to its hierarchy level.

    Returns None when no node is free of incoming edges; callers fall back to
    a grid in that case.
    """
    rows = _level_rows(nodes, edges)
    if rows is None:
        return None
    return {node_id: level for level, row in enumerate(rows) for node_id in row}


def calculate_hierarchical_layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    level_spacing: float = LEVEL_SPACING,
    node_spacing: float = NODE_SPACING,
    center_x: float = HIERARCHY_CENTER_X,
    margin: float = LAYOUT_MARGIN,
) -> list[Node]:
    """
    Top-down tree layout by breadth-first leveling.

    Steps:
    1. Build incoming/outgoing adjacency (unknown endpoints ignored)
    2. Roots are nodes without incoming edges; none at all → square grid
    3. Expand level by level; a child joins the next level only once all of
       its parents have a level
    4. Unreached nodes default to level 0
    5. Center every level on ``center_x``; ``y = level * level_spacing + margin``
    """
    if not nodes:
        return []

    rows = _level_rows(nodes, edges)
    if rows is None:
        return calculate_grid_layout(
            nodes,
            columns=grid_columns_for(len(nodes)),
            spacing=(node_spacing, level_spacing),
            margin=margin,
        )

    slots: dict[str, tuple[float, float]] = {}
    for level, row in enumerate(rows):
        start_x = center_x - (len(row) - 1) * node_spacing / 2
        y = level * level_spacing + margin
        for index, node_id in enumerate(row):
            slots[node_id] = (start_x + index * node_spacing, y)

    return [node.moved_to(*slots[node.id]) for node in nodes]
