"""
Layout pipeline for dag-canvas.

    select_strategy → arranger → resolve_overlaps → (fit_to_viewport)

``compute_layout`` is the entry point used by the editor's "auto layout"
action.  It is a pure function: it rebuilds everything it needs from the
nodes and edges it is given, returns new ``Node`` objects and never raises for
odd graphs (cycles, self-loops, dangling edges, duplicates, empty input).
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from .arrange import (
    CIRCLE_RADIUS,
    LAYOUT_MARGIN,
    anchor_to_margin,
    calculate_circular_layout,
    calculate_grid_layout,
    calculate_hierarchical_layout,
    grid_columns_for,
    hierarchy_spacing,
)
from .layered import LayeredBackend, LayeredLayoutEngine
from .models import DEFAULT_LAYOUT_OPTIONS, Edge, LayoutOptions, Node, ViewSize
from .overlap import MIN_SPACING, resolve_overlaps
from .strategy import Strategy, select_strategy
from .viewport import VIEW_PADDING, fit_to_viewport

logger = logging.getLogger(__name__)


def circle_radius_for(count: int, options: LayoutOptions) -> float:
    """Smallest radius (at least ``CIRCLE_RADIUS``) at which neighbouring
    boxes on the circle are ``node_width + node_sep`` apart."""
    if count < 2:
        return CIRCLE_RADIUS
    chord = options.node_width + options.node_sep
    return max(CIRCLE_RADIUS, chord / (2 * math.sin(math.pi / count)))


def arrange(
    strategy: Strategy,
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    options: LayoutOptions = DEFAULT_LAYOUT_OPTIONS,
    backend: Optional[LayeredBackend] = None,
) -> list[Node]:
    """Run one arranger with spacing derived from ``options``."""
    if strategy == "grid":
        return calculate_grid_layout(
            nodes,
            columns=grid_columns_for(len(nodes)),
            spacing=(options.node_width + options.node_sep, options.node_height + options.node_sep),
        )

    if strategy == "circular":
        radius = circle_radius_for(len(nodes), options)
        if len(nodes) == 1:
            center = (LAYOUT_MARGIN, LAYOUT_MARGIN)
        else:
            # circle box starts at the margin
            center = (
                LAYOUT_MARGIN + radius + options.node_width / 2,
                LAYOUT_MARGIN + radius + options.node_height / 2,
            )
        return calculate_circular_layout(
            nodes,
            radius=radius,
            center=center,
            node_width=options.node_width,
            node_height=options.node_height,
        )

    if strategy == "hierarchical":
        level_spacing, node_spacing = hierarchy_spacing(options)
        # rows are centered on a fixed axis; wide levels would reach negative x
        return anchor_to_margin(calculate_hierarchical_layout(
            nodes,
            edges,
            level_spacing=level_spacing,
            node_spacing=node_spacing,
        ))

    return LayeredLayoutEngine(backend).arrange(nodes, edges, options)


def compute_layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    options: Optional[LayoutOptions] = None,
    backend: Optional[LayeredBackend] = None,
) -> list[Node]:
    """
    Arrange a graph: pick a strategy, place the nodes, remove overlaps.

    Args:
        nodes: Snapshot of the graph's nodes.  Not modified.
        edges: Snapshot of the graph's edges.  Edges naming unknown nodes are
               ignored.
        options: Layout options; defaults apply to every field not given.
        backend: Layered backend to use instead of grandalf.

    Returns:
        New nodes, in input order, with finite positions.
    """
    if not nodes:
        return []

    opts = options or DEFAULT_LAYOUT_OPTIONS
    strategy = select_strategy(nodes, edges)
    logger.debug(f"Layout: {len(nodes)} nodes, {len(edges)} edges -> {strategy}")

    placed = arrange(strategy, nodes, edges, opts, backend=backend)
    return resolve_overlaps(placed, min_spacing=MIN_SPACING, node_width=opts.node_width)


def apply_best_layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    view_size: Optional[ViewSize] = None,
    options: Optional[LayoutOptions] = None,
    padding: float = VIEW_PADDING,
) -> list[Node]:
    """``compute_layout``, then fit into ``view_size`` when one is given."""
    opts = options or DEFAULT_LAYOUT_OPTIONS
    laid_out = compute_layout(nodes, edges, opts)
    if view_size is None:
        return laid_out

    fitted = fit_to_viewport(
        laid_out,
        view_size,
        padding=padding,
        node_width=opts.node_width,
        node_height=opts.node_height,
    )
    logger.debug(f"Fitted layout into {view_size.width}x{view_size.height} at scale {fitted.scale:.3f}")
    return fitted.nodes
