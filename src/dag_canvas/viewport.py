"""Viewport fitting — uniform scale and translate of a layout into a view."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .models import NODE_HEIGHT, NODE_WIDTH, FitResult, Node, Position, ViewSize


VIEW_PADDING = 50.0


def compute_bounds(
    nodes: Sequence[Node],
    node_width: float = NODE_WIDTH,
    node_height: float = NODE_HEIGHT,
) -> Optional[tuple[float, float, float, float]]:
    """Bounding box ``(min_x, min_y, max_x, max_y)`` over all node boxes.

    Returns None for an empty node list.
    """
    if not nodes:
        return None
    min_x = min(node.position.x for node in nodes)
    min_y = min(node.position.y for node in nodes)
    max_x = max(node.position.x + node_width for node in nodes)
    max_y = max(node.position.y + node_height for node in nodes)
    return (min_x, min_y, max_x, max_y)


def _axis_scale(available: float, content: float) -> float:
    # Zero-size content would divide by zero; it fits at any scale.
    if content <= 0:
        return 1.0
    return available / content


def fit_to_viewport(
    nodes: Sequence[Node],
    view_size: ViewSize,
    padding: float = VIEW_PADDING,
    node_width: float = NODE_WIDTH,
    node_height: float = NODE_HEIGHT,
) -> FitResult:
    """
    Scale and center a layout inside ``view_size`` minus ``padding`` per side.

    The scale never exceeds 1 (layouts are shrunk, never enlarged) and is the
    same on both axes.  Each position becomes ``position * scale + offset``.
    Node boxes shrink with the same factor, so a box drawn at the new
    position with size ``node_width * scale`` by ``node_height * scale`` lies
    inside the view.  Padding that would leave no room on either axis is
    ignored and the full view is used instead.
    """
    bounds = compute_bounds(nodes, node_width, node_height)
    if bounds is None:
        return FitResult(nodes=[], scale=1.0, offset=Position(x=0.0, y=0.0))

    if not math.isfinite(padding):
        padding = VIEW_PADDING
    padding = max(padding, 0.0)
    # Padding that leaves no room on an axis is dropped; the whole view is used.
    if view_size.width - padding * 2 <= 0 or view_size.height - padding * 2 <= 0:
        padding = 0.0

    min_x, min_y, max_x, max_y = bounds
    content_width = max_x - min_x
    content_height = max_y - min_y

    available_width = view_size.width - padding * 2
    available_height = view_size.height - padding * 2

    scale = min(
        _axis_scale(available_width, content_width),
        _axis_scale(available_height, content_height),
        1.0,
    )

    # Center the scaled content inside the padded area
    offset_x = padding + (available_width - content_width * scale) / 2 - min_x * scale
    offset_y = padding + (available_height - content_height * scale) / 2 - min_y * scale

    fitted = [
        node.moved_to(node.position.x * scale + offset_x, node.position.y * scale + offset_y)
        for node in nodes
    ]
    return FitResult(nodes=fitted, scale=scale, offset=Position(x=offset_x, y=offset_y))
