"""
Overlap resolution — an iterative pairwise repulsion pass.

Every node is treated as a collision disk; two nodes whose positions are
closer than ``node_width + min_spacing`` are pushed apart symmetrically along
the line through their positions, each by half the shortfall.  The pass is
repeated until nothing moves or ``max_iterations`` is reached.

The result is approximate: a dense cluster can still overlap slightly once
the iteration cap is hit.
"""

from __future__ import annotations

import math
from typing import Sequence

from .models import NODE_WIDTH, Node


MIN_SPACING = 20.0
MAX_OVERLAP_ITERATIONS = 10

# Direction used for coincident pairs is ``later_index * GOLDEN_ANGLE`` so a
# stack of identical positions fans out instead of lining up.
GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def resolve_overlaps(
    nodes: Sequence[Node],
    min_spacing: float = MIN_SPACING,
    node_width: float = NODE_WIDTH,
    max_iterations: int = MAX_OVERLAP_ITERATIONS,
) -> list[Node]:
    """Push overlapping nodes apart and return relocated copies in input order.

    Nodes that are already far enough apart are returned at exactly their
    input coordinates, so applying this twice to a clean layout is a no-op.
    """
    if len(nodes) <= 1:
        return list(nodes)

    min_distance = node_width + min_spacing
    if not math.isfinite(min_distance) or min_distance <= 0:
        return [node.model_copy() for node in nodes]

    xs = [node.position.x for node in nodes]
    ys = [node.position.y for node in nodes]
    moved = [False] * len(nodes)

    for _ in range(max_iterations):
        corrected = False

        for i in range(len(nodes)):
            for j in range(i + 1, len(nodes)):
                dx = xs[j] - xs[i]
                dy = ys[j] - ys[i]
                distance = math.hypot(dx, dy)
                if distance >= min_distance:
                    continue

                corrected = True
                push = (min_distance - distance) / 2
                if distance > 0:
                    ux, uy = dx / distance, dy / distance
                else:
                    angle = j * GOLDEN_ANGLE
                    ux, uy = math.cos(angle), math.sin(angle)

                xs[i] -= ux * push
                ys[i] -= uy * push
                xs[j] += ux * push
                ys[j] += uy * push
                moved[i] = moved[j] = True

        if not corrected:
            break

    return [
        node.moved_to(xs[k], ys[k]) if moved[k] else node.model_copy()
        for k, node in enumerate(nodes)
    ]
