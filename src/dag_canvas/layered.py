"""
Layered (Sugiyama-style) layout for dag-canvas.

The layered algorithm itself lives behind ``LayeredBackend`` so a different
implementation can be dropped in without touching strategy selection,
overlap resolution or viewport fitting.  A backend returns node *centers*;
``LayeredLayoutEngine`` turns them into top-left positions and owns the
failure policy: whatever goes wrong inside the backend, the caller gets the
hierarchical arrangement instead of an exception.

The default backend wraps grandalf's ``SugiyamaLayout`` (rank assignment,
dummy vertices for long edges, barycentric crossing reduction).
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from grandalf.graphs import Edge as GEdge
from grandalf.graphs import Graph, Vertex
from grandalf.layouts import SugiyamaLayout

from .arrange import anchor_to_margin, calculate_hierarchical_layout, hierarchy_spacing
from .models import DEFAULT_LAYOUT_OPTIONS, Edge, LayoutOptions, Node

logger = logging.getLogger(__name__)

Centers = dict[str, tuple[float, float]]


class LayoutBackendError(RuntimeError):
    """A layered backend produced no usable layout."""


class LayeredBackend(ABC):
    """Capability interface for layered graph drawing.

    Input: the nodes, edges and options of one layout call.
    Output: a center point for every node id, in canvas coordinates with the
    flow running in ``options.direction``.  Failure is signalled by raising.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def layout(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        options: LayoutOptions,
    ) -> Centers:
        ...


# ---------------------------------------------------------------------------
# grandalf backend
# ---------------------------------------------------------------------------

class _VertexView:
    """View object grandalf reads the box size from and writes ``xy`` to."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        # center coordinates, set by the layout
        self.xy = (0.0, 0.0)


class GrandalfBackend(LayeredBackend):
    """Sugiyama layout via grandalf.

    grandalf always stacks ranks downward and only lays out one connected
    component at a time, so this backend:
      - lays out each weakly connected component separately and packs them
        side by side across the flow, ``node_sep`` apart
      - swaps width and height for "LR"/"RL" and transposes the result
      - mirrors the rank axis for "BT"/"RL"

    Self-loops, repeated (source, target) pairs and edges with unknown
    endpoints are dropped before grandalf sees the graph.
    """

    @property
    def name(self) -> str:
        return "grandalf"

    def layout(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        options: LayoutOptions,
    ) -> Centers:
        horizontal = options.direction in ("LR", "RL")
        mirrored = options.direction in ("BT", "RL")
        if horizontal:
            w, h = options.node_height, options.node_width
        else:
            w, h = options.node_width, options.node_height

        order: dict[str, int] = {}
        vertices: dict[str, Vertex] = {}
        for index, node in enumerate(nodes):
            if node.id in vertices:
                continue
            vertex = Vertex(node.id)
            vertex.view = _VertexView(w, h)
            vertices[node.id] = vertex
            order[node.id] = index

        seen: set[tuple[str, str]] = set()
        graph_edges: list[GEdge] = []
        for edge in edges:
            pair = (edge.source, edge.target)
            if edge.source == edge.target or pair in seen:
                continue
            if edge.source not in vertices or edge.target not in vertices:
                continue
            seen.add(pair)
            graph_edges.append(GEdge(vertices[edge.source], vertices[edge.target]))

        graph = Graph(list(vertices.values()), graph_edges)
        components = sorted(
            graph.C,
            key=lambda core: min(order[v.data] for v in core.sV),
        )

        # Pack components left to right in grandalf's frame (x across, y down)
        packed: Centers = {}
        cursor = 0.0
        for core in components:
            placed = self._layout_component(core, w, h, options)
            min_x = min(x for x, _ in placed.values()) - w / 2
            max_x = max(x for x, _ in placed.values()) + w / 2
            min_y = min(y for _, y in placed.values()) - h / 2
            for node_id, (x, y) in placed.items():
                packed[node_id] = (x - min_x + cursor, y - min_y)
            cursor += (max_x - min_x) + options.node_sep

        centers: Centers = {}
        for node_id, (across, along) in packed.items():
            if mirrored:
                along = -along
            centers[node_id] = (along, across) if horizontal else (across, along)
        return centers

    def _layout_component(self, core, w: float, h: float, options: LayoutOptions) -> Centers:
        vertices = list(core.sV)
        if len(vertices) == 1:
            return {vertices[0].data: (w / 2, h / 2)}

        sugiyama = SugiyamaLayout(core)
        sugiyama.xspace = options.node_sep
        sugiyama.yspace = options.rank_sep
        sugiyama.init_all()
        sugiyama.draw()

        placed: Centers = {}
        for vertex in vertices:
            x, y = vertex.view.xy
            if not (math.isfinite(x) and math.isfinite(y)):
                raise LayoutBackendError(f"grandalf placed {vertex.data!r} at ({x}, {y})")
            placed[vertex.data] = (float(x), float(y))
        return placed


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class LayeredLayoutEngine:
    """Runs a ``LayeredBackend`` and converts its centers to node positions.

    On any backend failure (an exception, a node missing from the result or
    a non-finite coordinate) the hierarchical arrangement is returned
    instead, using the same separation parameters.
    """

    def __init__(self, backend: Optional[LayeredBackend] = None):
        self.backend = backend or GrandalfBackend()

    def arrange(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        options: Optional[LayoutOptions] = None,
    ) -> list[Node]:
        if not nodes:
            return []
        opts = options or DEFAULT_LAYOUT_OPTIONS

        try:
            centers = self.backend.layout(nodes, edges, opts)
            return self._place(nodes, centers, opts)
        except Exception as e:
            logger.warning(
                f"Layered layout ({self.backend.name}) failed, "
                f"falling back to hierarchical layout: {e}"
            )
            level_spacing, node_spacing = hierarchy_spacing(opts)
            return anchor_to_margin(calculate_hierarchical_layout(
                nodes,
                edges,
                level_spacing=level_spacing,
                node_spacing=node_spacing,
            ))

    @staticmethod
    def _place(nodes: Sequence[Node], centers: Centers, options: LayoutOptions) -> list[Node]:
        """Center → top-left, then shift the layout so it starts at the margin."""
        missing = [node.id for node in nodes if node.id not in centers]
        if missing:
            raise LayoutBackendError(f"no position for nodes {missing}")

        half_w = options.node_width / 2
        half_h = options.node_height / 2
        placed = []
        for node in nodes:
            cx, cy = centers[node.id]
            x, y = cx - half_w, cy - half_h
            if not (math.isfinite(x) and math.isfinite(y)):
                raise LayoutBackendError(f"non-finite position for node {node.id!r}")
            placed.append(node.moved_to(x, y))
        return anchor_to_margin(placed)


def calculate_layered_layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    options: Optional[LayoutOptions] = None,
) -> list[Node]:
    """Layered layout with the default grandalf backend."""
    return LayeredLayoutEngine().arrange(nodes, edges, options)
