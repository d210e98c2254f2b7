"""
Data models for dag-canvas — the pipeline graph snapshot.

A pipeline graph is a flat directed graph:

    PipelineGraph
    ├── nodes  — pipeline steps, each with a top-left position
    └── edges  — directed connections (source id → target id)

The layout engine never owns these objects.  It receives a snapshot from the
graph store, computes new positions and hands back *new* ``Node`` instances;
inputs are never mutated in place.

Every node is laid out as a box of the same size (``LayoutOptions.node_width``
by ``LayoutOptions.node_height``).  The ``type`` field carries pipeline
meaning and only affects preview colouring:

    input    — data entering the pipeline
    output   — final results leaving the pipeline
    process  — a transformation step
    decision — a branching / conditional gate
    ai       — a model inference step
    source   — an external data source (API, database, file)
    static   — constants or seed content
    default  — generic / unspecified
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

# Uniform node box used by every strategy
NODE_WIDTH = 180.0
NODE_HEIGHT = 80.0

Direction = Literal["TB", "BT", "LR", "RL"]


class Position(BaseModel):
    """Top-left corner of a node box.  NaN and infinities are rejected."""
    x: float = Field(default=0.0, allow_inf_nan=False)
    y: float = Field(default=0.0, allow_inf_nan=False)


class ViewSize(BaseModel):
    """Size of the area a layout is fitted into."""
    width: float = Field(gt=0, allow_inf_nan=False)
    height: float = Field(gt=0, allow_inf_nan=False)


# ---------------------------------------------------------------------------
# Node / Edge
# ---------------------------------------------------------------------------

class Node(BaseModel):
    """A pipeline step.

    Labeling
    --------
    ``label`` is optional; ``get_label()`` falls back to ``id`` so rendering
    code never has to handle the missing case.

    Position
    --------
    ``position`` is the node's top-left corner in canvas coordinates.  Use
    ``moved_to()`` to get a relocated copy; layout code never assigns to
    ``position`` on a node it did not create.
    """
    id: str
    label: Optional[str] = None
    type: str = "default"
    position: Position = Field(default_factory=Position)

    def get_label(self) -> str:
        return self.label if self.label else self.id

    def moved_to(self, x: float, y: float) -> Node:
        """Return a copy of this node placed at ``(x, y)``."""
        return self.model_copy(update={"position": Position(x=x, y=y)})


class Edge(BaseModel):
    """A directed connection.  Endpoints that name unknown nodes are
    tolerated; layout simply ignores such edges."""
    id: str
    source: str
    target: str


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class LayoutOptions(BaseModel):
    """Layout configuration.

    Field names are snake_case; the camelCase spellings used by the editor's
    JSON shapes (``nodeWidth``, ``rankSep`` ...) are accepted as aliases.

    Attributes:
        direction:   Flow orientation of the layered strategy — "LR"
                     (left→right, default), "RL", "TB" (top→bottom) or "BT".
        node_width:  Width of every node box.
        node_height: Height of every node box.
        rank_sep:    Space between tiers (ranks / levels).
        node_sep:    Space between neighbours within a tier.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    direction: Direction = "LR"
    node_width: float = Field(default=NODE_WIDTH, gt=0, alias="nodeWidth", allow_inf_nan=False)
    node_height: float = Field(default=NODE_HEIGHT, gt=0, alias="nodeHeight", allow_inf_nan=False)
    rank_sep: float = Field(default=100.0, ge=0, alias="rankSep", allow_inf_nan=False)
    node_sep: float = Field(default=50.0, ge=0, alias="nodeSep", allow_inf_nan=False)


DEFAULT_LAYOUT_OPTIONS = LayoutOptions()


class FitResult(BaseModel):
    """Outcome of fitting a layout into a view: the transformed nodes plus
    the uniform transform that was applied (``new = old * scale + offset``)."""
    nodes: list[Node] = Field(default_factory=list)
    scale: float = 1.0
    offset: Position = Field(default_factory=Position)


# ---------------------------------------------------------------------------
# Graph snapshot
# ---------------------------------------------------------------------------

class PipelineGraph(BaseModel):
    """A snapshot of the pipeline graph as held by the graph store.

    Flat Access
    -----------
    ``get_node(id)`` looks a node up by id, ``node_ids()`` returns the id set
    and ``valid_edges()`` drops edges whose endpoints are not in the graph.
    """
    title: str = "Untitled Pipeline"
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    layout: LayoutOptions = Field(default_factory=LayoutOptions)

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def valid_edges(self) -> list[Edge]:
        """Return the edges whose source and target both exist."""
        ids = self.node_ids()
        return [e for e in self.edges if e.source in ids and e.target in ids]

    def with_nodes(self, nodes: list[Node]) -> PipelineGraph:
        """Return a new snapshot carrying ``nodes`` instead of the current ones."""
        return self.model_copy(update={"nodes": list(nodes)})
