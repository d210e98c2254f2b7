"""YAML recipe parser for dag-canvas.

A recipe is a flat list of nodes plus connections, declared either as an
explicit ``edges`` list or with the ``inputs``/``outputs`` shorthand on nodes
(both may be mixed; a connection declared twice yields one edge).  An
optional ``layout`` block overrides a subset of ``LayoutOptions``.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from .models import Edge, LayoutOptions, Node, PipelineGraph, Position


def parse_yaml(yaml_str: str) -> PipelineGraph:
    """Parse a YAML recipe string into a PipelineGraph.

    Example:
        title: Training Pipeline
        layout:
          direction: TB
          nodeSep: 40
        nodes:
          - id: load
            type: input
            label: Load CSV
          - id: clean
            type: process
            inputs: [load]
          - id: train
            type: ai
        edges:
          - {source: clean, target: train}
    """
    data = yaml.safe_load(yaml_str)
    if not data:
        raise ValueError("Empty YAML input")
    if not isinstance(data, dict):
        raise ValueError("YAML recipe must be a mapping")
    if "nodes" not in data:
        raise ValueError("YAML recipe has no 'nodes' list")

    node_list = _as_list(data.get("nodes"), "'nodes'")
    nodes = [_parse_node(node_data) for node_data in node_list]

    # Connections: explicit edges first, then the node shorthand
    edges: list[Edge] = []
    seen: set[tuple[str, str]] = set()

    def add_edge(source: str, target: str, edge_id: str | None = None) -> None:
        pair = (source, target)
        if pair in seen:
            return
        seen.add(pair)
        edges.append(Edge(id=edge_id or _edge_id(source, target), source=source, target=target))

    for edge_data in _as_list(data.get("edges"), "'edges'"):
        if not isinstance(edge_data, dict):
            raise ValueError(f"Edge must be a mapping: {edge_data!r}")
        if "source" not in edge_data or "target" not in edge_data:
            raise ValueError(f"Edge needs 'source' and 'target': {edge_data}")
        add_edge(str(edge_data["source"]), str(edge_data["target"]), edge_data.get("id"))

    for node_data in node_list:
        node_id = str(node_data["id"])
        for input_id in _as_list(node_data.get("inputs"), f"'inputs' of node {node_id!r}"):
            add_edge(str(input_id), node_id)
        for output_id in _as_list(node_data.get("outputs"), f"'outputs' of node {node_id!r}"):
            add_edge(node_id, str(output_id))

    return PipelineGraph(
        title=data.get("title", "Untitled Pipeline"),
        nodes=nodes,
        edges=edges,
        layout=LayoutOptions(**_as_mapping(data.get("layout"), "'layout'")),
    )


def parse_file(path: str) -> PipelineGraph:
    """Parse a YAML recipe file into a PipelineGraph."""
    content = Path(path).read_text()
    return parse_yaml(content)


def _as_list(value, what: str) -> list:
    """A YAML sequence, or an empty list when the key is missing or null."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list, got {value!r}")
    return value


def _as_mapping(value, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping, got {value!r}")
    return value


def _coordinate(data: dict, key: str) -> float:
    value = data.get(key, 0)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Node {data['id']!r}: '{key}' must be a number, got {value!r}") from None


def _edge_id(source: str, target: str) -> str:
    return f"{source}->{target}"


def _parse_node(data: dict) -> Node:
    """Parse a single node from YAML data."""
    if not isinstance(data, dict) or "id" not in data:
        raise ValueError(f"Node needs an 'id': {data}")

    return Node(
        id=str(data["id"]),
        label=data.get("label"),
        type=data.get("type", "default"),
        position=Position(x=_coordinate(data, "x"), y=_coordinate(data, "y")),
    )


def graph_to_yaml(graph: PipelineGraph) -> str:
    """Serialize a PipelineGraph back to a YAML recipe, positions included."""
    layout = graph.layout.model_dump(by_alias=True, exclude_defaults=True)

    data: dict = {"title": graph.title}
    if layout:
        data["layout"] = layout
    data["nodes"] = []
    data["edges"] = []

    for node in graph.nodes:
        node_data = {"id": node.id}
        if node.label:
            node_data["label"] = node.label
        if node.type != "default":
            node_data["type"] = node.type
        node_data["x"] = round(node.position.x, 2)
        node_data["y"] = round(node.position.y, 2)
        data["nodes"].append(node_data)

    for edge in graph.edges:
        edge_data = {"source": edge.source, "target": edge.target}
        if edge.id != _edge_id(edge.source, edge.target):
            edge_data = {"id": edge.id, **edge_data}
        data["edges"].append(edge_data)

    return yaml.dump(data, default_flow_style=False, sort_keys=False)

