"""dag-canvas server — MCP tools for laying out pipeline graphs."""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool
from pydantic import ValidationError

from .engine import compute_layout
from .models import Edge, LayoutOptions, Node, ViewSize
from .overlap import MIN_SPACING, resolve_overlaps
from .parser import graph_to_yaml, parse_yaml
from .renderer import GraphRenderer
from .strategy import select_strategy
from .viewport import VIEW_PADDING, fit_to_viewport

logger = logging.getLogger(__name__)


# --- Constants ---
OUTPUT_DIR = Path(os.environ.get("DAG_CANVAS_OUTPUT_DIR", Path.home() / ".dag-canvas" / "output"))

server = Server("dag-canvas")


def _ensure_output_dir():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


# --- Shared schema fragments ---

NODES_SCHEMA = {
    "type": "array",
    "description": "Graph nodes: {id, label, position: {x, y}}.",
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "label": {"type": "string"},
            "type": {"type": "string"},
            "position": {
                "type": "object",
                "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
            },
        },
        "required": ["id"],
    },
}

EDGES_SCHEMA = {
    "type": "array",
    "description": "Graph edges: {id, source, target}. Edges naming unknown nodes are ignored.",
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "source": {"type": "string"},
            "target": {"type": "string"},
        },
        "required": ["id", "source", "target"],
    },
}

OPTIONS_SCHEMA = {
    "type": "object",
    "description": (
        "Layout options, all optional: direction (LR, RL, TB, BT; default LR), "
        "nodeWidth (180), nodeHeight (80), rankSep (100), nodeSep (50)."
    ),
    "properties": {
        "direction": {"type": "string", "enum": ["LR", "RL", "TB", "BT"]},
        "nodeWidth": {"type": "number"},
        "nodeHeight": {"type": "number"},
        "rankSep": {"type": "number"},
        "nodeSep": {"type": "number"},
    },
}

VIEW_SIZE_SCHEMA = {
    "type": "object",
    "description": "Size of the viewing area to fit into.",
    "properties": {"width": {"type": "number"}, "height": {"type": "number"}},
    "required": ["width", "height"],
}


# --- Tool definitions ---

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="compute_layout",
            description=(
                "Automatically arrange a pipeline graph. Picks a strategy from the "
                "graph's shape (grid, circular, hierarchical or layered), places the "
                "nodes and pushes overlapping nodes apart. Returns the nodes with new "
                "positions and the strategy used."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "nodes": NODES_SCHEMA,
                    "edges": EDGES_SCHEMA,
                    "options": OPTIONS_SCHEMA,
                },
                "required": ["nodes"],
            },
        ),
        Tool(
            name="select_strategy",
            description="Report which layout strategy compute_layout would use for a graph.",
            inputSchema={
                "type": "object",
                "properties": {"nodes": NODES_SCHEMA, "edges": EDGES_SCHEMA},
                "required": ["nodes"],
            },
        ),
        Tool(
            name="resolve_overlaps",
            description=(
                "Push nodes that sit closer than nodeWidth + minSpacing apart. "
                "Approximate: at most 10 passes."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "nodes": NODES_SCHEMA,
                    "min_spacing": {"type": "number", "default": MIN_SPACING},
                    "node_width": {"type": "number", "default": LayoutOptions().node_width},
                },
                "required": ["nodes"],
            },
        ),
        Tool(
            name="fit_to_viewport",
            description=(
                "Scale (never up) and center nodes so their boxes fit inside a view "
                "of the given size minus padding. Returns nodes, scale and offset."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "nodes": NODES_SCHEMA,
                    "view_size": VIEW_SIZE_SCHEMA,
                    "padding": {"type": "number", "default": VIEW_PADDING},
                    "options": OPTIONS_SCHEMA,
                },
                "required": ["nodes", "view_size"],
            },
        ),
        Tool(
            name="layout_recipe",
            description=(
                "Lay out a YAML pipeline recipe and return it as YAML with x/y "
                "positions filled in. Recipe example:\n"
                "title: ETL\n"
                "nodes:\n"
                "  - id: load\n"
                "    type: input\n"
                "  - id: clean\n"
                "    inputs: [load]\n"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "yaml_recipe": {"type": "string", "description": "YAML recipe string."},
                },
                "required": ["yaml_recipe"],
            },
        ),
        Tool(
            name="render_recipe",
            description=(
                "Lay out a YAML pipeline recipe and render a PNG preview. Returns the "
                "path to the PNG file."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "yaml_recipe": {"type": "string", "description": "YAML recipe string."},
                    "scale": {
                        "type": "number",
                        "description": "Render scale factor (default 2.0 for crisp output)",
                        "default": 2.0,
                    },
                    "theme": {"type": "string", "enum": ["dark", "light"], "default": "dark"},
                    "view_size": VIEW_SIZE_SCHEMA,
                    "filename": {
                        "type": "string",
                        "description": "Output filename (without extension). Default: auto-generated.",
                    },
                },
                "required": ["yaml_recipe"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    handlers = {
        "compute_layout": _compute_layout,
        "select_strategy": _select_strategy,
        "resolve_overlaps": _resolve_overlaps,
        "fit_to_viewport": _fit_to_viewport,
        "layout_recipe": _layout_recipe,
        "render_recipe": _render_recipe,
    }
    handler = handlers.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        return await handler(arguments)
    except (ValidationError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Tool {name} rejected its arguments: {e}")
        return [TextContent(type="text", text=f"Invalid arguments for {name}: {e}")]
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        return [TextContent(type="text", text=f"Tool {name} failed: {e}")]


# --- Argument helpers ---

def _nodes_from(args: dict) -> list[Node]:
    return [Node.model_validate(n) for n in args["nodes"]]


def _edges_from(args: dict) -> list[Edge]:
    return [Edge.model_validate(e) for e in args.get("edges") or []]


def _options_from(args: dict) -> LayoutOptions:
    return LayoutOptions.model_validate(args.get("options") or {})


def _dump_nodes(nodes: list[Node]) -> list[dict]:
    return [n.model_dump(exclude_none=True) for n in nodes]


def _json_result(payload: dict) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload))]


# --- Tool handlers ---

async def _compute_layout(args: dict) -> list[TextContent]:
    nodes = _nodes_from(args)
    edges = _edges_from(args)
    options = _options_from(args)

    laid_out = compute_layout(nodes, edges, options)
    return _json_result({
        "status": "success",
        "strategy": select_strategy(nodes, edges),
        "nodes": _dump_nodes(laid_out),
    })


async def _select_strategy(args: dict) -> list[TextContent]:
    return _json_result({"strategy": select_strategy(_nodes_from(args), _edges_from(args))})


async def _resolve_overlaps(args: dict) -> list[TextContent]:
    nodes = _nodes_from(args)
    resolved = resolve_overlaps(
        nodes,
        min_spacing=float(args.get("min_spacing", MIN_SPACING)),
        node_width=float(args.get("node_width", LayoutOptions().node_width)),
    )
    return _json_result({"status": "success", "nodes": _dump_nodes(resolved)})


async def _fit_to_viewport(args: dict) -> list[TextContent]:
    nodes = _nodes_from(args)
    options = _options_from(args)
    fitted = fit_to_viewport(
        nodes,
        ViewSize.model_validate(args["view_size"]),
        padding=float(args.get("padding", VIEW_PADDING)),
        node_width=options.node_width,
        node_height=options.node_height,
    )
    return _json_result({
        "status": "success",
        "nodes": _dump_nodes(fitted.nodes),
        "scale": fitted.scale,
        "offset": fitted.offset.model_dump(),
    })


async def _layout_recipe(args: dict) -> list[TextContent]:
    graph = parse_yaml(args["yaml_recipe"])
    laid_out = graph.with_nodes(compute_layout(graph.nodes, graph.edges, graph.layout))
    return [TextContent(type="text", text=graph_to_yaml(laid_out))]


async def _render_recipe(args: dict) -> list[TextContent]:
    """Render a YAML recipe to PNG."""
    _ensure_output_dir()

    graph = parse_yaml(args["yaml_recipe"])
    view_size = ViewSize.model_validate(args["view_size"]) if args.get("view_size") else None
    renderer = GraphRenderer(scale=float(args.get("scale", 2.0)), theme=args.get("theme", "dark"))

    filename = args.get("filename") or (
        graph.title.lower().replace(" ", "-")[:30] + "-" + str(uuid.uuid4())[:4]
    )
    output_path = str(OUTPUT_DIR / f"{filename}.png")

    try:
        renderer.render(graph, output_path=output_path, view_size=view_size)
    except OSError as e:
        logger.error(f"Rendering {graph.title!r} failed: {e}")
        return [TextContent(type="text", text=f"Rendering failed: {e}")]

    return _json_result({
        "status": "success",
        "path": output_path,
        "title": graph.title,
        "nodes": len(graph.nodes),
        "edges": len(graph.valid_edges()),
        "strategy": select_strategy(graph.nodes, graph.edges),
    })


def main():
    """Entry point for the MCP server."""
    import asyncio

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_run())


async def _run():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    main()
