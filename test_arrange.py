"""Grid, circular and hierarchical arrangers."""

import math
import sys
sys.path.insert(0, "src")

import pytest

from dag_canvas.arrange import (
    anchor_to_margin,
    assign_levels,
    calculate_circular_layout,
    calculate_grid_layout,
    calculate_hierarchical_layout,
    grid_columns_for,
)
from dag_canvas.models import Edge, Node, Position


def nodes(*ids):
    return [Node(id=i, position=Position(x=7, y=7)) for i in ids]


def edges(*pairs):
    return [Edge(id=f"{s}->{t}", source=s, target=t) for s, t in pairs]


def positions(result):
    return {n.id: (n.position.x, n.position.y) for n in result}


# --- Grid ---

def test_grid_is_row_major():
    result = calculate_grid_layout(nodes("a", "b", "c", "d", "e"), columns=2)
    assert positions(result) == {
        "a": (50, 50), "b": (200, 50),
        "c": (50, 150), "d": (200, 150),
        "e": (50, 250),
    }


def test_grid_clamps_columns():
    result = calculate_grid_layout(nodes("a", "b"), columns=0)
    assert positions(result) == {"a": (50, 50), "b": (50, 150)}


def test_grid_columns_for_square():
    assert grid_columns_for(1) == 1
    assert grid_columns_for(4) == 2
    assert grid_columns_for(5) == 3
    assert grid_columns_for(0) == 1


# --- Circular ---

def test_circular_empty_and_single():
    assert calculate_circular_layout([]) == []
    result = calculate_circular_layout(nodes("a"), center=(10, 20))
    assert positions(result) == {"a": (10, 20)}


def test_circular_centers_boxes_on_the_circle():
    result = calculate_circular_layout(nodes("a", "b", "c", "d"), node_width=180, node_height=80)
    first = result[0].position
    assert first.x == pytest.approx(300 + 200 - 90)
    assert first.y == pytest.approx(200 - 40)
    for node in result:
        cx = node.position.x + 90
        cy = node.position.y + 40
        assert math.hypot(cx - 300, cy - 200) == pytest.approx(200)


# --- Hierarchical ---

def test_chain_levels_and_rows():
    graph_nodes = nodes("A", "B", "C", "D")
    graph_edges = edges(("A", "B"), ("B", "C"), ("C", "D"))

    assert assign_levels(graph_nodes, graph_edges) == {"A": 0, "B": 1, "C": 2, "D": 3}

    result = calculate_hierarchical_layout(graph_nodes, graph_edges)
    ys = [n.position.y for n in result]
    assert ys == sorted(ys) and len(set(ys)) == 4
    assert positions(result) == {
        "A": (300, 50), "B": (300, 170), "C": (300, 290), "D": (300, 410),
    }


def test_siblings_are_centered_in_enqueue_order():
    graph_edges = edges(("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"))
    result = positions(calculate_hierarchical_layout(nodes("A", "B", "C", "D"), graph_edges))
    assert result["B"] == (225, 170)
    assert result["C"] == (375, 170)
    assert result["D"] == (300, 290)


def test_child_waits_for_all_parents():
    # C is a child of A but also of B, which only gets a level after A
    graph_edges = edges(("A", "B"), ("B", "C"), ("A", "C"))
    assert assign_levels(nodes("A", "B", "C"), graph_edges) == {"A": 0, "B": 1, "C": 2}


def test_no_root_falls_back_to_square_grid():
    graph_nodes = nodes("A", "B", "C")
    graph_edges = edges(("A", "B"), ("B", "C"), ("C", "A"))

    assert assign_levels(graph_nodes, graph_edges) is None
    result = calculate_hierarchical_layout(graph_nodes, graph_edges)
    assert positions(result) == {"A": (50, 50), "B": (200, 50), "C": (50, 170)}


def test_cycle_unreachable_from_root_defaults_to_level_zero():
    graph_nodes = nodes("R", "P", "Q")
    graph_edges = edges(("P", "Q"), ("Q", "P"))

    assert assign_levels(graph_nodes, graph_edges) == {"R": 0, "P": 0, "Q": 0}
    result = positions(calculate_hierarchical_layout(graph_nodes, graph_edges))
    assert result == {"R": (150, 50), "P": (300, 50), "Q": (450, 50)}


def test_cycle_entered_from_root_defaults_to_level_zero():
    # P waits for Q, Q waits for P: neither is ever reached
    graph_nodes = nodes("R", "P", "Q")
    graph_edges = edges(("R", "P"), ("P", "Q"), ("Q", "P"))
    assert assign_levels(graph_nodes, graph_edges) == {"R": 0, "P": 0, "Q": 0}


def test_unknown_endpoints_are_ignored():
    graph_edges = edges(("ghost", "A"), ("A", "B"), ("B", "nowhere"))
    assert assign_levels(nodes("A", "B"), graph_edges) == {"A": 0, "B": 1}


def test_arrangers_do_not_mutate_input():
    graph_nodes = nodes("A", "B", "C")
    graph_edges = edges(("A", "B"), ("B", "C"))
    calculate_grid_layout(graph_nodes)
    calculate_circular_layout(graph_nodes)
    result = calculate_hierarchical_layout(graph_nodes, graph_edges)
    assert all(n.position == Position(x=7, y=7) for n in graph_nodes)
    assert all(a is not b for a, b in zip(result, graph_nodes))


def test_empty_hierarchy():
    assert calculate_hierarchical_layout([], []) == []


def test_anchor_to_margin_moves_the_top_left_corner():
    layout = [Node(id="a", position=Position(x=-275, y=50)), Node(id="b", position=Position(x=300, y=230))]
    result = positions(anchor_to_margin(layout))
    assert result == {"a": (50, 50), "b": (625, 230)}
    assert anchor_to_margin([]) == []
