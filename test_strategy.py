"""Strategy selection from graph shape."""

import sys
sys.path.insert(0, "src")

from dag_canvas.models import Edge, Node
from dag_canvas.strategy import select_strategy


def nodes(*ids):
    return [Node(id=i) for i in ids]


def edges(*pairs):
    return [Edge(id=f"{s}->{t}", source=s, target=t) for s, t in pairs]


def test_empty_and_single_node_use_grid():
    assert select_strategy([], []) == "grid"
    assert select_strategy(nodes("a"), []) == "grid"


def test_two_or_three_nodes_use_circular():
    assert select_strategy(nodes("a", "b"), edges(("a", "b"))) == "circular"
    assert select_strategy(nodes("a", "b", "c"), []) == "circular"


def test_chain_is_hierarchical():
    graph_edges = edges(("A", "B"), ("B", "C"), ("C", "D"))
    assert select_strategy(nodes("A", "B", "C", "D"), graph_edges) == "hierarchical"


def test_fan_in_is_layered():
    # C has two parents: only 3 of 4 nodes have in-degree <= 1
    graph_edges = edges(("A", "C"), ("B", "C"), ("C", "D"))
    assert select_strategy(nodes("A", "B", "C", "D"), graph_edges) == "layered"


def test_edgeless_graphs():
    assert select_strategy(nodes("a", "b", "c", "d"), []) == "circular"
    assert select_strategy(nodes(*"abcdefghij"), []) == "circular"
    assert select_strategy(nodes(*"abcdefghijk"), []) == "grid"


def test_dangling_edges_are_ignored():
    graph_edges = edges(("a", "ghost"), ("ghost", "b"))
    assert select_strategy(nodes("a", "b", "c", "d"), graph_edges) == "circular"


def test_duplicate_edges_count_towards_in_degree():
    # b has in-degree 2 from a repeated edge, so only 3 of 4 nodes are tree-like
    graph_edges = edges(("a", "b"), ("a", "b"), ("c", "d"))
    assert select_strategy(nodes("a", "b", "c", "d"), graph_edges) == "layered"


def test_selection_does_not_touch_inputs():
    graph_nodes = nodes("A", "B", "C", "D")
    graph_edges = edges(("A", "B"), ("B", "C"), ("C", "D"))
    before = [n.model_dump() for n in graph_nodes]
    select_strategy(graph_nodes, graph_edges)
    assert [n.model_dump() for n in graph_nodes] == before
