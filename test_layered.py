"""Layered layout: grandalf backend, direction handling and fallback."""

import logging
import math
import sys
sys.path.insert(0, "src")

import pytest

from dag_canvas.layered import (
    GrandalfBackend,
    LayeredBackend,
    LayeredLayoutEngine,
    calculate_layered_layout,
)
from dag_canvas.models import Edge, LayoutOptions, Node


def nodes(*ids):
    return [Node(id=i) for i in ids]


def edges(*pairs):
    return [Edge(id=f"{s}->{t}", source=s, target=t) for s, t in pairs]


def positions(result):
    return {n.id: (n.position.x, n.position.y) for n in result}


def boxes_overlap(a, b, w=180, h=80):
    return (
        a.position.x < b.position.x + w
        and b.position.x < a.position.x + w
        and a.position.y < b.position.y + h
        and b.position.y < a.position.y + h
    )


CHAIN = edges(("A", "B"), ("B", "C"))


class StaticBackend(LayeredBackend):
    def __init__(self, centers):
        self.centers = centers

    @property
    def name(self):
        return "static"

    def layout(self, nodes, edges, options):
        return self.centers


class BrokenBackend(LayeredBackend):
    @property
    def name(self):
        return "broken"

    def layout(self, nodes, edges, options):
        raise RuntimeError("backend exploded")


def test_chain_left_to_right():
    result = positions(calculate_layered_layout(nodes("A", "B", "C"), CHAIN))
    # rank step is node_width + rank_sep
    assert result["B"][0] - result["A"][0] == pytest.approx(280)
    assert result["C"][0] - result["B"][0] == pytest.approx(280)
    assert result["A"][1] == pytest.approx(result["B"][1])
    assert result["B"][1] == pytest.approx(result["C"][1])
    assert min(x for x, _ in result.values()) == pytest.approx(50)
    assert min(y for _, y in result.values()) == pytest.approx(50)


def test_chain_top_to_bottom():
    options = LayoutOptions(direction="TB")
    result = positions(calculate_layered_layout(nodes("A", "B", "C"), CHAIN, options))
    # rank step is node_height + rank_sep
    assert result["B"][1] - result["A"][1] == pytest.approx(180)
    assert result["C"][1] - result["B"][1] == pytest.approx(180)
    assert result["A"][0] == pytest.approx(result["C"][0])


def test_reversed_directions():
    bt = positions(calculate_layered_layout(nodes("A", "B", "C"), CHAIN, LayoutOptions(direction="BT")))
    assert bt["A"][1] > bt["B"][1] > bt["C"][1]

    rl = positions(calculate_layered_layout(nodes("A", "B", "C"), CHAIN, LayoutOptions(direction="RL")))
    assert rl["A"][0] > rl["B"][0] > rl["C"][0]
    assert min(x for x, _ in rl.values()) == pytest.approx(50)


def test_fan_in_is_finite_and_ranked():
    graph_edges = edges(("A", "C"), ("B", "C"), ("C", "D"))
    result = calculate_layered_layout(nodes("A", "B", "C", "D"), graph_edges)
    placed = positions(result)
    for x, y in placed.values():
        assert math.isfinite(x) and math.isfinite(y)
    assert placed["A"][0] < placed["C"][0] < placed["D"][0]
    assert not boxes_overlap(result[0], result[1])


def test_disconnected_components_do_not_overlap():
    graph_edges = edges(("A", "B"), ("C", "D"))
    result = calculate_layered_layout(nodes("A", "B", "C", "D", "E"), graph_edges)
    for i, a in enumerate(result):
        for b in result[i + 1:]:
            assert not boxes_overlap(a, b), (a.id, b.id)


def test_self_loops_and_duplicates_are_tolerated(caplog):
    graph_edges = edges(("A", "A"), ("A", "B"), ("A", "B"), ("B", "ghost"))
    with caplog.at_level(logging.WARNING, logger="dag_canvas.layered"):
        result = calculate_layered_layout(nodes("A", "B"), graph_edges)
    assert not caplog.records
    placed = positions(result)
    assert placed["B"][0] - placed["A"][0] == pytest.approx(280)


def test_cycle_still_gets_finite_positions():
    graph_edges = edges(("A", "B"), ("B", "C"), ("C", "A"))
    result = calculate_layered_layout(nodes("A", "B", "C"), graph_edges)
    assert len(result) == 3
    for node in result:
        assert math.isfinite(node.position.x) and math.isfinite(node.position.y)


def test_backend_centers_become_top_left_positions():
    engine = LayeredLayoutEngine(StaticBackend({"a": (100.0, 100.0), "b": (400.0, 100.0)}))
    result = positions(engine.arrange(nodes("a", "b"), edges(("a", "b"))))
    assert result == {"a": (50, 50), "b": (350, 50)}


@pytest.mark.parametrize(
    "backend",
    [
        BrokenBackend(),
        StaticBackend({"A": (0.0, 0.0)}),
        StaticBackend({"A": (0.0, 0.0), "B": (float("nan"), 0.0), "C": (10.0, 10.0)}),
    ],
    ids=["raises", "missing-node", "nan"],
)
def test_backend_failure_falls_back_to_hierarchical(backend, caplog):
    graph_nodes = nodes("A", "B", "C")
    with caplog.at_level(logging.WARNING, logger="dag_canvas.layered"):
        result = LayeredLayoutEngine(backend).arrange(graph_nodes, CHAIN)

    # hierarchical rows at node_height + rank_sep, moved to the margin
    assert positions(result) == {"A": (50, 50), "B": (50, 230), "C": (50, 410)}
    assert any("falling back" in r.getMessage() for r in caplog.records)


def test_empty_input():
    assert LayeredLayoutEngine().arrange([], []) == []
    assert GrandalfBackend().name == "grandalf"


def test_input_is_not_mutated():
    graph_nodes = nodes("A", "B", "C")
    before = [n.model_dump() for n in graph_nodes]
    calculate_layered_layout(graph_nodes, CHAIN)
    assert [n.model_dump() for n in graph_nodes] == before
