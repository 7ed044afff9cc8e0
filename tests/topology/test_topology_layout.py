"""
tests/topology/test_topology_layout.py - force-directed 레이아웃 테스트
"""

import math

import pytest

from topology.graph import ForceSimulation, compute_layout


def _distance(p, q):
    return math.hypot(p[0] - q[0], p[1] - q[1])


class TestForceSimulation:
    """ForceSimulation 테스트"""

    def test_deterministic(self):
        links = [("a", "b"), ("b", "c"), ("c", "d")]
        first = compute_layout(["a", "b", "c", "d"], links)
        second = compute_layout(["a", "b", "c", "d"], links)
        assert first == second

    def test_positions_finite_and_separated(self):
        positions = compute_layout(["a", "b", "c"], [("a", "b"), ("b", "c")])

        assert set(positions) == {"a", "b", "c"}
        for x, y in positions.values():
            assert math.isfinite(x)
            assert math.isfinite(y)
        assert _distance(positions["a"], positions["b"]) > 10

    def test_pinned_node_keeps_position(self):
        sim = ForceSimulation(["a", "b", "c"], [("a", "b"), ("a", "c")])
        sim.pin("a", 123.0, 45.0)
        sim.run()

        assert sim.positions()["a"] == (123.0, 45.0)
        assert sim.nodes[0].pinned

    def test_drag_then_release(self):
        sim = ForceSimulation(["a", "b"], [("a", "b")])
        sim.run()

        sim.drag("a", 10.0, 20.0)
        assert sim.alpha_target == 0.3
        assert sim.positions()["a"] == (10.0, 20.0)

        sim.release("a")
        assert not sim.nodes[0].pinned
        assert sim.alpha_target == 0.0

    def test_run_stops(self):
        sim = ForceSimulation([f"n{i}" for i in range(10)], [(f"n{i}", f"n{i + 1}") for i in range(9)])
        ticks = sim.run(max_ticks=50)
        assert 1 <= ticks <= 50

    def test_unknown_links_ignored(self):
        sim = ForceSimulation(["a", "b"], [("a", "b"), ("a", "ghost"), ("a", "a")])
        assert sim.links == [(0, 1)]

    def test_duplicate_node_ids(self):
        sim = ForceSimulation(["a", "a", "b"])
        assert [n.id for n in sim.nodes] == ["a", "b"]

    def test_unknown_node(self):
        sim = ForceSimulation(["a"])
        with pytest.raises(KeyError):
            sim.pin("missing", 0.0, 0.0)
        with pytest.raises(KeyError):
            sim.release("missing")

    def test_empty(self):
        sim = ForceSimulation([])
        assert sim.run() == 1
        assert sim.positions() == {}


class TestComputeLayout:
    def test_pinned_argument(self):
        positions = compute_layout(["a", "b"], [("a", "b")], pinned={"b": (0.0, 0.0)})
        assert positions["b"] == (0.0, 0.0)
