"""Tests for cycle detection and reachability gathering."""

import pytest

from deppack.analysis import find_cycles, gather
from deppack.models import ProgressPhase


# ── Cycle detection ───────────────────────────────────────────

class TestFindCycles:
    def test_no_cycles(self):
        assert find_cycles({"a": ["b"], "b": ["c"], "c": []}) == []

    def test_empty_graph(self):
        assert find_cycles({}) == []

    def test_disconnected_cycles_both_found(self):
        graph = {
            "A": ["B"], "B": ["C"], "C": ["A"],
            "X": ["Y"], "Y": ["X"],
        }
        assert find_cycles(graph) == [["A", "B", "C"], ["X", "Y"]]

    def test_cycle_not_reachable_from_first_node(self):
        graph = {"entry": ["leaf"], "leaf": [], "p": ["q"], "q": ["p"]}
        assert find_cycles(graph) == [["p", "q"]]

    def test_cycle_starts_where_detected(self):
        graph = {"a": ["b"], "b": ["c"], "c": ["b"]}
        assert find_cycles(graph) == [["b", "c"]]

    def test_self_loop(self):
        assert find_cycles({"a": ["a"]}) == [["a"]]

    def test_exact_duplicates_suppressed(self):
        graph = {"a": ["b"], "b": ["a", "a"]}
        assert find_cycles(graph) == [["a", "b"]]

    def test_nested_cycles(self):
        graph = {"a": ["b"], "b": ["c"], "c": ["a", "b"]}
        assert find_cycles(graph) == [["a", "b", "c"], ["b", "c"]]

    def test_deep_chain_cycle(self):
        graph = {f"f{i}": [f"f{i + 1}"] for i in range(3000)}
        graph["f3000"] = ["f0"]
        cycles = find_cycles(graph)
        assert cycles == [[f"f{i}" for i in range(3001)]]

    def test_deep_chain_without_cycle(self):
        graph = {f"f{i}": [f"f{i + 1}"] for i in range(5000)}
        assert find_cycles(graph) == []

    def test_values_not_keys(self):
        # dependencies without their own entry are treated as leaves
        assert find_cycles({"a": ["missing"]}) == []


# ── Gathering ─────────────────────────────────────────────────

GRAPH = {
    "a": ["b", "c"],
    "b": ["d"],
    "c": ["d", "e"],
    "d": ["a"],
    "e": [],
}


class TestGather:
    def test_unbounded_closure(self):
        assert gather(GRAPH, ["a"]) == ["a", "b", "c", "d", "e"]

    def test_depth_zero_is_entries(self):
        assert gather(GRAPH, ["a", "e"], max_depth=0) == ["a", "e"]

    def test_depth_one(self):
        assert gather(GRAPH, ["a"], max_depth=1) == ["a", "b", "c"]

    def test_depth_two(self):
        assert gather(GRAPH, ["a"], max_depth=2) == ["a", "b", "c", "d", "e"]

    def test_entry_missing_from_graph(self):
        assert gather(GRAPH, ["zzz"]) == ["zzz"]

    def test_duplicate_entries(self):
        assert gather(GRAPH, ["e", "e"]) == ["e"]

    def test_ignored_entries_and_children(self):
        ignored = {"c", "x"}
        result = gather(GRAPH, ["a", "x"], is_ignored=lambda p: p in ignored)
        assert result == ["a", "b", "d"]

    def test_ignored_node_reachable_elsewhere_still_skipped(self):
        graph = {"a": ["b", "c"], "b": ["c"], "c": []}
        assert gather(graph, ["a"], is_ignored=lambda p: p == "c") == ["a", "b"]

    @pytest.mark.parametrize("depth", [0, 1, 2, 3, None])
    def test_results_within_depth(self, depth):
        # every gathered node is reachable within `depth` hops
        result = gather(GRAPH, ["a"], max_depth=depth)
        distance = {"a": 0, "b": 1, "c": 1, "d": 2, "e": 2}
        for node in result:
            assert depth is None or distance[node] <= depth

    def test_progress_monotonic(self):
        events = []
        gather(GRAPH, ["a"], progress=events.append)
        assert all(e.phase is ProgressPhase.GATHERING for e in events)
        assert events[0].completed == 0
        counts = [e.completed for e in events]
        assert counts == sorted(counts)
        assert events[-1].completed == len(GRAPH)
