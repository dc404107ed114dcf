"""Unit tests for dependency graph traversal and edge checks."""

import pytest

from unitask.domain.dependency import DependencyType, check_new_edge, dependency_chain, reaches
from unitask.domain.shared import CyclicDependencyError, SelfDependencyError

# a depends on b and c; b depends on d; c depends on d
EDGES = {"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []}


def prerequisites_of(task_id: str) -> list[str]:
    return EDGES.get(task_id, [])


class TestReaches:
    def test_transitive_path(self) -> None:
        assert reaches("a", "d", prerequisites_of, 4)

    def test_no_reverse_path(self) -> None:
        assert not reaches("d", "a", prerequisites_of, 4)

    def test_terminates_on_cycle(self) -> None:
        looped = {"x": ["y"], "y": ["x"]}
        assert not reaches("x", "z", lambda t: looped.get(t, []), 3)


class TestCheckNewEdge:
    def test_self_edge_rejected(self) -> None:
        with pytest.raises(SelfDependencyError):
            check_new_edge("a", "a", True, prerequisites_of, 4)

    def test_closing_gating_cycle_rejected(self) -> None:
        with pytest.raises(CyclicDependencyError):
            check_new_edge("d", "a", True, prerequisites_of, 4)

    def test_non_gating_edge_may_close_a_loop(self) -> None:
        check_new_edge("d", "a", False, prerequisites_of, 4)

    def test_independent_edge_accepted(self) -> None:
        check_new_edge("b", "c", True, prerequisites_of, 4)


class TestDependencyChain:
    def test_closure_deduplicated_in_discovery_order(self) -> None:
        assert dependency_chain("a", prerequisites_of, 4) == ["b", "d", "c"]

    def test_cycle_does_not_include_start(self) -> None:
        looped = {"x": ["y"], "y": ["x"]}
        assert dependency_chain("x", lambda t: looped[t], 2) == ["y"]


def test_gating_types() -> None:
    assert DependencyType.BLOCKS.is_gating
    assert DependencyType.BLOCKED_BY.is_gating
    assert not DependencyType.RELATES_TO.is_gating
    assert not DependencyType.DUPLICATES.is_gating
