"""Tests for rendering the dependency graph as a tree."""

from tests.test_utils.builders import make_state
from twig.core.graph import build_branch_graph
from twig.core.tree_render import format_graph_as_tree


def test_renders_nested_tree_with_connectors() -> None:
    state = make_state(edges=[("main", "a"), ("a", "b"), ("a", "c"), ("main", "d")])
    graph = build_branch_graph(state, ["main", "a", "b", "c", "d"], None)

    assert format_graph_as_tree(graph, ["main"]) == "\n".join(
        [
            "main",
            "├─ a",
            "│  ├─ b",
            "│  └─ c",
            "└─ d",
        ]
    )


def test_marks_current_missing_and_linked_branches() -> None:
    state = make_state(
        edges=[("main", "a"), ("main", "gone")],
        metadata={"a": ("PROJ-1", 12)},
    )
    graph = build_branch_graph(state, ["main", "a"], "a")

    assert format_graph_as_tree(graph, ["main"]) == "\n".join(
        [
            "main",
            "├─ a [PROJ-1, #12] (current)",
            "└─ gone (missing)",
        ]
    )


def test_diamond_is_rendered_once() -> None:
    state = make_state(edges=[("main", "a"), ("main", "b"), ("a", "m"), ("b", "m"), ("m", "z")])
    graph = build_branch_graph(state, ["main", "a", "b", "m", "z"], None)

    assert format_graph_as_tree(graph, ["main"]) == "\n".join(
        [
            "main",
            "├─ a",
            "│  └─ m",
            "│     └─ z",
            "└─ b",
            "   └─ m (see above)",
        ]
    )


def test_max_depth_stops_descent() -> None:
    state = make_state(edges=[("main", "a"), ("a", "b")])
    graph = build_branch_graph(state, ["main", "a", "b"], None)

    assert format_graph_as_tree(graph, ["main"], max_depth=1) == "main\n└─ a"


def test_implied_orphan_edges_are_marked() -> None:
    state = make_state(roots=["main"], default_root="main")
    graph = build_branch_graph(state, ["main", "stray"], None, attach_orphans=True)

    assert format_graph_as_tree(graph, ["main"]) == "main\n└─ stray (orphan)"


def test_no_roots_in_graph() -> None:
    graph = build_branch_graph(make_state(), ["main"], None)

    assert format_graph_as_tree(graph, ["nope"]) == "No branches found"
