"""Tests for adopting orphaned branches."""

import pytest

from tests.test_utils.builders import make_graph, make_state
from twig.core.adoption import (
    Adoption,
    AdoptionMode,
    apply_adoption_plan,
    build_adoption_plan,
)
from twig.core.errors import BranchNotFoundError, CycleError, NoRootFoundError
from twig.core.time.fake import DEFAULT_FAKE_NOW


def test_auto_mode_uses_default_root() -> None:
    graph = make_graph(
        edges=[("main", "a")],
        roots=["main"],
        default_root="main",
        live=["main", "a", "x", "y"],
    )

    plan = build_adoption_plan(graph, AdoptionMode.AUTO)

    assert plan == [
        Adoption(child="x", parent="main", reason="default root"),
        Adoption(child="y", parent="main", reason="default root"),
    ]


def test_auto_mode_without_roots_suggests_trunk_and_skips_it() -> None:
    graph = make_graph(live=["main", "feat"], current="feat")

    plan = build_adoption_plan(graph, AdoptionMode.AUTO)

    assert plan == [Adoption(child="feat", parent="main", reason="suggested parent")]


def test_default_root_mode_requires_default_root() -> None:
    graph = make_graph(roots=["main"], live=["main", "x"])

    with pytest.raises(NoRootFoundError):
        build_adoption_plan(graph, AdoptionMode.DEFAULT_ROOT)


def test_branch_mode_uses_explicit_parent() -> None:
    graph = make_graph(roots=["main"], live=["main", "develop", "x"])

    plan = build_adoption_plan(graph, AdoptionMode.BRANCH, parent="develop")

    assert plan == [Adoption(child="x", parent="develop", reason="explicit parent")]


def test_branch_mode_rejects_missing_parent() -> None:
    graph = make_graph(roots=["main"], live=["main", "x"])

    with pytest.raises(BranchNotFoundError):
        build_adoption_plan(graph, AdoptionMode.BRANCH, parent="nope")


def test_no_orphans_gives_empty_plan() -> None:
    graph = make_graph(edges=[("main", "a")], roots=["main"])

    assert build_adoption_plan(graph, AdoptionMode.AUTO) == []


def test_apply_plan_declares_edges() -> None:
    state = make_state(roots=["main"])
    plan = [Adoption(child="x", parent="main", reason="default root")]

    new_state = apply_adoption_plan(state, plan, now=DEFAULT_FAKE_NOW)

    assert new_state.parents_of("x") == ["main"]


def test_apply_plan_is_cycle_checked() -> None:
    state = make_state(edges=[("x", "main")])
    plan = [Adoption(child="x", parent="main", reason="explicit parent")]

    with pytest.raises(CycleError):
        apply_adoption_plan(state, plan, now=DEFAULT_FAKE_NOW)
