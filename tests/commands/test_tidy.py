"""Tests for the tidy prune and clean commands."""

from click.testing import CliRunner

from tests.test_utils.builders import make_state
from tests.test_utils.env_helpers import REPO_ROOT, twig_inmem_env
from twig.cli.cli import cli

STALE = make_state(
    edges=[("main", "a"), ("main", "gone")],
    roots=["main"],
    default_root="main",
    metadata={"gone": ("PROJ-9", None)},
)


def test_prune_removes_stale_declarations() -> None:
    ctx, _, store = twig_inmem_env(branches=["main", "a"], current="a", state=STALE)

    result = CliRunner().invoke(cli, ["tidy", "prune"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Removing:" in result.output
    assert "  - metadata for gone" in result.output
    assert "  - dependency main -> gone" in result.output
    assert "Pruned stale declarations" in result.output
    saved = store.current(REPO_ROOT)
    assert [(d.parent, d.child) for d in saved.dependencies] == [("main", "a")]
    assert saved.branches == {}


def test_prune_dry_run_saves_nothing() -> None:
    ctx, _, store = twig_inmem_env(branches=["main", "a"], current="a", state=STALE)

    result = CliRunner().invoke(cli, ["tidy", "prune", "--dry-run"], obj=ctx)

    assert result.exit_code == 0
    assert "Would remove:" in result.output
    assert store.save_calls == []


def test_prune_with_nothing_stale() -> None:
    ctx, _, store = twig_inmem_env(branches=["main", "a", "gone"], current="a", state=STALE)

    result = CliRunner().invoke(cli, ["tidy", "prune"], obj=ctx)

    assert result.exit_code == 0
    assert "Nothing to prune" in result.output
    assert store.save_calls == []


def test_clean_deletes_merged_leaf_branches() -> None:
    ctx, git, store = twig_inmem_env(
        branches=["main", "a", "b"],
        current="main",
        state=make_state(edges=[("main", "a"), ("main", "b")], roots=["main"]),
        commit_counts={("main", "b"): 3},
    )

    result = CliRunner().invoke(cli, ["tidy", "clean", "--force"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "a (parent: main)" in result.output
    assert "Deleted 1 branch(es)" in result.output
    assert git.deleted_branches == ["a"]
    saved = store.current(REPO_ROOT)
    assert [(d.parent, d.child) for d in saved.dependencies] == [("main", "b")]


def test_clean_asks_for_confirmation() -> None:
    ctx, git, store = twig_inmem_env(
        branches=["main", "a"],
        current="main",
        state=make_state(edges=[("main", "a")], roots=["main"]),
    )

    result = CliRunner().invoke(cli, ["tidy", "clean"], obj=ctx, input="n\n")

    assert result.exit_code == 0
    assert "Delete 1 branch(es)?" in result.output
    assert "Aborted" in result.output
    assert git.deleted_branches == []
    assert store.save_calls == []


def test_clean_dry_run() -> None:
    ctx, git, _ = twig_inmem_env(
        branches=["main", "a"],
        current="main",
        state=make_state(edges=[("main", "a")], roots=["main"]),
    )

    result = CliRunner().invoke(cli, ["tidy", "clean", "--dry-run"], obj=ctx)

    assert result.exit_code == 0
    assert "(dry run)" in result.output
    assert git.deleted_branches == []


def test_clean_with_nothing_to_delete() -> None:
    ctx, _, _ = twig_inmem_env(
        branches=["main", "a"],
        current="a",
        state=make_state(edges=[("main", "a")], roots=["main"]),
    )

    result = CliRunner().invoke(cli, ["tidy", "clean"], obj=ctx)

    assert result.exit_code == 0
    assert "No branches to clean" in result.output


def test_clean_deletes_empty_chain_together() -> None:
    ctx, git, store = twig_inmem_env(
        branches=["main", "a", "b"],
        current="main",
        state=make_state(edges=[("main", "a"), ("a", "b")], roots=["main"]),
    )

    result = CliRunner().invoke(cli, ["tidy", "clean", "--force"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "b (parent: a)" in result.output
    assert "Deleted 2 branch(es)" in result.output
    assert git.deleted_branches == ["a", "b"]
    assert store.current(REPO_ROOT).dependencies == ()


def test_clean_aggressive_reparents_child_of_removed_branch() -> None:
    state = make_state(edges=[("main", "x"), ("x", "c")], roots=["main"])
    ctx, git, store = twig_inmem_env(
        branches=["main", "x", "c"],
        current="c",
        state=state,
        commit_counts={("x", "c"): 2},
    )

    plain = CliRunner().invoke(cli, ["tidy", "clean", "--force"], obj=ctx)
    assert "No branches to clean" in plain.output

    result = CliRunner().invoke(cli, ["tidy", "clean", "--aggressive", "--force"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "c will be reparented from x to main" in result.output
    assert "Deleted 1 branch(es), reparented 1" in result.output
    assert git.deleted_branches == ["x"]
    saved = store.current(REPO_ROOT)
    assert [(d.parent, d.child) for d in saved.dependencies] == [("main", "c")]


def test_clean_forgets_branches_deleted_before_a_failure() -> None:
    ctx, git, store = twig_inmem_env(
        branches=["main", "a", "b"],
        current="main",
        state=make_state(edges=[("main", "a"), ("main", "b")], roots=["main"]),
        undeletable_branches={"b"},
    )

    result = CliRunner().invoke(cli, ["tidy", "clean", "--force"], obj=ctx)

    assert result.exit_code == 1
    assert "Failed to delete branch 'b'" in result.output
    assert git.deleted_branches == ["a"]
    saved = store.current(REPO_ROOT)
    assert [(d.parent, d.child) for d in saved.dependencies] == [("main", "b")]
