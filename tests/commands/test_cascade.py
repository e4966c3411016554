"""Tests for the cascade command."""

import click
from click.testing import CliRunner

from tests.test_utils.builders import make_state
from tests.test_utils.env_helpers import twig_inmem_env
from twig.cli.cli import cli
from twig.cli.commands.cascade import format_progress_message
from twig.core.global_config import GlobalConfig
from twig.core.rebase import RebaseOutcome, RebaseResult

BRANCHES = ["main", "a", "b", "c"]
TREE = make_state(
    edges=[("main", "a"), ("a", "b"), ("a", "c")],
    roots=["main"],
    default_root="main",
)


def test_cascade_rebases_descendants_in_order() -> None:
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current="a", state=TREE)

    result = CliRunner().invoke(cli, ["cascade"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Cascade from a" in result.output
    assert "Branches: 3" in result.output
    assert "[1/3] ✅ a rebased onto main" in result.output
    assert "[3/3] ✅ c rebased onto a" in result.output
    assert "Summary: 3 rebased" in result.output
    assert git.rebase_calls == [("a", "main", False), ("b", "a", False), ("c", "a", False)]
    assert git.checkout_calls == ["b", "c", "a"]


def test_cascade_from_other_branch_returns_to_original() -> None:
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current="main", state=TREE)

    result = CliRunner().invoke(cli, ["cascade", "--branch", "b"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Returned to main" in result.output
    assert git.get_current_branch(ctx.cwd) == "main"


def test_start_without_parent_is_skipped() -> None:
    ctx, git, _ = twig_inmem_env(
        branches=BRANCHES,
        current="main",
        state=TREE,
        ancestors={("main", "a"), ("a", "b"), ("a", "c")},
    )

    result = CliRunner().invoke(cli, ["cascade"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "main (no parent)" in result.output
    assert "Summary: 4 skipped" in result.output
    assert git.rebase_calls == []


def test_cascade_halts_on_conflict() -> None:
    ctx, git, _ = twig_inmem_env(
        branches=BRANCHES,
        current="a",
        state=TREE,
        conflicting_branches={"b": ["shared.py"]},
    )

    result = CliRunner().invoke(cli, ["cascade"], obj=ctx)

    assert result.exit_code == 1
    assert "Summary: 1 rebased, 1 conflicted, 1 not attempted" in result.output
    assert "Conflicts detected in branch: b" in result.output
    assert "After resolving, resume with: twig cascade --branch b" in result.output
    assert git.rebase_calls == [("a", "main", False), ("b", "a", False)]
    assert git.is_rebase_in_progress(ctx.cwd)


def test_continue_on_error_aborts_and_keeps_going() -> None:
    ctx, git, _ = twig_inmem_env(
        branches=BRANCHES,
        current="a",
        state=TREE,
        conflicting_branches={"b": ["shared.py"]},
    )

    result = CliRunner().invoke(cli, ["cascade", "--continue-on-error"], obj=ctx)

    assert result.exit_code == 1
    assert "Summary: 2 rebased, 1 conflicted" in result.output
    assert "Conflicts (rebase aborted): b" in result.output
    assert git.abort_calls == 1
    assert git.get_current_branch(ctx.cwd) == "a"


def test_preview_plans_without_rebasing() -> None:
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current="a", state=TREE)

    result = CliRunner().invoke(cli, ["cascade", "--preview"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Summary: 3 planned" in result.output
    assert "(dry run)" in result.output
    assert git.rebase_calls == []
    assert git.checkout_calls == []


def test_max_depth_limits_cascade() -> None:
    ctx, git, _ = twig_inmem_env(
        branches=BRANCHES,
        current="main",
        state=TREE,
        global_config=GlobalConfig(max_depth=5),
    )

    result = CliRunner().invoke(cli, ["cascade", "--max-depth", "1"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Branches: 2" in result.output
    assert git.rebase_calls == [("a", "main", False)]


def test_max_depth_falls_back_to_global_config() -> None:
    ctx, git, _ = twig_inmem_env(
        branches=BRANCHES,
        current="main",
        state=TREE,
        global_config=GlobalConfig(max_depth=1),
    )

    result = CliRunner().invoke(cli, ["cascade"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Branches: 2" in result.output


def test_unknown_start_branch() -> None:
    ctx, _, _ = twig_inmem_env(branches=BRANCHES, current="a", state=TREE)

    result = CliRunner().invoke(cli, ["cascade", "--branch", "nope"], obj=ctx)

    assert result.exit_code == 1
    assert "Branch 'nope' not found" in result.output


def test_autostash_keeps_changes_across_cascade() -> None:
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current="a", state=TREE, dirty=True)

    result = CliRunner().invoke(cli, ["cascade", "--autostash"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert git.stash_calls == ["push", "pop"]
    assert git.has_uncommitted_changes(ctx.cwd)


def test_format_progress_message_includes_reason() -> None:
    result = RebaseResult(
        branch="b",
        onto="a",
        outcome=RebaseOutcome.SKIPPED,
        reason="already up to date",
    )

    message = click.unstyle(format_progress_message(2, 3, result))

    assert message == "[2/3] ↷ b (already up to date)"


def test_detached_head_is_refused() -> None:
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current=None, state=TREE)

    result = CliRunner().invoke(cli, ["cascade", "--branch", "a"], obj=ctx)

    assert result.exit_code == 1
    assert "HEAD is not a branch" in result.output
    assert git.rebase_calls == []


def test_detached_head_preview_is_allowed() -> None:
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current=None, state=TREE)

    result = CliRunner().invoke(cli, ["cascade", "--branch", "a", "--preview"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Summary: 3 planned" in result.output


def test_missing_parent_is_reported_as_skipped() -> None:
    state = make_state(
        edges=[("main", "a"), ("gone", "b"), ("a", "b"), ("a", "c")],
        roots=["main"],
    )
    ctx, git, _ = twig_inmem_env(branches=BRANCHES, current="a", state=state)

    result = CliRunner().invoke(cli, ["cascade"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "b (parent does not exist locally)" in result.output
    assert "Summary: 2 rebased, 1 skipped" in result.output
    assert git.rebase_calls == [("a", "main", False), ("c", "a", False)]
