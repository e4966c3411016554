"""Tests for the cascade scheduler."""

from pathlib import Path

import pytest

from tests.test_utils.builders import make_graph
from twig.core.cascade import CascadeOptions, CascadeScheduler
from twig.core.errors import DetachedHeadError
from twig.core.git.fake import FakeGit
from twig.core.graph import BranchGraph
from twig.core.rebase import RebaseOutcome, RebaseResult

REPO = Path("/repo")

# main -> A -> {B, C}
EDGES = [("main", "A"), ("A", "B"), ("A", "C")]
BRANCHES = ["main", "A", "B", "C"]


def _graph(current: str | None = "main") -> BranchGraph:
    return make_graph(edges=EDGES, roots=["main"], default_root="main", current=current)


def test_cascade_rebases_in_order_and_restores_original_branch() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch="main")

    report = CascadeScheduler(git, REPO).run(_graph(), "A", CascadeOptions())

    assert report.order == ["A", "B", "C"]
    assert git.rebase_calls == [("A", "main", False), ("B", "A", False), ("C", "A", False)]
    assert report.rebased == ["A", "B", "C"]
    assert report.succeeded
    assert report.restored_branch == "main"
    assert git.get_current_branch(REPO) == "main"


def test_conflict_halts_and_leaves_repo_on_conflicting_branch() -> None:
    git = FakeGit(
        local_branches=BRANCHES,
        current_branch="main",
        conflicting_branches={"B": ["shared.txt"]},
    )

    report = CascadeScheduler(git, REPO).run(_graph(), "A", CascadeOptions())

    assert report.rebased == ["A"]
    assert report.conflicted == ["B"]
    assert report.not_attempted == ["C"]
    assert report.halted_on == "B"
    assert not report.succeeded
    assert report.restored_branch is None
    assert git.get_current_branch(REPO) == "B"
    assert git.is_rebase_in_progress(REPO)
    assert git.abort_calls == 0


def test_continue_on_error_aborts_conflict_and_skips_descendants() -> None:
    edges = [("main", "A"), ("A", "B"), ("B", "B2"), ("A", "C")]
    graph = make_graph(edges=edges, roots=["main"], current="main")
    git = FakeGit(
        local_branches=["main", "A", "B", "B2", "C"],
        current_branch="main",
        conflicting_branches={"B": ["x.py"]},
    )

    report = CascadeScheduler(git, REPO).run(
        graph, "A", CascadeOptions(continue_on_error=True)
    )

    assert report.rebased == ["A", "C"]
    assert report.conflicted == ["B"]
    assert report.skipped == ["B2"]
    assert report.result_for("B2").reason == "parent could not be rebased"
    assert report.halted_on is None
    assert git.abort_calls == 1
    assert report.restored_branch == "main"
    assert git.get_current_branch(REPO) == "main"


def test_dry_run_order_matches_live_order_without_side_effects() -> None:
    dry_git = FakeGit(local_branches=BRANCHES, current_branch="main")
    live_git = FakeGit(local_branches=BRANCHES, current_branch="main")

    dry = CascadeScheduler(dry_git, REPO).run(_graph(), "A", CascadeOptions(dry_run=True))
    live = CascadeScheduler(live_git, REPO).run(_graph(), "A", CascadeOptions())

    assert dry.order == live.order
    assert dry.planned == ["A", "B", "C"]
    assert dry_git.rebase_calls == []
    assert dry_git.checkout_calls == []


def test_dry_run_plans_descendants_of_moving_parent_even_if_up_to_date() -> None:
    git = FakeGit(
        local_branches=BRANCHES,
        current_branch="main",
        ancestors={("A", "B"), ("A", "C")},
    )

    report = CascadeScheduler(git, REPO).run(_graph(), "A", CascadeOptions(dry_run=True))

    assert report.planned == ["A", "B", "C"]


def test_up_to_date_branches_are_skipped() -> None:
    git = FakeGit(
        local_branches=BRANCHES,
        current_branch="main",
        ancestors={("main", "A"), ("A", "B"), ("A", "C")},
    )

    report = CascadeScheduler(git, REPO).run(_graph(), "A", CascadeOptions())

    assert report.skipped == ["A", "B", "C"]
    assert git.rebase_calls == []
    assert report.succeeded


def test_starting_at_root_skips_it_with_no_parent() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch="main")

    report = CascadeScheduler(git, REPO).run(_graph(), "main", CascadeOptions())

    first = report.results[0]
    assert first.branch == "main"
    assert first.outcome == RebaseOutcome.SKIPPED
    assert first.reason == "no parent"
    assert report.rebased == ["A", "B", "C"]


def test_max_depth_limits_cascade() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch="main")

    report = CascadeScheduler(git, REPO).run(_graph(), "main", CascadeOptions(max_depth=1))

    assert report.order == ["main", "A"]


def test_missing_branch_is_skipped_with_its_descendants() -> None:
    graph = make_graph(
        edges=[("main", "A"), ("A", "B")],
        roots=["main"],
        live=["main", "B"],
        current="main",
    )
    git = FakeGit(local_branches=["main", "B"], current_branch="main")

    report = CascadeScheduler(git, REPO).run(graph, "main", CascadeOptions())

    assert report.skipped == ["main", "A", "B"]
    assert report.result_for("A").reason == "branch does not exist locally"
    assert git.rebase_calls == []


def test_autostash_taken_once_and_popped_after_restore() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch="main", dirty=True)

    report = CascadeScheduler(git, REPO).run(_graph(), "A", CascadeOptions(autostash=True))

    assert git.stash_calls == ["push", "pop"]
    assert report.stash_pending is False
    assert git.has_uncommitted_changes(REPO)


def test_autostash_is_reported_pending_when_halted() -> None:
    git = FakeGit(
        local_branches=BRANCHES,
        current_branch="main",
        dirty=True,
        conflicting_branches={"A": ["f"]},
    )

    report = CascadeScheduler(git, REPO).run(_graph(), "A", CascadeOptions(autostash=True))

    assert report.stash_pending is True
    assert git.stash_calls == ["push"]


def test_original_branch_restored_when_interrupted() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch="main")
    steps: list[str] = []

    def interrupt(position: int, total: int, result: RebaseResult) -> None:
        steps.append(result.branch)
        if result.branch == "A":
            raise KeyboardInterrupt

    scheduler = CascadeScheduler(git, REPO)
    with pytest.raises(KeyboardInterrupt):
        scheduler.run(_graph(), "A", CascadeOptions(), on_step=interrupt)

    assert steps == ["A"]
    assert git.get_current_branch(REPO) == "main"


def test_on_step_receives_position_and_total() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch="main")
    calls: list[tuple[int, int, str]] = []

    CascadeScheduler(git, REPO).run(
        _graph(),
        "A",
        CascadeOptions(),
        on_step=lambda pos, total, result: calls.append((pos, total, result.branch)),
    )

    assert calls == [(1, 3, "A"), (2, 3, "B"), (3, 3, "C")]


def test_branch_with_missing_parent_is_skipped_and_others_continue() -> None:
    # B's primary parent was deleted; its declaration survives eviction
    graph = make_graph(
        edges=[("main", "A"), ("gone", "B"), ("A", "B"), ("B", "B2"), ("A", "C")],
        roots=["main"],
        live=["main", "A", "B", "B2", "C"],
        current="main",
    )
    git = FakeGit(local_branches=["main", "A", "B", "B2", "C"], current_branch="main")

    report = CascadeScheduler(git, REPO).run(
        graph, "A", CascadeOptions(continue_on_error=True)
    )

    assert report.rebased == ["A", "C"]
    assert report.skipped == ["B", "B2"]
    assert report.result_for("B").reason == "parent does not exist locally"
    assert report.result_for("B2").reason == "parent could not be rebased"
    assert ("B", "gone", False) not in git.rebase_calls
    assert report.restored_branch == "main"


def test_detached_head_is_refused_before_any_change() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch=None)

    with pytest.raises(DetachedHeadError):
        CascadeScheduler(git, REPO).run(_graph(current=None), "A", CascadeOptions())

    assert git.rebase_calls == []
    assert git.checkout_calls == []
    assert git.stash_calls == []


def test_detached_head_dry_run_is_allowed() -> None:
    git = FakeGit(local_branches=BRANCHES, current_branch=None)

    report = CascadeScheduler(git, REPO).run(
        _graph(current=None), "A", CascadeOptions(dry_run=True)
    )

    assert report.planned == ["A", "B", "C"]
    assert report.restored_branch is None
