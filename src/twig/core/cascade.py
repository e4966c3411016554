"""Cascade scheduler: rebase a branch and all of its descendants.

The walk follows topological order so every branch is rebased only after
its ancestors. Each branch is rebased onto its primary parent.

Failure handling:
- Halt mode (default): the first conflict stops the walk. The repository is
  left mid-rebase on the conflicting branch for the user to resolve, and
  every later branch is reported NOT_ATTEMPTED.
- Continue-on-error: the conflicting rebase is aborted, its descendants
  inside the cascade are skipped, and unrelated branches carry on.

Unless a conflict is left pending, the originally checked-out branch is
restored at the end, including when the run is interrupted. A cascade that
would move HEAD refuses to start from a detached HEAD.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

from twig.core.errors import DetachedHeadError
from twig.core.git.abc import Git
from twig.core.graph import BranchGraph
from twig.core.rebase import RebaseEngine, RebaseOutcome, RebaseResult
from twig.core.topology import topological_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeOptions:
    max_depth: int | None = None
    force: bool = False
    continue_on_error: bool = False
    autostash: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class CascadeReport:
    """Per-branch results of a cascade, in the order branches were visited."""

    start: str
    original_branch: str | None
    results: tuple[RebaseResult, ...]
    halted_on: str | None
    restored_branch: str | None
    stash_pending: bool
    dry_run: bool = False

    def _with_outcome(self, outcome: RebaseOutcome) -> list[str]:
        return [r.branch for r in self.results if r.outcome == outcome]

    @property
    def order(self) -> list[str]:
        return [r.branch for r in self.results]

    @property
    def rebased(self) -> list[str]:
        return self._with_outcome(RebaseOutcome.REBASED)

    @property
    def planned(self) -> list[str]:
        return self._with_outcome(RebaseOutcome.PLANNED)

    @property
    def skipped(self) -> list[str]:
        return self._with_outcome(RebaseOutcome.SKIPPED)

    @property
    def conflicted(self) -> list[str]:
        return self._with_outcome(RebaseOutcome.CONFLICT)

    @property
    def not_attempted(self) -> list[str]:
        return self._with_outcome(RebaseOutcome.NOT_ATTEMPTED)

    @property
    def succeeded(self) -> bool:
        return self.halted_on is None and not self.conflicted

    def result_for(self, branch: str) -> RebaseResult | None:
        for result in self.results:
            if result.branch == branch:
                return result
        return None


StepCallback = Callable[[int, int, RebaseResult], None]


class CascadeScheduler:
    """Runs cascades against one repository."""

    def __init__(self, git: Git, repo_root: Path) -> None:
        self._git = git
        self._repo_root = repo_root
        self._engine = RebaseEngine(git, repo_root)

    def run(
        self,
        graph: BranchGraph,
        start: str,
        options: CascadeOptions,
        *,
        on_step: StepCallback | None = None,
    ) -> CascadeReport:
        """Rebase start and its descendants in topological order.

        Args:
            graph: Freshly built dependency graph
            start: First branch of the cascade
            options: Depth limit and failure/stash/dry-run behavior
            on_step: Called with (position, total, result) after each branch

        Returns:
            CascadeReport describing every branch in the cascade

        Raises:
            BranchNotFoundError: If start is not in the graph
            DetachedHeadError: If HEAD is detached and the run would move it
            RebaseFailedError: If a rebase fails for a reason other than conflicts
        """
        order = topological_order(graph, start, options.max_depth)
        logger.debug("Cascade from %s covers %d branches: %s", start, len(order), order)

        original = self._git.get_current_branch(self._repo_root)
        if original is None and not options.dry_run:
            raise DetachedHeadError("cascade")

        results: list[RebaseResult] = []
        failed: set[str] = set()
        moved: set[str] = set()
        halted_on: str | None = None
        conflict_pending = False
        stashed = False
        restored: str | None = None

        if options.autostash and not options.dry_run:
            stashed = self._git.stash_push(
                self._repo_root, f"twig: autostash before cascade from {start}"
            )

        try:
            for position, branch in enumerate(order, start=1):
                if halted_on is not None:
                    result = RebaseResult(
                        branch=branch,
                        onto=graph.primary_parent(branch),
                        outcome=RebaseOutcome.NOT_ATTEMPTED,
                        reason=f"cascade halted at '{halted_on}'",
                    )
                else:
                    result = self._visit(graph, branch, options, failed, moved)
                    if result.outcome == RebaseOutcome.CONFLICT:
                        failed.add(branch)
                        if options.continue_on_error:
                            self._engine.abort()
                            result = replace(result, reason="merge conflict (rebase aborted)")
                        else:
                            halted_on = branch
                            conflict_pending = True
                    elif result.outcome in (RebaseOutcome.REBASED, RebaseOutcome.PLANNED):
                        moved.add(branch)

                logger.debug("Cascade %s: %s", branch, result.outcome.value)
                results.append(result)
                if on_step is not None:
                    on_step(position, len(order), result)
        finally:
            if not options.dry_run and not conflict_pending:
                restored = self._restore(original)
                if stashed and not self._git.is_rebase_in_progress(self._repo_root):
                    self._git.stash_pop(self._repo_root)
                    stashed = False

        return CascadeReport(
            start=start,
            original_branch=original,
            results=tuple(results),
            halted_on=halted_on,
            restored_branch=restored,
            stash_pending=stashed,
            dry_run=options.dry_run,
        )

    def _visit(
        self,
        graph: BranchGraph,
        branch: str,
        options: CascadeOptions,
        failed: set[str],
        moved: set[str],
    ) -> RebaseResult:
        parent = graph.primary_parent(branch)
        if parent is None:
            return RebaseResult(
                branch=branch, onto=None, outcome=RebaseOutcome.SKIPPED, reason="no parent"
            )

        if any(p in failed for p in graph.parents(branch)):
            failed.add(branch)
            return RebaseResult(
                branch=branch,
                onto=parent,
                outcome=RebaseOutcome.SKIPPED,
                reason="parent could not be rebased",
            )

        if not graph.node(branch).is_live:
            failed.add(branch)
            return RebaseResult(
                branch=branch,
                onto=parent,
                outcome=RebaseOutcome.SKIPPED,
                reason="branch does not exist locally",
            )

        if not graph.node(parent).is_live:
            failed.add(branch)
            return RebaseResult(
                branch=branch,
                onto=parent,
                outcome=RebaseOutcome.SKIPPED,
                reason="parent does not exist locally",
            )

        if options.dry_run and parent in moved:
            # The parent will move first, so the up-to-date check cannot be trusted yet
            return RebaseResult(branch=branch, onto=parent, outcome=RebaseOutcome.PLANNED)

        return self._engine.rebase(
            branch,
            parent,
            force=options.force,
            autostash=False,
            dry_run=options.dry_run,
        )

    def _restore(self, original: str | None) -> str | None:
        if original is None:
            return None

        if self._git.is_rebase_in_progress(self._repo_root):
            logger.warning("Rebase in progress, not restoring %s", original)
            return None

        if self._git.get_current_branch(self._repo_root) != original:
            self._git.checkout_branch(self._repo_root, original)
        return original
