"""Single-branch rebase engine.

Wraps the git gateway to rebase one branch onto another with an up-to-date
check, optional autostash and a dry-run mode. Merge conflicts are returned as
a CONFLICT result with the repository left mid-rebase; only failures that are
not conflicts raise.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from twig.core.errors import NoParentError, RebaseFailedError
from twig.core.git.abc import Git
from twig.core.graph import BranchGraph
from twig.core.topology import walk_to_root

logger = logging.getLogger(__name__)


class RebaseOutcome(Enum):
    REBASED = "rebased"
    SKIPPED = "skipped"
    CONFLICT = "conflict"
    PLANNED = "planned"
    NOT_ATTEMPTED = "not_attempted"


@dataclass(frozen=True)
class RebaseResult:
    """Result of rebasing (or planning to rebase) one branch."""

    branch: str
    onto: str | None
    outcome: RebaseOutcome
    reason: str | None = None
    conflicted_files: tuple[str, ...] = ()
    stash_pending: bool = False
    previous_head: str | None = None


class RebaseEngine:
    """Rebases one branch at a time through the git gateway."""

    def __init__(self, git: Git, repo_root: Path) -> None:
        self._git = git
        self._repo_root = repo_root

    def is_up_to_date(self, branch: str, onto: str) -> bool:
        return self._git.is_ancestor(self._repo_root, onto, branch)

    def rebase(
        self,
        branch: str,
        onto: str,
        *,
        force: bool = False,
        autostash: bool = False,
        dry_run: bool = False,
    ) -> RebaseResult:
        """Rebase branch onto another ref.

        Args:
            branch: Branch to rebase; it is checked out first if needed
            onto: Ref to rebase onto
            force: Rebase even when onto is already an ancestor of branch
            autostash: Stash uncommitted changes around the rebase
            dry_run: Report what would happen without touching the repository

        Returns:
            RebaseResult with outcome REBASED, SKIPPED, CONFLICT or PLANNED

        Raises:
            RebaseFailedError: If git fails for a reason other than conflicts
        """
        if not force and self.is_up_to_date(branch, onto):
            logger.debug("%s already contains %s, skipping", branch, onto)
            return RebaseResult(
                branch=branch,
                onto=onto,
                outcome=RebaseOutcome.SKIPPED,
                reason="already up to date",
            )

        if dry_run:
            return RebaseResult(branch=branch, onto=onto, outcome=RebaseOutcome.PLANNED)

        previous_head = self._git.get_branch_head(self._repo_root, branch)

        stashed = False
        if autostash:
            stashed = self._git.stash_push(
                self._repo_root, f"twig: autostash before rebasing {branch}"
            )

        if self._git.get_current_branch(self._repo_root) != branch:
            self._git.checkout_branch(self._repo_root, branch)

        logger.debug("Rebasing %s onto %s (force=%s)", branch, onto, force)
        step = self._git.rebase_onto(self._repo_root, onto, force=force)

        if step.success:
            if stashed:
                self._git.stash_pop(self._repo_root)
            return RebaseResult(
                branch=branch,
                onto=onto,
                outcome=RebaseOutcome.REBASED,
                previous_head=previous_head,
            )

        if step.has_conflicts:
            logger.debug("Conflict rebasing %s: %s", branch, list(step.conflicted_files))
            return RebaseResult(
                branch=branch,
                onto=onto,
                outcome=RebaseOutcome.CONFLICT,
                reason="merge conflict",
                conflicted_files=step.conflicted_files,
                stash_pending=stashed,
                previous_head=previous_head,
            )

        if stashed:
            self._git.stash_pop(self._repo_root)
        raise RebaseFailedError(branch, onto, step.output)

    def abort(self) -> None:
        """Abort the in-progress rebase, restoring the branch to its prior state."""
        self._git.abort_rebase(self._repo_root)


def resolve_rebase_target(
    graph: BranchGraph,
    branch: str,
    *,
    onto: str | None = None,
    to_root: bool = False,
) -> str:
    """Pick what a branch should be rebased onto.

    Priority: explicit override, the topmost ancestor when to_root is set,
    then the primary parent.

    Raises:
        NoParentError: If no override is given and the branch has no parent
    """
    if onto is not None:
        return onto

    if to_root:
        return walk_to_root(graph, branch)

    parent = graph.primary_parent(branch) if branch in graph else None
    if parent is None:
        raise NoParentError(branch)
    return parent
