"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
rebase engine and cascade scheduler testable without a real repository.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit: In-memory implementation for tests
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RebaseStepResult:
    """Outcome of a single `git rebase` invocation."""

    success: bool
    has_conflicts: bool
    conflicted_files: tuple[str, ...]
    output: str


# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository containing cwd.

        Returns:
            Repository root, or None if cwd is not inside a git repository
        """
        ...

    @abstractmethod
    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None for detached HEAD."""
        ...

    @abstractmethod
    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        """Get the commit SHA at the tip of a branch, or None if it does not exist."""
        ...

    @abstractmethod
    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check whether ancestor is reachable from descendant."""
        ...

    @abstractmethod
    def count_commits_between(self, repo_root: Path, base: str, head: str) -> int:
        """Count commits reachable from head but not from base (`base..head`)."""
        ...

    @abstractmethod
    def has_uncommitted_changes(self, cwd: Path) -> bool:
        """Check for staged, unstaged or untracked changes."""
        ...

    @abstractmethod
    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch."""
        ...

    @abstractmethod
    def rebase_onto(self, cwd: Path, onto: str, *, force: bool) -> RebaseStepResult:
        """Rebase the checked-out branch onto another ref.

        A conflict leaves the repository mid-rebase and is reported in the
        result rather than raised.

        Args:
            cwd: Working directory of the repository
            onto: Ref to rebase onto
            force: Pass --force-rebase so commits are replayed even when the
                branch is already based on onto
        """
        ...

    @abstractmethod
    def abort_rebase(self, cwd: Path) -> None:
        """Abort an in-progress rebase."""
        ...

    @abstractmethod
    def is_rebase_in_progress(self, cwd: Path) -> bool:
        """Check whether a rebase is waiting for conflict resolution."""
        ...

    @abstractmethod
    def stash_push(self, cwd: Path, message: str) -> bool:
        """Stash local changes, including untracked files.

        Returns:
            True if a stash entry was created, False if there was nothing to stash
        """
        ...

    @abstractmethod
    def stash_pop(self, cwd: Path) -> None:
        """Restore the most recent stash entry."""
        ...

    @abstractmethod
    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch."""
        ...
