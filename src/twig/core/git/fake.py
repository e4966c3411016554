"""Fake git operations for testing.

FakeGit is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

from pathlib import Path

from twig.core.git.abc import Git, RebaseStepResult


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults (empty collections).

    Mutating operations update the in-memory state the way git would: a
    checkout moves HEAD, a successful rebase makes the target an ancestor of
    the branch, and a conflicting rebase leaves a rebase in progress until
    abort_rebase() is called.
    """

    def __init__(
        self,
        *,
        repository_root: Path | None = None,
        local_branches: list[str] | None = None,
        current_branch: str | None = None,
        branch_heads: dict[str, str] | None = None,
        ancestors: set[tuple[str, str]] | None = None,
        commit_counts: dict[tuple[str, str], int] | None = None,
        dirty: bool = False,
        conflicting_branches: dict[str, list[str]] | None = None,
        failing_branches: dict[str, str] | None = None,
        rebase_in_progress: bool = False,
        undeletable_branches: set[str] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            repository_root: Root returned by get_repository_root (None = not a repo)
            local_branches: Names of local branches
            current_branch: Checked-out branch (None = detached HEAD)
            branch_heads: Mapping of branch name -> tip SHA
            ancestors: Set of (ancestor, descendant) pairs for is_ancestor
            commit_counts: Mapping of (base, head) -> commit count for `base..head`
            dirty: Whether the working tree has uncommitted changes
            conflicting_branches: Mapping of branch -> conflicted files; rebasing
                one of these branches stops with a conflict
            failing_branches: Mapping of branch -> git output; rebasing one of
                these branches fails without conflicts
            rebase_in_progress: Whether a rebase is already stopped on a conflict
            undeletable_branches: Branches that delete_branch refuses to delete
        """
        self._repository_root = repository_root
        self._local_branches = list(local_branches) if local_branches is not None else []
        self._current_branch = current_branch
        self._branch_heads = dict(branch_heads) if branch_heads is not None else {}
        self._ancestors = set(ancestors) if ancestors is not None else set()
        self._commit_counts = dict(commit_counts) if commit_counts is not None else {}
        self._dirty = dirty
        self._conflicting_branches = (
            dict(conflicting_branches) if conflicting_branches is not None else {}
        )
        self._failing_branches = dict(failing_branches) if failing_branches is not None else {}
        self._rebase_in_progress = rebase_in_progress
        self._undeletable_branches = (
            set(undeletable_branches) if undeletable_branches is not None else set()
        )
        self._stash: list[str] = []

        self._checkout_calls: list[str] = []
        self._rebase_calls: list[tuple[str, str, bool]] = []
        self._stash_calls: list[str] = []
        self._abort_calls = 0
        self._deleted_branches: list[str] = []

    def get_repository_root(self, cwd: Path) -> Path | None:
        return self._repository_root

    def list_local_branches(self, repo_root: Path) -> list[str]:
        return list(self._local_branches)

    def get_current_branch(self, cwd: Path) -> str | None:
        return self._current_branch

    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        return self._branch_heads.get(branch)

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        return (ancestor, descendant) in self._ancestors

    def count_commits_between(self, repo_root: Path, base: str, head: str) -> int:
        return self._commit_counts.get((base, head), 0)

    def has_uncommitted_changes(self, cwd: Path) -> bool:
        return self._dirty

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        if self._rebase_in_progress:
            raise RuntimeError(f"Failed to checkout branch '{branch}': rebase in progress")
        if branch not in self._local_branches:
            raise RuntimeError(f"Failed to checkout branch '{branch}': no such branch")
        self._checkout_calls.append(branch)
        self._current_branch = branch

    def rebase_onto(self, cwd: Path, onto: str, *, force: bool) -> RebaseStepResult:
        branch = self._current_branch
        if branch is None:
            raise RuntimeError("Failed to rebase: HEAD is detached")
        self._rebase_calls.append((branch, onto, force))

        if branch in self._conflicting_branches:
            files = tuple(self._conflicting_branches[branch])
            self._rebase_in_progress = True
            return RebaseStepResult(
                success=False,
                has_conflicts=True,
                conflicted_files=files,
                output=f"CONFLICT (content): Merge conflict while rebasing {branch}",
            )

        if branch in self._failing_branches:
            return RebaseStepResult(
                success=False,
                has_conflicts=False,
                conflicted_files=(),
                output=self._failing_branches[branch],
            )

        self._ancestors.add((onto, branch))
        return RebaseStepResult(success=True, has_conflicts=False, conflicted_files=(), output="")

    def abort_rebase(self, cwd: Path) -> None:
        self._abort_calls += 1
        self._rebase_in_progress = False

    def is_rebase_in_progress(self, cwd: Path) -> bool:
        return self._rebase_in_progress

    def stash_push(self, cwd: Path, message: str) -> bool:
        self._stash_calls.append("push")
        if not self._dirty:
            return False
        self._stash.append(message)
        self._dirty = False
        return True

    def stash_pop(self, cwd: Path) -> None:
        self._stash_calls.append("pop")
        if not self._stash:
            raise RuntimeError("Failed to restore stashed changes: no stash entries found")
        self._stash.pop()
        self._dirty = True

    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        if branch not in self._local_branches:
            raise RuntimeError(f"Failed to delete branch '{branch}': no such branch")
        if branch in self._undeletable_branches:
            raise RuntimeError(f"Failed to delete branch '{branch}': branch is locked")
        self._local_branches.remove(branch)
        self._deleted_branches.append(branch)

    @property
    def checkout_calls(self) -> list[str]:
        """Branches checked out, in call order.

        This property is for test assertions only.
        """
        return self._checkout_calls

    @property
    def rebase_calls(self) -> list[tuple[str, str, bool]]:
        """(branch, onto, force) for every rebase_onto() call.

        This property is for test assertions only.
        """
        return self._rebase_calls

    @property
    def stash_calls(self) -> list[str]:
        """Stash operations ("push" or "pop") in call order.

        This property is for test assertions only.
        """
        return self._stash_calls

    @property
    def abort_calls(self) -> int:
        """Number of abort_rebase() calls.

        This property is for test assertions only.
        """
        return self._abort_calls

    @property
    def deleted_branches(self) -> list[str]:
        """Branches removed via delete_branch().

        This property is for test assertions only.
        """
        return self._deleted_branches

    @property
    def stash_entries(self) -> list[str]:
        """Messages of stash entries still held.

        This property is for test assertions only.
        """
        return list(self._stash)
