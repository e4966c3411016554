"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import logging
import subprocess
from pathlib import Path

from twig.core.git.abc import Git, RebaseStepResult
from twig.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the repository."""
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        return Path(result.stdout.strip()).resolve()

    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        result = run_subprocess_with_context(
            ["git", "for-each-ref", "--format=%(refname:short)", "refs/heads/"],
            operation_context="list local branches",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if branch == "HEAD":
            return None

        return branch

    def get_branch_head(self, repo_root: Path, branch: str) -> str | None:
        """Get the commit SHA at the head of a branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        return result.stdout.strip()

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check ancestry with `git merge-base --is-ancestor`."""
        result = subprocess.run(
            ["git", "merge-base", "--is-ancestor", ancestor, descendant],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        # Exit code 0 means ancestor, 1 means not an ancestor, anything else is an error
        if result.returncode in (0, 1):
            return result.returncode == 0
        raise RuntimeError(
            f"Failed to check whether '{ancestor}' is an ancestor of '{descendant}'"
            f"\nExit code: {result.returncode}"
            f"\nstderr: {result.stderr.strip()}"
        )

    def count_commits_between(self, repo_root: Path, base: str, head: str) -> int:
        """Count commits in `base..head`."""
        result = run_subprocess_with_context(
            ["git", "rev-list", "--count", f"{base}..{head}"],
            operation_context=f"count commits between '{base}' and '{head}'",
            cwd=repo_root,
        )
        return int(result.stdout.strip())

    def has_uncommitted_changes(self, cwd: Path) -> bool:
        """Check if the working tree has uncommitted changes."""
        result = run_subprocess_with_context(
            ["git", "status", "--porcelain"],
            operation_context="check working tree status",
            cwd=cwd,
        )
        return bool(result.stdout.strip())

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Checkout a branch."""
        run_subprocess_with_context(
            ["git", "checkout", branch],
            operation_context=f"checkout branch '{branch}'",
            cwd=cwd,
        )

    def rebase_onto(self, cwd: Path, onto: str, *, force: bool) -> RebaseStepResult:
        """Run `git rebase [--force-rebase] <onto>` on the checked-out branch."""
        cmd = ["git", "rebase"]
        if force:
            cmd.append("--force-rebase")
        cmd.append(onto)

        logger.debug("Running: %s", " ".join(cmd))
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
        )
        output = (result.stdout + result.stderr).strip()

        if result.returncode == 0:
            return RebaseStepResult(
                success=True, has_conflicts=False, conflicted_files=(), output=output
            )

        conflicted = self._get_conflicted_files(cwd)
        has_conflicts = bool(conflicted) or "CONFLICT" in output
        return RebaseStepResult(
            success=False,
            has_conflicts=has_conflicts,
            conflicted_files=tuple(conflicted),
            output=output,
        )

    def _get_conflicted_files(self, cwd: Path) -> list[str]:
        result = subprocess.run(
            ["git", "diff", "--name-only", "--diff-filter=U"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def abort_rebase(self, cwd: Path) -> None:
        """Abort an in-progress rebase."""
        run_subprocess_with_context(
            ["git", "rebase", "--abort"],
            operation_context="abort rebase",
            cwd=cwd,
        )

    def is_rebase_in_progress(self, cwd: Path) -> bool:
        """Check for the rebase-merge or rebase-apply directory under the git dir."""
        result = subprocess.run(
            ["git", "rev-parse", "--git-dir"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return False

        git_dir = Path(result.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = cwd / git_dir

        return (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists()

    def stash_push(self, cwd: Path, message: str) -> bool:
        """Stash local changes, including untracked files."""
        if not self.has_uncommitted_changes(cwd):
            return False

        run_subprocess_with_context(
            ["git", "stash", "push", "--include-untracked", "-m", message],
            operation_context="stash local changes",
            cwd=cwd,
        )
        return True

    def stash_pop(self, cwd: Path) -> None:
        """Restore the most recent stash entry."""
        run_subprocess_with_context(
            ["git", "stash", "pop"],
            operation_context="restore stashed changes",
            cwd=cwd,
        )

    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch."""
        flag = "-D" if force else "-d"
        run_subprocess_with_context(
            ["git", "branch", flag, branch],
            operation_context=f"delete branch '{branch}'",
            cwd=repo_root,
        )
