"""Declaration store data types.

A RepoState is the in-memory form of one repository's `.twig/state.json`:
the user-declared dependency edges, the root branch designations and the
per-branch metadata. It is an immutable value; declaration operations return
a new RepoState instead of modifying one in place.
"""

from dataclasses import dataclass, field
from typing import Any

STATE_VERSION = 1


@dataclass(frozen=True)
class BranchMetadata:
    """External references linked to a branch.

    The issue key and pull request number are opaque to the graph core.
    """

    branch: str
    jira_issue: str | None
    github_pr: int | None
    created_at: str  # ISO 8601


@dataclass(frozen=True)
class DependencyEdge:
    """A declared parent -> child relationship between two branches."""

    id: str
    parent: str
    child: str
    created_at: str  # ISO 8601


@dataclass(frozen=True)
class RootBranch:
    """A branch that needs no parent. At most one root is the default."""

    id: str
    branch: str
    is_default: bool
    created_at: str  # ISO 8601


@dataclass(frozen=True)
class RepoState:
    """All declarations for one repository.

    `extra` holds top-level keys of the state file that twig does not
    interpret; they are written back unchanged.
    """

    version: int = STATE_VERSION
    updated_at: str | None = None
    branches: dict[str, BranchMetadata] = field(default_factory=dict)
    dependencies: tuple[DependencyEdge, ...] = ()
    root_branches: tuple[RootBranch, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def has_dependency(self, parent: str, child: str) -> bool:
        return any(d.parent == parent and d.child == child for d in self.dependencies)

    def parents_of(self, child: str) -> list[str]:
        """Declared parents of a branch, in declaration order."""
        return [d.parent for d in self.dependencies if d.child == child]

    def children_of(self, parent: str) -> list[str]:
        """Declared children of a branch, in declaration order."""
        return [d.child for d in self.dependencies if d.parent == parent]

    def root_names(self) -> list[str]:
        return [r.branch for r in self.root_branches]

    def is_root(self, branch: str) -> bool:
        return any(r.branch == branch for r in self.root_branches)

    def default_root(self) -> str | None:
        for root in self.root_branches:
            if root.is_default:
                return root.branch
        return None

    def get_metadata(self, branch: str) -> BranchMetadata | None:
        return self.branches.get(branch)
