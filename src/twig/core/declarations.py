"""Declaration operations on RepoState.

Each operation validates against the current declarations and returns a new
RepoState. Nothing here touches storage: callers save the returned state only
after the operation succeeded, so a rejected change never reaches disk.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime

from twig.core.errors import (
    BranchNotFoundError,
    CycleError,
    DependencyNotFoundError,
    DuplicateDependencyError,
    SelfDependencyError,
)
from twig.core.graph import build_branch_graph
from twig.core.state.types import BranchMetadata, DependencyEdge, RepoState, RootBranch
from twig.core.topology import find_cycle_path

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def add_dependency(state: RepoState, *, child: str, parent: str, now: datetime) -> RepoState:
    """Declare that child depends on parent.

    Raises:
        SelfDependencyError: If child and parent are the same branch
        DuplicateDependencyError: If the edge is already declared
        CycleError: If the edge would close a cycle
    """
    if child == parent:
        raise SelfDependencyError(child)

    if state.has_dependency(parent, child):
        raise DuplicateDependencyError(parent, child)

    # Only declared edges matter for reachability, so no live set is needed
    graph = build_branch_graph(state, [], None)
    cycle = find_cycle_path(graph, parent=parent, child=child)
    if cycle is not None:
        raise CycleError(parent, child, cycle)

    edge = DependencyEdge(
        id=_new_id(),
        parent=parent,
        child=child,
        created_at=now.isoformat(),
    )
    logger.debug("Adding dependency %s -> %s", parent, child)
    return replace(state, dependencies=(*state.dependencies, edge))


def remove_dependency(state: RepoState, *, child: str, parent: str) -> RepoState:
    """Remove a declared edge.

    Raises:
        DependencyNotFoundError: If the edge is not declared
    """
    if not state.has_dependency(parent, child):
        raise DependencyNotFoundError(parent, child)

    kept = tuple(d for d in state.dependencies if not (d.parent == parent and d.child == child))
    logger.debug("Removing dependency %s -> %s", parent, child)
    return replace(state, dependencies=kept)


def add_root(state: RepoState, branch: str, *, is_default: bool, now: datetime) -> RepoState:
    """Designate a branch as a root, optionally the default one.

    Adding an existing root is a no-op unless it asks to become the default.
    """
    if state.is_root(branch):
        if is_default:
            return set_default_root(state, branch)
        return state

    roots = state.root_branches
    if is_default:
        roots = tuple(replace(r, is_default=False) for r in roots)

    root = RootBranch(
        id=_new_id(),
        branch=branch,
        is_default=is_default,
        created_at=now.isoformat(),
    )
    return replace(state, root_branches=(*roots, root))


def remove_root(state: RepoState, branch: str) -> RepoState:
    """Drop a root designation. Edges involving the branch are kept.

    Raises:
        BranchNotFoundError: If the branch is not a root
    """
    if not state.is_root(branch):
        raise BranchNotFoundError(branch, "not a root branch")

    kept = tuple(r for r in state.root_branches if r.branch != branch)
    return replace(state, root_branches=kept)


def set_default_root(state: RepoState, branch: str) -> RepoState:
    """Make an existing root the default, clearing the flag everywhere else.

    Raises:
        BranchNotFoundError: If the branch is not a root
    """
    if not state.is_root(branch):
        raise BranchNotFoundError(branch, "not a root branch")

    roots = tuple(replace(r, is_default=r.branch == branch) for r in state.root_branches)
    return replace(state, root_branches=roots)


def link_branch(
    state: RepoState,
    branch: str,
    *,
    jira_issue: str | None,
    github_pr: int | None,
    now: datetime,
) -> RepoState:
    """Record external references for a branch.

    A None argument keeps the existing value for that field.
    """
    existing = state.branches.get(branch)
    if existing is None:
        meta = BranchMetadata(
            branch=branch,
            jira_issue=jira_issue,
            github_pr=github_pr,
            created_at=now.isoformat(),
        )
    else:
        meta = replace(
            existing,
            jira_issue=jira_issue if jira_issue is not None else existing.jira_issue,
            github_pr=github_pr if github_pr is not None else existing.github_pr,
        )

    branches = dict(state.branches)
    branches[branch] = meta
    return replace(state, branches=branches)
