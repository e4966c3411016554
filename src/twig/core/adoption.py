"""Adoption of orphaned branches.

Builds a plan that attaches every orphan to a parent, then applies it
through the normal declaration path so cycle checks still run.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from twig.core.declarations import add_dependency
from twig.core.errors import BranchNotFoundError, NoRootFoundError
from twig.core.graph import BranchGraph
from twig.core.state.types import RepoState
from twig.core.topology import find_orphans, suggest_parent

logger = logging.getLogger(__name__)


class AdoptionMode(Enum):
    AUTO = "auto"
    DEFAULT_ROOT = "default-root"
    BRANCH = "branch"


@dataclass(frozen=True)
class Adoption:
    child: str
    parent: str
    reason: str


def build_adoption_plan(
    graph: BranchGraph,
    mode: AdoptionMode,
    *,
    parent: str | None = None,
) -> list[Adoption]:
    """Plan a parent for every orphaned branch.

    Args:
        graph: Freshly built dependency graph
        mode: AUTO uses the suggested fallback parent, DEFAULT_ROOT requires a
            default root, BRANCH uses the explicit parent
        parent: Explicit parent for BRANCH mode

    Returns:
        One Adoption per orphan, sorted by child name. Orphans equal to the
        chosen parent are left out.

    Raises:
        NoRootFoundError: If DEFAULT_ROOT mode has no default root, or AUTO mode
            has nothing to suggest
        BranchNotFoundError: If the explicit parent is missing
        ValueError: If BRANCH mode is used without a parent
    """
    orphans = find_orphans(graph)
    if not orphans:
        return []

    if mode == AdoptionMode.BRANCH:
        if parent is None:
            raise ValueError("An explicit parent is required for branch mode")
        if parent not in graph or not graph.node(parent).is_live:
            raise BranchNotFoundError(parent)
        target = parent
        reason = "explicit parent"
    elif mode == AdoptionMode.DEFAULT_ROOT:
        default = graph.default_root
        if default is None:
            raise NoRootFoundError()
        target = default
        reason = "default root"
    else:
        suggested = suggest_parent(graph)
        if suggested is None:
            raise NoRootFoundError()
        target = suggested
        reason = "default root" if suggested == graph.default_root else "suggested parent"

    plan = [
        Adoption(child=orphan, parent=target, reason=reason)
        for orphan in orphans
        if orphan != target
    ]
    logger.debug("Adoption plan: %s", [(a.parent, a.child) for a in plan])
    return plan


def apply_adoption_plan(state: RepoState, plan: list[Adoption], *, now: datetime) -> RepoState:
    """Declare every planned edge.

    Raises:
        TopologyError: If any edge is rejected; no edge from the plan is kept
    """
    for adoption in plan:
        state = add_dependency(state, child=adoption.child, parent=adoption.parent, now=now)
    return state
