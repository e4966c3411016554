"""Detection of branches that can be deleted safely.

A branch is cleanable when it has no commits beyond its primary parent and
nothing below it carries work of its own: every live descendant also has no
commits beyond its parent, and none of them is checked out or a root. The
whole chain is then deleted together.

Aggressive cleanup also removes intermediate branches with no commits of
their own and exactly one child; that child is redeclared onto the
intermediate's parent so the tree stays connected.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from twig.core.declarations import add_dependency, remove_dependency
from twig.core.git.abc import Git
from twig.core.graph import BranchGraph
from twig.core.state.types import RepoState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanableBranch:
    branch: str
    parent: str


@dataclass(frozen=True)
class Reparenting:
    child: str
    old_parent: str
    new_parent: str


@dataclass(frozen=True)
class CleanupPlan:
    """Branches to delete, and the edges to redeclare once they are gone."""

    deletions: tuple[CleanableBranch, ...]
    reparentings: tuple[Reparenting, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.deletions


class _Inspector:
    """Caches commit counts so each (parent, child) pair is asked once."""

    def __init__(self, graph: BranchGraph, git: Git, repo_root: Path) -> None:
        self._graph = graph
        self._git = git
        self._repo_root = repo_root
        self._empty: dict[tuple[str, str], bool] = {}
        self._disposable: dict[str, bool] = {}

    def has_no_commits_beyond(self, parent: str, branch: str) -> bool:
        key = (parent, branch)
        if key not in self._empty:
            unique = self._git.count_commits_between(self._repo_root, parent, branch)
            logger.debug("%s has %d commits beyond %s", branch, unique, parent)
            self._empty[key] = unique == 0
        return self._empty[key]

    def live_children(self, name: str) -> list[str]:
        return [c for c in self._graph.children(name) if self._graph.node(c).is_live]

    def live_primary_parent(self, name: str) -> str | None:
        parent = self._graph.primary_parent(name)
        if parent is None or not self._graph.node(parent).is_live:
            return None
        return parent

    def is_empty_branch(self, name: str) -> bool:
        """Live, not checked out, not a root, and nothing beyond its live parent."""
        node = self._graph.node(name)
        if not node.is_live or node.is_current or node.is_root:
            return False
        parent = self.live_primary_parent(name)
        return parent is not None and self.has_no_commits_beyond(parent, name)

    def subtree_is_disposable(self, name: str) -> bool:
        if name not in self._disposable:
            # Guards declared cycles
            self._disposable[name] = False
            self._disposable[name] = all(
                not self._graph.node(child).is_current
                and not self._graph.node(child).is_root
                and self.has_no_commits_beyond(name, child)
                and self.subtree_is_disposable(child)
                for child in self.live_children(name)
            )
        return self._disposable[name]


def find_cleanable_branches(graph: BranchGraph, git: Git, repo_root: Path) -> list[CleanableBranch]:
    """Find branches whose work, and their descendants' work, is already in their parent.

    Returns:
        Cleanable branches sorted by name, each with its primary parent
    """
    inspector = _Inspector(graph, git, repo_root)
    return _find_cleanable(graph, inspector)


def _find_cleanable(graph: BranchGraph, inspector: _Inspector) -> list[CleanableBranch]:
    selected: set[str] = set()
    for node in graph.nodes:
        if node.name in selected:
            continue
        if not inspector.is_empty_branch(node.name):
            continue
        if not inspector.subtree_is_disposable(node.name):
            continue

        pending = [node.name]
        while pending:
            name = pending.pop()
            if name not in selected:
                selected.add(name)
                pending.extend(inspector.live_children(name))

    cleanable = []
    for name in sorted(selected):
        parent = graph.primary_parent(name)
        assert parent is not None
        cleanable.append(CleanableBranch(branch=name, parent=parent))
    return cleanable


def plan_cleanup(
    graph: BranchGraph,
    git: Git,
    repo_root: Path,
    *,
    aggressive: bool = False,
) -> CleanupPlan:
    """Plan which branches to delete and, when aggressive, which edges to move.

    Args:
        graph: Freshly built dependency graph
        git: Git gateway used to count commits
        repo_root: Repository to inspect
        aggressive: Also remove empty intermediates that have exactly one child

    Returns:
        CleanupPlan with deletions sorted by name
    """
    inspector = _Inspector(graph, git, repo_root)
    cleanable = _find_cleanable(graph, inspector)
    if not aggressive:
        return CleanupPlan(deletions=tuple(cleanable))

    removed = {item.branch for item in cleanable}
    intermediates: list[CleanableBranch] = []
    for node in graph.nodes:
        if node.name in removed or not inspector.is_empty_branch(node.name):
            continue
        children = inspector.live_children(node.name)
        if len(children) != 1 or children[0] in removed:
            continue
        parent = inspector.live_primary_parent(node.name)
        assert parent is not None
        intermediates.append(CleanableBranch(branch=node.name, parent=parent))

    removed.update(item.branch for item in intermediates)

    reparentings: list[Reparenting] = []
    for item in intermediates:
        (child,) = inspector.live_children(item.branch)
        if child in removed:
            continue
        new_parent = _surviving_ancestor(inspector, item.parent, removed)
        if new_parent is None:
            continue
        reparentings.append(Reparenting(child=child, old_parent=item.branch, new_parent=new_parent))

    deletions = sorted([*cleanable, *intermediates], key=lambda item: item.branch)
    return CleanupPlan(
        deletions=tuple(deletions),
        reparentings=tuple(sorted(reparentings, key=lambda r: r.child)),
    )


def _surviving_ancestor(inspector: _Inspector, start: str, removed: set[str]) -> str | None:
    seen: set[str] = set()
    current: str | None = start
    while current is not None and current in removed:
        if current in seen:
            return None
        seen.add(current)
        current = inspector.live_primary_parent(current)
    return current


def apply_reparentings(
    state: RepoState,
    reparentings: Iterable[Reparenting],
    *,
    now: datetime,
) -> RepoState:
    """Move each child's edge from its old parent to its new parent.

    Raises:
        DependencyNotFoundError: If an old edge is no longer declared
        CycleError: If a new edge would close a cycle
    """
    for item in reparentings:
        state = remove_dependency(state, child=item.child, parent=item.old_parent)
        if not state.has_dependency(item.new_parent, item.child):
            state = add_dependency(state, child=item.child, parent=item.new_parent, now=now)
    return state
