"""Branch dependency graph built from declarations and live branches.

The graph is a flat arena: every branch name maps to a dense integer index,
and the parent/child relationships are adjacency lists of indices. A graph
is built fresh for each command from the declaration store and the live set
of local branches, and is never patched in place after a mutation; callers
rebuild it instead.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from twig.core.errors import BranchNotFoundError
from twig.core.state.types import BranchMetadata, RepoState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchNode:
    """One branch in the dependency graph."""

    name: str
    is_live: bool
    is_current: bool
    is_root: bool
    is_default_root: bool
    metadata: BranchMetadata | None


class BranchGraph:
    """Read-only view of the declared dependency graph.

    Parents of a node are kept in declaration order, so the first parent is
    the primary parent used for rebasing. Children are kept in declaration
    order as well; consumers that need a stable traversal sort them.
    """

    def __init__(
        self,
        nodes: list[BranchNode],
        edges: list[tuple[int, int]],
        root_order: list[int],
        *,
        implied_edges: list[tuple[str, str]] | None = None,
        diagnostics: list[str] | None = None,
    ) -> None:
        self._nodes = nodes
        self._index = {node.name: i for i, node in enumerate(nodes)}
        self._children: list[list[int]] = [[] for _ in nodes]
        self._parents: list[list[int]] = [[] for _ in nodes]
        for parent, child in edges:
            if child not in self._children[parent]:
                self._children[parent].append(child)
            if parent not in self._parents[child]:
                self._parents[child].append(parent)
        self._root_order = root_order
        self.implied_edges = implied_edges if implied_edges is not None else []
        self.diagnostics = diagnostics if diagnostics is not None else []

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def names(self) -> list[str]:
        return [node.name for node in self._nodes]

    @property
    def nodes(self) -> list[BranchNode]:
        return list(self._nodes)

    def index_of(self, name: str) -> int:
        if name not in self._index:
            raise BranchNotFoundError(name)
        return self._index[name]

    def name_of(self, index: int) -> str:
        return self._nodes[index].name

    def node(self, name: str) -> BranchNode:
        return self._nodes[self.index_of(name)]

    def child_indices(self, index: int) -> list[int]:
        return self._children[index]

    def parent_indices(self, index: int) -> list[int]:
        return self._parents[index]

    def children(self, name: str) -> list[str]:
        return [self._nodes[i].name for i in self._children[self.index_of(name)]]

    def parents(self, name: str) -> list[str]:
        return [self._nodes[i].name for i in self._parents[self.index_of(name)]]

    def primary_parent(self, name: str) -> str | None:
        parents = self._parents[self.index_of(name)]
        if not parents:
            return None
        return self._nodes[parents[0]].name

    def edges(self) -> list[tuple[str, str]]:
        """All (parent, child) pairs, grouped by parent in node order."""
        return [
            (self._nodes[p].name, self._nodes[c].name)
            for p, children in enumerate(self._children)
            for c in children
        ]

    @property
    def roots(self) -> list[str]:
        """Declared roots in declaration order."""
        return [self._nodes[i].name for i in self._root_order]

    @property
    def default_root(self) -> str | None:
        for i in self._root_order:
            if self._nodes[i].is_default_root:
                return self._nodes[i].name
        return None

    @property
    def current_branch(self) -> str | None:
        for node in self._nodes:
            if node.is_current:
                return node.name
        return None

    def live_names(self) -> list[str]:
        return [node.name for node in self._nodes if node.is_live]


def build_branch_graph(
    state: RepoState,
    live_branches: Iterable[str],
    current_branch: str | None,
    *,
    attach_orphans: bool = False,
) -> BranchGraph:
    """Combine declarations with live branches into a BranchGraph.

    Every live branch gets a node, and so does every name referenced by an
    edge, a root designation or a metadata entry. Declared names without a
    live reference are kept but flagged non-live so eviction can still see
    them. Topology problems never fail the build.

    Args:
        state: Declarations loaded from the store
        live_branches: Names of existing local branches
        current_branch: Checked-out branch, or None for detached HEAD
        attach_orphans: Add implied edges from the default root to every
            orphan. Implied edges are for display and are never persisted.

    Returns:
        A freshly built BranchGraph
    """
    live = list(dict.fromkeys(live_branches))
    live_set = set(live)
    root_names = state.root_names()
    default_root = state.default_root()

    ordered_names: list[str] = list(live)
    seen = set(live)

    def _add(name: str) -> None:
        if name not in seen:
            seen.add(name)
            ordered_names.append(name)

    for name in root_names:
        _add(name)
    for dep in state.dependencies:
        _add(dep.parent)
        _add(dep.child)
    for name in state.branches:
        _add(name)

    nodes = [
        BranchNode(
            name=name,
            is_live=name in live_set,
            is_current=name == current_branch,
            is_root=name in root_names,
            is_default_root=name == default_root,
            metadata=state.branches.get(name),
        )
        for name in ordered_names
    ]
    index = {name: i for i, name in enumerate(ordered_names)}

    diagnostics: list[str] = []
    for dep in state.dependencies:
        for endpoint in (dep.parent, dep.child):
            if (
                endpoint not in live_set
                and endpoint not in state.branches
                and endpoint not in root_names
            ):
                message = (
                    f"Dependency '{dep.parent}' -> '{dep.child}' references "
                    f"'{endpoint}', which is neither a local branch nor tracked metadata"
                )
                if message not in diagnostics:
                    diagnostics.append(message)
                    logger.warning(message)

    edges = [(index[dep.parent], index[dep.child]) for dep in state.dependencies]
    root_order = [index[name] for name in root_names]

    implied: list[tuple[str, str]] = []
    if attach_orphans and default_root is not None:
        graph = BranchGraph(nodes, edges, root_order)
        from twig.core.topology import find_orphans

        for orphan in find_orphans(graph):
            if orphan != default_root and not graph.parents(orphan):
                implied.append((default_root, orphan))
        edges = edges + [(index[p], index[c]) for p, c in implied]
        logger.debug("Attached %d orphans to default root %s", len(implied), default_root)

    return BranchGraph(
        nodes,
        edges,
        root_order,
        implied_edges=implied,
        diagnostics=diagnostics,
    )
