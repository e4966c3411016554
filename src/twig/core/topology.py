"""Topology analysis over a BranchGraph.

Cycle prevention, orphan and diamond detection, root resolution and the
topological ordering used by cascades. All functions are pure: they read a
graph and return values, and they never touch git or the declaration store.
"""

import heapq
import logging
from collections import deque
from dataclasses import dataclass

from twig.core.errors import BranchNotFoundError, NoParentError, NoRootFoundError
from twig.core.graph import BranchGraph

logger = logging.getLogger(__name__)

# Fallback parents offered to orphaned branches, in preference order
COMMON_ROOT_NAMES = ("main", "master", "develop", "dev")


@dataclass(frozen=True)
class DiamondPattern:
    """A branch reached through two or more declared parents.

    common_ancestors lists branches that are ancestors (or are themselves)
    of at least two of the parents. It is empty when the parent lines only
    meet at different roots.
    """

    merge_point: str
    parents: tuple[str, ...]
    common_ancestors: tuple[str, ...]


def find_cycle_path(graph: BranchGraph, *, parent: str, child: str) -> list[str] | None:
    """Return the cycle that adding parent -> child would close, if any.

    Searches from the proposed child down through existing children. If the
    proposed parent is reachable, the new edge would close a cycle.

    Returns:
        The cycle as [parent, child, ..., parent], or None when the edge is safe
    """
    if parent == child:
        return [parent, child]
    if parent not in graph or child not in graph:
        return None

    start = graph.index_of(child)
    target = graph.index_of(parent)
    previous: dict[int, int | None] = {start: None}
    queue = deque([start])

    while queue:
        current = queue.popleft()
        if current == target:
            path: list[str] = []
            step: int | None = current
            while step is not None:
                path.append(graph.name_of(step))
                step = previous[step]
            path.reverse()
            return [parent, *path]
        for nxt in graph.child_indices(current):
            if nxt not in previous:
                previous[nxt] = current
                queue.append(nxt)

    return None


def has_cycle(graph: BranchGraph) -> bool:
    """Check whether the declared edges already contain a cycle."""
    return any(_reaches(graph, child, parent) for parent, child in graph.edges())


def _reaches(graph: BranchGraph, start: str, target: str) -> bool:
    seen = {graph.index_of(start)}
    queue = deque(seen)
    goal = graph.index_of(target)
    while queue:
        current = queue.popleft()
        if current == goal:
            return True
        for nxt in graph.child_indices(current):
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return False


def reachable_from_roots(graph: BranchGraph) -> set[str]:
    """Names of every branch with a declared path from some root (roots included)."""
    visited: set[int] = set()
    queue: deque[int] = deque()
    for root in graph.roots:
        i = graph.index_of(root)
        if i not in visited:
            visited.add(i)
            queue.append(i)

    while queue:
        current = queue.popleft()
        for nxt in graph.child_indices(current):
            if nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)

    return {graph.name_of(i) for i in visited}


def find_orphans(graph: BranchGraph) -> list[str]:
    """Live branches with no declared path to any root, sorted by name."""
    connected = reachable_from_roots(graph)
    return sorted(
        node.name
        for node in graph.nodes
        if node.is_live and not node.is_root and node.name not in connected
    )


def ancestors(graph: BranchGraph, branch: str) -> set[str]:
    """All declared ancestors of a branch (excluding the branch itself)."""
    start = graph.index_of(branch)
    seen: set[int] = set()
    stack = list(graph.parent_indices(start))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        stack.extend(graph.parent_indices(current))
    return {graph.name_of(i) for i in seen}


def is_diamond(graph: BranchGraph, branch: str) -> bool:
    """A branch with two or more declared parents is a diamond merge point."""
    return len(graph.parents(branch)) >= 2


def find_diamonds(graph: BranchGraph) -> list[DiamondPattern]:
    """Detect every diamond merge point, sorted by merge point name."""
    patterns: list[DiamondPattern] = []
    for name in sorted(graph.names):
        parents = graph.parents(name)
        if len(parents) < 2:
            continue

        lines = [ancestors(graph, p) | {p} for p in parents]
        common: set[str] = set()
        for i in range(len(lines)):
            for j in range(i + 1, len(lines)):
                common |= lines[i] & lines[j]

        patterns.append(
            DiamondPattern(
                merge_point=name,
                parents=tuple(parents),
                common_ancestors=tuple(sorted(common)),
            )
        )

    if patterns:
        logger.debug("Diamond merge points: %s", [p.merge_point for p in patterns])
    return patterns


def resolve_root(graph: BranchGraph, override: str | None = None) -> str:
    """Select the root for rendering or operations.

    Priority: explicit override, default root, first declared root, then the
    checked-out branch.

    Raises:
        BranchNotFoundError: If the override is not in the graph
        NoRootFoundError: If no candidate exists
    """
    if override is not None:
        if override not in graph:
            raise BranchNotFoundError(override)
        return override

    default = graph.default_root
    if default is not None:
        return default

    roots = graph.roots
    if roots:
        return roots[0]

    current = graph.current_branch
    if current is not None:
        return current

    raise NoRootFoundError()


def walk_to_root(graph: BranchGraph, branch: str) -> str:
    """Follow primary parents from a branch up to its topmost ancestor.

    Raises:
        NoParentError: If the branch has no declared parent
    """
    if branch not in graph or graph.primary_parent(branch) is None:
        raise NoParentError(branch)

    seen = {branch}
    current = branch
    while True:
        parent = graph.primary_parent(current)
        if parent is None or parent in seen:
            return current
        seen.add(parent)
        current = parent


def collect_descendants(
    graph: BranchGraph, start: str, max_depth: int | None = None
) -> dict[str, int]:
    """Map every descendant of start to its BFS depth (start itself is 0).

    Branches deeper than max_depth are left out.
    """
    start_index = graph.index_of(start)
    depths = {start_index: 0}
    queue = deque([start_index])

    while queue:
        current = queue.popleft()
        depth = depths[current]
        if max_depth is not None and depth >= max_depth:
            continue
        for nxt in graph.child_indices(current):
            if nxt not in depths:
                depths[nxt] = depth + 1
                queue.append(nxt)

    return {graph.name_of(i): d for i, d in depths.items()}


def topological_order(
    graph: BranchGraph, start: str, max_depth: int | None = None
) -> list[str]:
    """Order start and its descendants so every branch follows its ancestors.

    Branches are emitted by (longest distance from start, name), which keeps
    siblings at the same level in lexicographic order and makes repeated runs
    reproducible.
    """
    members = collect_descendants(graph, start, max_depth)
    member_idx = {graph.index_of(name) for name in members}
    start_index = graph.index_of(start)

    remaining = {
        i: sum(1 for p in graph.parent_indices(i) if p in member_idx)
        for i in member_idx
        if i != start_index
    }
    level = {start_index: 0}
    ready: list[tuple[int, str, int]] = [(0, start, start_index)]
    order: list[str] = []

    while ready:
        lvl, name, current = heapq.heappop(ready)
        order.append(name)
        for child in graph.child_indices(current):
            if child not in remaining:
                continue
            level[child] = max(level.get(child, 0), lvl + 1)
            remaining[child] -= 1
            if remaining[child] == 0:
                heapq.heappush(ready, (level[child], graph.name_of(child), child))

    if len(order) < len(members):
        # Only reachable when the stored edges already contain a cycle
        leftover = sorted(set(members) - set(order))
        logger.warning("Cycle among %s; appending in name order", leftover)
        order.extend(leftover)

    logger.debug("Topological order from %s: %s", start, order)
    return order


def suggest_parent(graph: BranchGraph) -> str | None:
    """Suggest a parent for orphaned branches.

    Priority: default root, a conventional trunk name that exists locally,
    the checked-out branch, then the first live branch by name.
    """
    default = graph.default_root
    if default is not None:
        return default

    live = set(graph.live_names())
    for candidate in COMMON_ROOT_NAMES:
        if candidate in live:
            return candidate

    current = graph.current_branch
    if current is not None:
        return current

    if live:
        return sorted(live)[0]
    return None
