"""Eviction of stale declarations.

A declaration is stale when the branch it describes no longer exists
locally. Roots are exempt: a root designation survives even when the branch
is absent, since it is usually a trunk that will be fetched again.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from twig.core.state.types import DependencyEdge, RepoState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvictionResult:
    state: RepoState
    removed_metadata: tuple[str, ...]
    removed_edges: tuple[DependencyEdge, ...]

    @property
    def changed(self) -> bool:
        return bool(self.removed_metadata or self.removed_edges)


def evict_stale_branches(state: RepoState, live_branches: Iterable[str]) -> EvictionResult:
    """Drop metadata and edges for branches that are neither live nor roots.

    An edge is removed when its child is stale. Running this twice with the
    same live set removes nothing the second time.
    """
    keep = set(live_branches) | set(state.root_names())

    removed_metadata = tuple(sorted(name for name in state.branches if name not in keep))
    removed_edges = tuple(d for d in state.dependencies if d.child not in keep)

    if not removed_metadata and not removed_edges:
        return EvictionResult(state=state, removed_metadata=(), removed_edges=())

    for name in removed_metadata:
        logger.debug("Evicting metadata for %s", name)
    for edge in removed_edges:
        logger.debug("Evicting dependency %s -> %s", edge.parent, edge.child)

    branches = {name: meta for name, meta in state.branches.items() if name in keep}
    dependencies = tuple(d for d in state.dependencies if d.child in keep)
    return EvictionResult(
        state=replace(state, branches=branches, dependencies=dependencies),
        removed_metadata=removed_metadata,
        removed_edges=removed_edges,
    )
