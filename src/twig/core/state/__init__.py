from twig.core.state.store import JsonStateStore, StateStore
from twig.core.state.types import BranchMetadata, DependencyEdge, RepoState, RootBranch

__all__ = [
    "BranchMetadata",
    "DependencyEdge",
    "JsonStateStore",
    "RepoState",
    "RootBranch",
    "StateStore",
]
