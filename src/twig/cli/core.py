"""Shared helpers for commands that operate on one repository."""

from dataclasses import dataclass
from pathlib import Path

from twig.cli.ensure import Ensure
from twig.core.context import TwigContext
from twig.core.graph import BranchGraph, build_branch_graph
from twig.core.state.types import RepoState


@dataclass(frozen=True)
class RepoView:
    """Declarations and the graph built from them for one command run."""

    root: Path
    state: RepoState
    graph: BranchGraph


def discover_repo_root(ctx: TwigContext) -> Path:
    """Find the repository for this invocation, honoring `--repo`."""
    start = ctx.repo_override if ctx.repo_override is not None else ctx.cwd
    return Ensure.not_none(
        ctx.git.get_repository_root(start),
        f"Not inside a git repository: {start}",
    )


def load_repo_view(
    ctx: TwigContext,
    *,
    attach_orphans: bool = False,
    repo_root: Path | None = None,
) -> RepoView:
    """Load declarations and build a fresh graph against the live branch set."""
    root = repo_root if repo_root is not None else discover_repo_root(ctx)
    with Ensure.no_errors():
        state = ctx.state_store.load(root)
        graph = build_branch_graph(
            state,
            ctx.git.list_local_branches(root),
            ctx.git.get_current_branch(root),
            attach_orphans=attach_orphans,
        )
    return RepoView(root=root, state=state, graph=graph)
