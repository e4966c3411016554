"""Display helpers shared by the rebase and cascade commands."""

import click

from twig.cli.output import user_output
from twig.core.graph import BranchGraph
from twig.core.rebase import RebaseResult
from twig.core.topology import find_orphans, resolve_root
from twig.core.tree_render import format_graph_as_tree


def print_graph(graph: BranchGraph) -> None:
    """Print the dependency tree from the resolved root, then any orphans."""
    roots = graph.roots
    if not roots:
        roots = [resolve_root(graph)]
    user_output(format_graph_as_tree(graph, roots))
    orphans = find_orphans(graph)
    if orphans:
        user_output(click.style(f"Orphaned: {', '.join(orphans)}", fg="bright_black"))
    user_output()


def report_conflict(result: RebaseResult) -> None:
    """Explain a conflict left pending and how to proceed."""
    branch_styled = click.style(result.branch, fg="yellow")
    user_output()
    user_output(f"{click.style('⚠️  ', fg='yellow')}Conflicts detected in branch: {branch_styled}")
    user_output()

    if result.conflicted_files:
        user_output(f"Conflicted files ({len(result.conflicted_files)}):")
        for f in result.conflicted_files:
            user_output(f"  - {f}")
        user_output()

    user_output("Resolve the conflicts, then run: git rebase --continue")
    user_output("To give up on this rebase: git rebase --abort")
    if result.previous_head:
        user_output(f"Previous tip of {result.branch}: {result.previous_head[:12]}")
