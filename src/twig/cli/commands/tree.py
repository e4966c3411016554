"""Tree visualization command for the branch dependency graph."""

import click

from twig.cli.core import load_repo_view
from twig.cli.ensure import Ensure
from twig.cli.output import machine_output, user_output
from twig.core.context import TwigContext
from twig.core.topology import find_orphans, resolve_root
from twig.core.tree_render import format_graph_as_tree


@click.command("tree")
@click.option("--root", "root_override", help="Only show this branch and its descendants.")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Levels to show.")
@click.option(
    "--attach-orphans",
    is_flag=True,
    help="Draw orphaned branches under the default root.",
)
@click.pass_obj
def tree_cmd(
    ctx: TwigContext,
    root_override: str | None,
    max_depth: int | None,
    attach_orphans: bool,
) -> None:
    """Display the declared branch dependency tree.

    Example:
        $ twig tree
        main
        ├─ feat/a [PROJ-1]
        │  └─ feat/b (current)
        └─ feat/c

    Legend:
        [KEY, #N] = linked issue and pull request
        (current) = checked-out branch
        (missing) = declared but no longer exists locally
        (see above) = reached through more than one parent
    """
    view = load_repo_view(ctx, attach_orphans=attach_orphans or ctx.global_config.attach_orphans)
    graph = view.graph

    for message in graph.diagnostics:
        user_output(click.style("Warning: ", fg="yellow") + message)

    if root_override is not None:
        Ensure.invariant(root_override in graph, f"Branch '{root_override}' not found")
        roots = [root_override]
    elif graph.roots:
        roots = graph.roots
    else:
        with Ensure.no_errors():
            roots = [resolve_root(graph)]

    machine_output(format_graph_as_tree(graph, roots, max_depth=max_depth))

    orphans = [o for o in find_orphans(graph) if o not in roots]
    if orphans and root_override is None:
        user_output()
        user_output(click.style("Orphaned branches (no path to a root):", bold=True))
        for orphan in orphans:
            user_output(f"  {orphan}")
        user_output("Attach them with: twig adopt")
