"""Adopt orphaned branches under a parent."""

import click

from twig.cli.core import load_repo_view
from twig.cli.ensure import Ensure
from twig.cli.output import user_output
from twig.core.adoption import AdoptionMode, apply_adoption_plan, build_adoption_plan
from twig.core.context import TwigContext
from twig.core.graph import build_branch_graph
from twig.core.topology import resolve_root
from twig.core.tree_render import format_graph_as_tree


@click.command("adopt")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in AdoptionMode]),
    default=AdoptionMode.AUTO.value,
    show_default=True,
    help="How to choose the parent for orphaned branches.",
)
@click.option("--parent", help="Parent to use with --mode branch.")
@click.option("-y", "--yes", is_flag=True, help="Apply without asking for confirmation.")
@click.pass_obj
def adopt_cmd(ctx: TwigContext, mode: str, parent: str | None, yes: bool) -> None:
    """Attach every orphaned branch to a parent.

    Orphans are local branches with no declared path to a root. In auto mode
    the parent is the default root, or a conventional trunk such as main.
    """
    adoption_mode = AdoptionMode(mode)
    Ensure.invariant(
        adoption_mode != AdoptionMode.BRANCH or parent is not None,
        "--mode branch requires --parent",
    )

    view = load_repo_view(ctx)
    with Ensure.no_errors():
        plan = build_adoption_plan(view.graph, adoption_mode, parent=parent)

    if not plan:
        user_output("No orphaned branches")
        return

    user_output(f"Adopting {len(plan)} branch(es):")
    for adoption in plan:
        user_output(
            f"  {click.style(adoption.child, fg='yellow')} -> {adoption.parent} ({adoption.reason})"
        )

    with Ensure.no_errors():
        state = apply_adoption_plan(view.state, plan, now=ctx.time.now())
        preview = build_branch_graph(
            state,
            view.graph.live_names(),
            view.graph.current_branch,
        )
        roots = preview.roots or [resolve_root(preview)]

    user_output()
    user_output(format_graph_as_tree(preview, roots))
    user_output()

    if not yes and not click.confirm("Apply these dependencies?", default=False):
        user_output(click.style("⭕ Aborted", fg="yellow"))
        return

    with Ensure.no_errors():
        ctx.state_store.save(view.root, state)
    user_output(click.style(f"✅ Adopted {len(plan)} branch(es)", fg="green"))
