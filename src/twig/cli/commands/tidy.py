"""Housekeeping commands for stale declarations and merged branches."""

import click

from twig.cli.core import RepoView, load_repo_view
from twig.cli.ensure import Ensure
from twig.cli.output import user_output
from twig.core.cleanup import CleanupPlan, apply_reparentings, plan_cleanup
from twig.core.context import TwigContext
from twig.core.eviction import EvictionResult, evict_stale_branches


def _show_eviction(result: EvictionResult) -> None:
    for name in result.removed_metadata:
        user_output(f"  - metadata for {name}")
    for edge in result.removed_edges:
        user_output(f"  - dependency {edge.parent} -> {edge.child}")


@click.group("tidy")
def tidy_group() -> None:
    """Clean up stale declarations and branches."""


@tidy_group.command("prune")
@click.option("--dry-run", is_flag=True, help="List what would be removed.")
@click.pass_obj
def prune_cmd(ctx: TwigContext, dry_run: bool) -> None:
    """Remove declarations for branches that no longer exist locally."""
    view = load_repo_view(ctx)
    result = evict_stale_branches(view.state, view.graph.live_names())

    if not result.changed:
        user_output("Nothing to prune")
        return

    user_output("Would remove:" if dry_run else "Removing:")
    _show_eviction(result)

    if dry_run:
        user_output(click.style("(dry run)", fg="bright_black"))
        return

    with Ensure.no_errors():
        ctx.state_store.save(view.root, result.state)
    user_output(click.style("✅ Pruned stale declarations", fg="green"))


def _forget_deleted(
    ctx: TwigContext,
    view: RepoView,
    plan: CleanupPlan,
    deleted: list[str],
) -> None:
    """Update declarations for the branches that were actually deleted."""
    reparentings = [r for r in plan.reparentings if r.old_parent in deleted]
    with Ensure.no_errors():
        state = apply_reparentings(view.state, reparentings, now=ctx.time.now())
        live = [name for name in view.graph.live_names() if name not in deleted]
        result = evict_stale_branches(state, live)
        if reparentings or result.changed:
            ctx.state_store.save(view.root, result.state)


@tidy_group.command("clean")
@click.option("--dry-run", is_flag=True, help="List branches that would be deleted.")
@click.option("-f", "--force", is_flag=True, help="Skip confirmation.")
@click.option(
    "-a",
    "--aggressive",
    is_flag=True,
    help="Also remove empty intermediate branches and reparent their child.",
)
@click.pass_obj
def clean_cmd(ctx: TwigContext, dry_run: bool, force: bool, aggressive: bool) -> None:
    """Delete branches that have no commits beyond their parent.

    A branch is only deleted together with everything below it, so a chain
    of empty branches goes at once while a branch with real work below it
    stays. With --aggressive, an empty branch with a single child is removed
    too and the child is redeclared onto the removed branch's parent.
    """
    view = load_repo_view(ctx)
    with Ensure.no_errors():
        plan = plan_cleanup(view.graph, ctx.git, view.root, aggressive=aggressive)

    if plan.is_empty:
        user_output("No branches to clean")
        return

    user_output("Branches with no commits beyond their parent:")
    for item in plan.deletions:
        user_output(f"  {click.style(item.branch, fg='yellow')} (parent: {item.parent})")
    if plan.reparentings:
        user_output()
        user_output("Reparenting:")
        for move in plan.reparentings:
            user_output(
                f"  {click.style(move.child, fg='yellow')} will be reparented"
                f" from {move.old_parent} to {move.new_parent}"
            )

    if dry_run:
        user_output(click.style("(dry run)", fg="bright_black"))
        return

    if not force and not click.confirm(f"Delete {len(plan.deletions)} branch(es)?", default=False):
        user_output(click.style("⭕ Aborted", fg="yellow"))
        return

    deleted: list[str] = []
    try:
        with Ensure.no_errors():
            for item in plan.deletions:
                ctx.git.delete_branch(view.root, item.branch, force=True)
                deleted.append(item.branch)
                user_output(f"  {click.style('✓', fg='green')} Deleted {item.branch}")
    finally:
        if deleted:
            _forget_deleted(ctx, view, plan, deleted)

    moved = sum(1 for r in plan.reparentings if r.old_parent in deleted)
    message = f"✅ Deleted {len(deleted)} branch(es)"
    if moved:
        message += f", reparented {moved}"
    user_output(click.style(message, fg="green"))
