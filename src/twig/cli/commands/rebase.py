"""Rebase the current branch onto its declared parent."""

import click

from twig.cli.core import load_repo_view
from twig.cli.display import print_graph, report_conflict
from twig.cli.ensure import Ensure
from twig.cli.output import user_output
from twig.core.context import TwigContext
from twig.core.rebase import RebaseEngine, RebaseOutcome, resolve_rebase_target


@click.command("rebase")
@click.option("-f", "--force", is_flag=True, help="Rebase even when already up to date.")
@click.option("--show-graph", is_flag=True, help="Print the dependency tree first.")
@click.option("--autostash", is_flag=True, help="Stash local changes around the rebase.")
@click.option("--onto", help="Rebase onto this ref instead of the declared parent.")
@click.option("--root", "to_root", is_flag=True, help="Rebase onto the topmost ancestor.")
@click.option("--dry-run", is_flag=True, help="Show what would happen without rebasing.")
@click.pass_obj
def rebase_cmd(
    ctx: TwigContext,
    force: bool,
    show_graph: bool,
    autostash: bool,
    onto: str | None,
    to_root: bool,
    dry_run: bool,
) -> None:
    """Rebase the current branch onto its declared parent.

    Exits with status 1 if the rebase stops on conflicts; the repository is
    left mid-rebase so the conflicts can be resolved with git.
    """
    Ensure.invariant(not (onto and to_root), "--onto and --root cannot be used together")

    view = load_repo_view(ctx)
    branch = Ensure.not_none(
        view.graph.current_branch,
        "HEAD is detached; check out the branch to rebase",
    )

    if show_graph:
        with Ensure.no_errors():
            print_graph(view.graph)

    with Ensure.no_errors():
        target = resolve_rebase_target(view.graph, branch, onto=onto, to_root=to_root)
        Ensure.invariant(target != branch, f"Cannot rebase '{branch}' onto itself")
        Ensure.invariant(
            target not in view.graph or view.graph.node(target).is_live,
            f"Branch '{target}' does not exist locally",
        )

        engine = RebaseEngine(ctx.git, view.root)
        result = engine.rebase(
            branch,
            target,
            force=force,
            autostash=autostash or ctx.global_config.autostash,
            dry_run=dry_run,
        )

    branch_styled = click.style(branch, fg="yellow")
    target_styled = click.style(target, fg="yellow")
    match result.outcome:
        case RebaseOutcome.REBASED:
            user_output(f"{click.style('✅', fg='green')} Rebased {branch_styled} onto {target_styled}")
        case RebaseOutcome.SKIPPED:
            user_output(f"{branch_styled} is already up to date with {target_styled}")
        case RebaseOutcome.PLANNED:
            user_output(f"Would rebase {branch_styled} onto {target_styled}")
            user_output(click.style("(dry run)", fg="bright_black"))
        case RebaseOutcome.CONFLICT:
            report_conflict(result)
            if result.stash_pending:
                user_output("Your stashed changes were kept; run 'git stash pop' when done.")
            raise SystemExit(1)
