"""Cascade command - rebase a branch and every branch that depends on it."""

import click

from twig.cli.core import load_repo_view
from twig.cli.display import print_graph, report_conflict
from twig.cli.ensure import Ensure
from twig.cli.output import user_output
from twig.core.cascade import CascadeOptions, CascadeReport, CascadeScheduler
from twig.core.context import TwigContext
from twig.core.rebase import RebaseOutcome, RebaseResult
from twig.core.topology import topological_order

_OUTCOME_MARKS = {
    RebaseOutcome.REBASED: click.style("✅", fg="green"),
    RebaseOutcome.PLANNED: click.style("→", fg="cyan"),
    RebaseOutcome.SKIPPED: click.style("↷", fg="bright_black"),
    RebaseOutcome.CONFLICT: click.style("⚠", fg="yellow"),
    RebaseOutcome.NOT_ATTEMPTED: click.style("·", fg="bright_black"),
}


def format_progress_message(position: int, total: int, result: RebaseResult) -> str:
    """One progress line, e.g. `[2/3] ✅ feat/b rebased onto feat/a`."""
    mark = _OUTCOME_MARKS[result.outcome]
    line = f"[{position}/{total}] {mark} {click.style(result.branch, fg='yellow')}"
    match result.outcome:
        case RebaseOutcome.REBASED:
            line += f" rebased onto {result.onto}"
        case RebaseOutcome.PLANNED:
            line += f" would be rebased onto {result.onto}"
        case RebaseOutcome.CONFLICT:
            line += f" conflicts with {result.onto}"
        case _:
            pass
    if result.reason and result.outcome != RebaseOutcome.CONFLICT:
        line += f" ({result.reason})"
    return line


def _show_summary(report: CascadeReport) -> None:
    user_output()
    parts = []
    if report.rebased:
        parts.append(f"{len(report.rebased)} rebased")
    if report.planned:
        parts.append(f"{len(report.planned)} planned")
    if report.skipped:
        parts.append(f"{len(report.skipped)} skipped")
    if report.conflicted:
        parts.append(f"{len(report.conflicted)} conflicted")
    if report.not_attempted:
        parts.append(f"{len(report.not_attempted)} not attempted")
    user_output("Summary: " + (", ".join(parts) if parts else "nothing to do"))

    if report.restored_branch is not None and report.restored_branch != report.start:
        user_output(f"Returned to {click.style(report.restored_branch, fg='yellow')}")


@click.command("cascade")
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=None,
    help="Only descend this many levels below the starting branch.",
)
@click.option("-f", "--force", is_flag=True, help="Rebase even branches that are up to date.")
@click.option("--preview", is_flag=True, help="Show the plan without rebasing anything.")
@click.option(
    "--continue-on-error",
    is_flag=True,
    help="Abort conflicting rebases and keep going with unrelated branches.",
)
@click.option("--show-graph", is_flag=True, help="Print the dependency tree first.")
@click.option("--autostash", is_flag=True, help="Stash local changes for the whole run.")
@click.option("--branch", "start", help="Branch to start from (default: current).")
@click.pass_obj
def cascade_cmd(
    ctx: TwigContext,
    max_depth: int | None,
    force: bool,
    preview: bool,
    continue_on_error: bool,
    show_graph: bool,
    autostash: bool,
    start: str | None,
) -> None:
    """Rebase a branch and all of its descendants in dependency order.

    Each branch is rebased onto its primary (first declared) parent. By
    default the cascade stops at the first conflict and leaves it for you to
    resolve; rerun the cascade from that branch afterwards.
    """
    view = load_repo_view(ctx)
    Ensure.invariant(
        preview or view.graph.current_branch is not None,
        "HEAD is not a branch; check out a branch before you cascade",
    )
    if start is None:
        start = Ensure.not_none(
            view.graph.current_branch,
            "HEAD is detached; pass --branch to choose where to start",
        )
    Ensure.invariant(start in view.graph, f"Branch '{start}' not found")

    if show_graph:
        with Ensure.no_errors():
            print_graph(view.graph)

    options = CascadeOptions(
        max_depth=max_depth if max_depth is not None else ctx.global_config.max_depth,
        force=force,
        continue_on_error=continue_on_error,
        autostash=autostash or ctx.global_config.autostash,
        dry_run=preview,
    )

    order = topological_order(view.graph, start, options.max_depth)
    user_output(f"Cascade from {click.style(start, fg='cyan', bold=True)}")
    user_output(f"Branches: {len(order)}")
    user_output()

    def on_step(position: int, total: int, result: RebaseResult) -> None:
        user_output(format_progress_message(position, total, result))

    scheduler = CascadeScheduler(ctx.git, view.root)
    with Ensure.no_errors():
        report = scheduler.run(view.graph, start, options, on_step=on_step)

    _show_summary(report)
    if preview:
        user_output(click.style("(dry run)", fg="bright_black"))

    if report.halted_on is not None:
        halted = report.result_for(report.halted_on)
        assert halted is not None
        report_conflict(halted)
        user_output()
        user_output(f"After resolving, resume with: twig cascade --branch {report.halted_on}")
        if report.stash_pending:
            user_output("Your stashed changes were kept; run 'git stash pop' when done.")
        raise SystemExit(1)

    if report.conflicted:
        user_output()
        user_output(
            click.style("Conflicts (rebase aborted): ", fg="yellow")
            + ", ".join(report.conflicted)
        )
        raise SystemExit(1)
