"""Branch dependency and root declaration commands."""

import click

from twig.cli.core import RepoView, load_repo_view
from twig.cli.ensure import Ensure
from twig.cli.output import machine_output, user_output
from twig.core.context import TwigContext
from twig.core.declarations import (
    add_dependency,
    add_root,
    link_branch,
    remove_dependency,
    remove_root,
)
from twig.core.state.types import RepoState


def _resolve_branch(view: RepoView, branch: str | None) -> str:
    """Use the given branch, or the checked-out one."""
    if branch is not None:
        return branch
    return Ensure.not_none(
        view.graph.current_branch,
        "HEAD is detached; pass --branch to choose a branch",
    )


def _ensure_live(view: RepoView, branch: str) -> None:
    Ensure.invariant(
        branch in view.graph and view.graph.node(branch).is_live,
        f"Branch '{branch}' does not exist locally",
    )


def _save(ctx: TwigContext, view: RepoView, state: RepoState) -> None:
    with Ensure.no_errors():
        ctx.state_store.save(view.root, state)


@click.group("branch")
def branch_group() -> None:
    """Declare dependencies, roots and links between branches."""


@branch_group.command("depend")
@click.argument("parent")
@click.option("--branch", "child", help="Branch that depends on PARENT (default: current).")
@click.pass_obj
def depend_cmd(ctx: TwigContext, parent: str, child: str | None) -> None:
    """Declare that a branch depends on PARENT."""
    view = load_repo_view(ctx)
    child = _resolve_branch(view, child)
    _ensure_live(view, child)
    _ensure_live(view, parent)

    with Ensure.no_errors():
        state = add_dependency(view.state, child=child, parent=parent, now=ctx.time.now())
    _save(ctx, view, state)

    user_output(
        f"{click.style('✓', fg='green')} "
        f"{click.style(child, fg='yellow')} now depends on {click.style(parent, fg='yellow')}"
    )


@branch_group.command("rm-dep")
@click.argument("parent")
@click.option("--branch", "child", help="Branch to detach from PARENT (default: current).")
@click.pass_obj
def rm_dep_cmd(ctx: TwigContext, parent: str, child: str | None) -> None:
    """Remove a declared dependency on PARENT."""
    view = load_repo_view(ctx)
    child = _resolve_branch(view, child)

    with Ensure.no_errors():
        state = remove_dependency(view.state, child=child, parent=parent)
    _save(ctx, view, state)

    user_output(f"{click.style('✓', fg='green')} Removed dependency {parent} -> {child}")


@branch_group.command("parents")
@click.argument("branch", required=False)
@click.pass_obj
def parents_cmd(ctx: TwigContext, branch: str | None) -> None:
    """List the declared parents of BRANCH (default: current)."""
    view = load_repo_view(ctx)
    branch = _resolve_branch(view, branch)
    if branch not in view.graph:
        return
    for parent in view.graph.parents(branch):
        machine_output(parent)


@branch_group.command("children")
@click.argument("branch", required=False)
@click.pass_obj
def children_cmd(ctx: TwigContext, branch: str | None) -> None:
    """List the declared children of BRANCH (default: current)."""
    view = load_repo_view(ctx)
    branch = _resolve_branch(view, branch)
    if branch not in view.graph:
        return
    for child in sorted(view.graph.children(branch)):
        machine_output(child)


@branch_group.command("link")
@click.argument("branch")
@click.option("--jira", "jira_issue", help="Issue key to associate, e.g. PROJ-123.")
@click.option("--pr", "github_pr", type=click.IntRange(min=1), help="Pull request number.")
@click.pass_obj
def link_cmd(ctx: TwigContext, branch: str, jira_issue: str | None, github_pr: int | None) -> None:
    """Link an issue key or pull request number to BRANCH."""
    Ensure.invariant(
        jira_issue is not None or github_pr is not None,
        "Pass --jira and/or --pr",
    )
    view = load_repo_view(ctx)
    _ensure_live(view, branch)

    state = link_branch(
        view.state, branch, jira_issue=jira_issue, github_pr=github_pr, now=ctx.time.now()
    )
    _save(ctx, view, state)

    meta = state.branches[branch]
    refs = [r for r in (meta.jira_issue, f"#{meta.github_pr}" if meta.github_pr else None) if r]
    user_output(f"{click.style('✓', fg='green')} Linked {branch}: {', '.join(refs)}")


@branch_group.group("root")
def root_group() -> None:
    """Manage root branches (branches that need no parent)."""


@root_group.command("add")
@click.argument("branch")
@click.option("--default", "is_default", is_flag=True, help="Make this the default root.")
@click.pass_obj
def root_add_cmd(ctx: TwigContext, branch: str, is_default: bool) -> None:
    """Designate BRANCH as a root."""
    view = load_repo_view(ctx)
    _ensure_live(view, branch)

    state = add_root(view.state, branch, is_default=is_default, now=ctx.time.now())
    if state == view.state:
        user_output(f"{branch} is already a root")
        return
    _save(ctx, view, state)

    suffix = " (default)" if is_default else ""
    user_output(f"{click.style('✓', fg='green')} Added root {branch}{suffix}")


@root_group.command("remove")
@click.argument("branch")
@click.pass_obj
def root_remove_cmd(ctx: TwigContext, branch: str) -> None:
    """Remove the root designation from BRANCH."""
    view = load_repo_view(ctx)

    with Ensure.no_errors():
        state = remove_root(view.state, branch)
    _save(ctx, view, state)

    user_output(f"{click.style('✓', fg='green')} Removed root {branch}")


@root_group.command("list")
@click.pass_obj
def root_list_cmd(ctx: TwigContext) -> None:
    """List root branches."""
    view = load_repo_view(ctx)
    if not view.state.root_branches:
        user_output("No root branches declared")
        user_output("Add one with: twig branch root add <branch> --default")
        return

    for root in view.state.root_branches:
        suffix = " (default)" if root.is_default else ""
        machine_output(f"{root.branch}{suffix}")
