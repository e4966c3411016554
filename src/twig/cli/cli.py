import dataclasses
import logging
import os
from pathlib import Path

import click

from twig.cli.commands.adopt import adopt_cmd
from twig.cli.commands.branch import branch_group
from twig.cli.commands.cascade import cascade_cmd
from twig.cli.commands.config import config_group
from twig.cli.commands.rebase import rebase_cmd
from twig.cli.commands.tidy import tidy_group
from twig.cli.commands.tree import tree_cmd
from twig.core.context import create_context

# Enable debug logging if TWIG_DEBUG environment variable is set
if os.getenv("TWIG_DEBUG"):
    logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="twig")
@click.option(
    "--repo",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Operate on the repository at PATH instead of the current directory.",
)
@click.pass_context
def cli(ctx: click.Context, repo: Path | None) -> None:
    """Declare branch dependencies and rebase stacked branches in order."""
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(repo_override=repo)
    elif repo is not None:
        ctx.obj = dataclasses.replace(ctx.obj, repo_override=repo)


cli.add_command(adopt_cmd)
cli.add_command(branch_group)
cli.add_command(cascade_cmd)
cli.add_command(config_group)
cli.add_command(rebase_cmd)
cli.add_command(tidy_group)
cli.add_command(tree_cmd)


def main() -> None:
    """CLI entry point used by the `twig` console script."""
    cli()
