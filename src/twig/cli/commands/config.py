import click

from twig.cli.ensure import Ensure
from twig.cli.output import machine_output, user_output
from twig.core.context import TwigContext
from twig.core.global_config import (
    CONFIG_KEYS,
    config_items,
    global_config_path,
    set_global_config_value,
)


@click.group("config")
def config_group() -> None:
    """Manage twig configuration."""


@config_group.command("list")
@click.pass_obj
def config_list(ctx: TwigContext) -> None:
    """Print a list of configuration keys and values."""
    user_output(click.style("Global configuration:", bold=True) + f" ({global_config_path()})")
    for key, value in config_items(ctx.global_config):
        machine_output(f"{key}={value}")


@config_group.command("get")
@click.argument("key", metavar="KEY")
@click.pass_obj
def config_get(ctx: TwigContext, key: str) -> None:
    """Print the value of a given configuration key."""
    values = dict(config_items(ctx.global_config))
    Ensure.invariant(key in values, f"Invalid key: {key}")
    machine_output(values[key])


@config_group.command("set")
@click.argument("key", metavar="KEY")
@click.argument("value", metavar="VALUE")
@click.pass_obj
def config_set(ctx: TwigContext, key: str, value: str) -> None:
    """Update configuration with a value for the given key."""
    Ensure.invariant(
        key in CONFIG_KEYS,
        f"Invalid key: {key} (expected one of: {', '.join(CONFIG_KEYS)})",
    )
    try:
        updated = set_global_config_value(key, value)
    except ValueError as e:
        user_output(click.style("Error: ", fg="red") + f"Invalid value for {key}: {e}")
        raise SystemExit(1) from e

    shown = dict(config_items(updated))[key]
    user_output(f"Set {key}={shown}")
