"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. All errors use red "Error:" prefix
for visual consistency.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TypeVar

import click

from twig.cli.output import user_output
from twig.core.errors import TwigError

T = TypeVar("T")


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def invariant(condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise output styled error and exit.

        Args:
            condition: Boolean condition to check
            error_message: Error message to display if condition is false.
                          "Error: " prefix will be added automatically in red.

        Raises:
            SystemExit: If condition is false (with exit code 1)
        """
        if not condition:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)

    @staticmethod
    def not_none(value: T | None, error_message: str) -> T:
        """Ensure value is not None, otherwise output styled error and exit.

        Takes `T | None` and returns `T`, so callers get a narrowed type.

        Raises:
            SystemExit: If value is None (with exit code 1)
        """
        if value is None:
            user_output(click.style("Error: ", fg="red") + error_message)
            raise SystemExit(1)
        return value

    @staticmethod
    @contextmanager
    def no_errors() -> Iterator[None]:
        """Report twig and git failures raised inside the block, then exit 1.

        Example:
            >>> with Ensure.no_errors():
            ...     state = add_dependency(state, child=child, parent=parent, now=now)
        """
        try:
            yield
        except (TwigError, RuntimeError) as e:
            user_output(click.style("Error: ", fg="red") + str(e))
            raise SystemExit(1) from e
