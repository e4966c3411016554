"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

import click

from twig.cli.output import user_output
from twig.core.git.abc import Git
from twig.core.git.real import RealGit
from twig.core.global_config import GlobalConfig, global_config_path, load_global_config
from twig.core.state.store import JsonStateStore, StateStore
from twig.core.time.abc import Time
from twig.core.time.real import RealTime


@dataclass(frozen=True)
class TwigContext:
    """Immutable context holding all dependencies for twig operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    git: Git
    state_store: StateStore
    time: Time
    cwd: Path  # Current working directory at CLI invocation
    global_config: GlobalConfig
    repo_override: Path | None = None  # From `twig --repo PATH`

    @staticmethod
    def for_test(
        git: Git | None = None,
        state_store: StateStore | None = None,
        time: Time | None = None,
        cwd: Path | None = None,
        global_config: GlobalConfig | None = None,
        repo_override: Path | None = None,
    ) -> "TwigContext":
        """Create test context with optional pre-configured integration classes.

        Args:
            git: Optional Git implementation. If None, creates empty FakeGit.
            state_store: Optional StateStore. If None, creates empty FakeStateStore.
            time: Optional Time. If None, creates FakeTime.
            cwd: Optional current working directory. If None, uses Path("/test/repo").
            global_config: Optional GlobalConfig. If None, uses defaults.
            repo_override: Optional repository path, as given by --repo.

        Returns:
            TwigContext configured with provided values and test defaults

        Example:
            >>> git = FakeGit(repository_root=Path("/repo"), local_branches=["main"])
            >>> ctx = TwigContext.for_test(git=git, cwd=Path("/repo"))
        """
        from twig.core.git.fake import FakeGit
        from twig.core.state.fake import FakeStateStore
        from twig.core.time.fake import FakeTime

        if git is None:
            git = FakeGit()

        if state_store is None:
            state_store = FakeStateStore()

        if time is None:
            time = FakeTime()

        if global_config is None:
            global_config = GlobalConfig()

        return TwigContext(
            git=git,
            state_store=state_store,
            time=time,
            cwd=cwd or Path("/test/repo"),
            global_config=global_config,
            repo_override=repo_override,
        )


def safe_cwd() -> tuple[Path | None, str | None]:
    """Get current working directory, detecting if it no longer exists.

    Returns:
        tuple[Path | None, str | None]: (path, error_message)
        - If successful: (Path, None)
        - If directory deleted: (None, error_message)
    """
    try:
        cwd_path = Path.cwd()
        return (cwd_path, None)
    except (FileNotFoundError, OSError):
        return (
            None,
            "Current working directory no longer exists",
        )


def create_context(*, repo_override: Path | None = None) -> TwigContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.
    """
    cwd_result, error_msg = safe_cwd()
    if cwd_result is None:
        assert error_msg is not None
        user_output(click.style("Error: ", fg="red") + error_msg)
        user_output("\nThe directory you're running from has been deleted.")
        user_output("Please change to a valid directory and try again.")
        raise SystemExit(1)

    try:
        global_config = load_global_config()
    except ValueError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        user_output(f"\nFix or remove {global_config_path()} and try again.")
        raise SystemExit(1) from e

    time = RealTime()
    return TwigContext(
        git=RealGit(),
        state_store=JsonStateStore(time),
        time=time,
        cwd=cwd_result,
        global_config=global_config,
        repo_override=repo_override,
    )
