"""Exception types raised by the twig core.

Topology errors are always raised before any declaration is persisted or the
working tree is touched. Rebase conflicts are not errors: they are reported
as results so callers can decide what to do with them.
"""


class TwigError(Exception):
    """Base class for all errors reported to the user by twig."""


class TopologyError(TwigError):
    """A requested change or lookup is inconsistent with the dependency graph."""


class CycleError(TopologyError):
    """Adding a dependency would close a cycle."""

    def __init__(self, parent: str, child: str, cycle: list[str]) -> None:
        self.parent = parent
        self.child = child
        self.cycle = cycle
        super().__init__(
            f"Adding dependency '{parent}' -> '{child}' would create a cycle: "
            + " -> ".join(cycle)
        )


class SelfDependencyError(TopologyError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(f"Branch '{branch}' cannot depend on itself")


class DuplicateDependencyError(TopologyError):
    def __init__(self, parent: str, child: str) -> None:
        self.parent = parent
        self.child = child
        super().__init__(f"Dependency '{parent}' -> '{child}' already exists")


class DependencyNotFoundError(TopologyError):
    def __init__(self, parent: str, child: str) -> None:
        self.parent = parent
        self.child = child
        super().__init__(f"No dependency '{parent}' -> '{child}' is declared")


class BranchNotFoundError(TopologyError):
    def __init__(self, branch: str, detail: str | None = None) -> None:
        self.branch = branch
        message = f"Branch '{branch}' not found"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class NoRootFoundError(TopologyError):
    def __init__(self) -> None:
        super().__init__(
            "No root found: declare one with 'twig branch root add <branch> --default'"
        )


class NoParentError(TopologyError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(
            f"Branch '{branch}' has no declared parent. "
            "Use 'twig branch depend <parent>' to declare one."
        )


class DetachedHeadError(TwigError):
    """An operation that must return to the checked-out branch found no branch checked out."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"HEAD is not a branch; check out a branch before you {operation}")


class StateFileError(TwigError):
    """The declaration store could not be read or written."""


class RebaseFailedError(TwigError):
    """A rebase failed for a reason other than merge conflicts."""

    def __init__(self, branch: str, onto: str, output: str) -> None:
        self.branch = branch
        self.onto = onto
        self.output = output
        message = f"Failed to rebase '{branch}' onto '{onto}'"
        if output.strip():
            message += f"\n{output.strip()}"
        super().__init__(message)
