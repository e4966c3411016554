"""Declaration store interface and JSON file implementation."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any

from twig.core.errors import StateFileError
from twig.core.state.types import (
    STATE_VERSION,
    BranchMetadata,
    DependencyEdge,
    RepoState,
    RootBranch,
)
from twig.core.time.abc import Time

logger = logging.getLogger(__name__)

STATE_DIR_NAME = ".twig"
STATE_FILE_NAME = "state.json"

_KNOWN_KEYS = ("version", "updated_at", "branches", "dependencies", "root_branches")


class StateStore(ABC):
    """Abstract interface for loading and saving repository declarations.

    All implementations (real and fake) must implement this interface.
    """

    @abstractmethod
    def state_path(self, repo_root: Path) -> Path:
        """Location of the state file for a repository."""
        ...

    @abstractmethod
    def load(self, repo_root: Path) -> RepoState:
        """Load declarations for a repository.

        Returns an empty RepoState when nothing has been declared yet.

        Raises:
            StateFileError: If the stored declarations cannot be read or parsed
        """
        ...

    @abstractmethod
    def save(self, repo_root: Path, state: RepoState) -> None:
        """Persist declarations for a repository.

        Raises:
            StateFileError: If the declarations cannot be written
        """
        ...


def state_to_json_dict(state: RepoState) -> dict[str, Any]:
    """Convert a RepoState to the JSON document layout."""
    data: dict[str, Any] = {
        "version": state.version,
        "updated_at": state.updated_at,
    }
    # Unknown keys keep their position after the header fields
    for key, value in state.extra.items():
        data[key] = value
    data["branches"] = {
        name: {
            "branch": meta.branch,
            "jira_issue": meta.jira_issue,
            "github_pr": meta.github_pr,
            "created_at": meta.created_at,
        }
        for name, meta in sorted(state.branches.items())
    }
    data["dependencies"] = [
        {
            "id": dep.id,
            "parent": dep.parent,
            "child": dep.child,
            "created_at": dep.created_at,
        }
        for dep in state.dependencies
    ]
    data["root_branches"] = [
        {
            "id": root.id,
            "branch": root.branch,
            "is_default": root.is_default,
            "created_at": root.created_at,
        }
        for root in state.root_branches
    ]
    return data


def state_from_json_dict(data: Any, source: Path | None = None) -> RepoState:
    """Build a RepoState from a parsed JSON document.

    Raises:
        StateFileError: If the document does not have the expected shape
    """
    where = f" in {source}" if source is not None else ""
    if not isinstance(data, dict):
        raise StateFileError(f"Expected a JSON object{where}")

    try:
        version = int(data.get("version", STATE_VERSION))
        branches = {
            name: BranchMetadata(
                branch=entry.get("branch", name),
                jira_issue=entry.get("jira_issue"),
                github_pr=entry.get("github_pr"),
                created_at=entry.get("created_at", ""),
            )
            for name, entry in data.get("branches", {}).items()
        }
        dependencies = tuple(
            DependencyEdge(
                id=entry.get("id", ""),
                parent=entry["parent"],
                child=entry["child"],
                created_at=entry.get("created_at", ""),
            )
            for entry in data.get("dependencies", [])
        )
        root_branches = tuple(
            RootBranch(
                id=entry.get("id", ""),
                branch=entry["branch"],
                is_default=bool(entry.get("is_default", False)),
                created_at=entry.get("created_at", ""),
            )
            for entry in data.get("root_branches", [])
        )
    except (KeyError, AttributeError, TypeError, ValueError) as e:
        raise StateFileError(f"Malformed twig state{where}: {e!r}") from e

    extra = {key: value for key, value in data.items() if key not in _KNOWN_KEYS}

    return RepoState(
        version=version,
        updated_at=data.get("updated_at"),
        branches=branches,
        dependencies=dependencies,
        root_branches=root_branches,
        extra=extra,
    )


class JsonStateStore(StateStore):
    """Stores declarations in `<repo_root>/.twig/state.json`."""

    def __init__(self, time: Time) -> None:
        self._time = time

    def state_path(self, repo_root: Path) -> Path:
        return repo_root / STATE_DIR_NAME / STATE_FILE_NAME

    def load(self, repo_root: Path) -> RepoState:
        path = self.state_path(repo_root)
        if not path.exists():
            logger.debug("No state file at %s, using empty state", path)
            return RepoState()

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateFileError(f"Failed to read state file {path}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StateFileError(f"Failed to parse state file {path}: {e}") from e

        return state_from_json_dict(data, source=path)

    def save(self, repo_root: Path, state: RepoState) -> None:
        path = self.state_path(repo_root)
        state_dir = path.parent

        try:
            if not state_dir.exists():
                state_dir.mkdir(parents=True, exist_ok=True)
                _ensure_gitignored(repo_root)

            stamped = replace(state, updated_at=self._time.now().isoformat())
            content = json.dumps(state_to_json_dict(stamped), indent=2) + "\n"
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StateFileError(f"Failed to write state file {path}: {e}") from e

        logger.debug(
            "Saved %d dependencies and %d roots to %s",
            len(state.dependencies),
            len(state.root_branches),
            path,
        )


def _ensure_gitignored(repo_root: Path) -> None:
    """Add the state directory to the repository's .gitignore once."""
    gitignore = repo_root / ".gitignore"
    entry = f"{STATE_DIR_NAME}/"

    content = ""
    if gitignore.exists():
        content = gitignore.read_text(encoding="utf-8")
        if any(line.strip() == entry for line in content.splitlines()):
            return

    if content and not content.endswith("\n"):
        content += "\n"
    content += entry + "\n"
    gitignore.write_text(content, encoding="utf-8")
