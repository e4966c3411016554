"""In-memory fake implementation of the declaration store."""

from pathlib import Path

from twig.core.state.store import STATE_DIR_NAME, STATE_FILE_NAME, StateStore
from twig.core.state.types import RepoState


class FakeStateStore(StateStore):
    """In-memory declaration store for tests.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(
        self,
        *,
        states: dict[Path, RepoState] | None = None,
        load_raises: Exception | None = None,
    ) -> None:
        """Create FakeStateStore with pre-configured state.

        Args:
            states: Mapping of repo_root -> RepoState returned by load()
            load_raises: Exception to raise from load() (for error-path tests)
        """
        self._states = dict(states) if states is not None else {}
        self._load_raises = load_raises
        self._save_calls: list[tuple[Path, RepoState]] = []

    def state_path(self, repo_root: Path) -> Path:
        return repo_root / STATE_DIR_NAME / STATE_FILE_NAME

    def load(self, repo_root: Path) -> RepoState:
        if self._load_raises is not None:
            raise self._load_raises
        return self._states.get(repo_root, RepoState())

    def save(self, repo_root: Path, state: RepoState) -> None:
        self._save_calls.append((repo_root, state))
        self._states[repo_root] = state

    @property
    def save_calls(self) -> list[tuple[Path, RepoState]]:
        """Get the list of save() calls that were made.

        This property is for test assertions only.
        """
        return self._save_calls

    def current(self, repo_root: Path) -> RepoState:
        """Return the last saved (or initial) state for a repository.

        This method is for test assertions only.
        """
        return self._states.get(repo_root, RepoState())
