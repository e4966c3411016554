"""Fake Time implementation for testing.

FakeTime returns a fixed instant so serialized timestamps are predictable.
"""

from datetime import UTC, datetime

from twig.core.time.abc import Time

DEFAULT_FAKE_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class FakeTime(Time):
    """In-memory fake that always reports the same instant.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now if now is not None else DEFAULT_FAKE_NOW
        self._now_calls = 0

    @property
    def now_calls(self) -> int:
        """Number of times now() was called.

        This property is for test assertions only.
        """
        return self._now_calls

    def now(self) -> datetime:
        self._now_calls += 1
        return self._now
