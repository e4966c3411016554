"""Clock abstraction for testing.

Declaration timestamps come from here so tests can pin them instead of
depending on the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract time operations for dependency injection."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
