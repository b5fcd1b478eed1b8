"""Clock port - abstraction over the system time."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Time source injected into use cases.

    Lets tests pin time to exercise pending windows deterministically.
    """

    @abstractmethod
    def now(self) -> datetime:
        """
        Returns the current time.

        Returns:
            Timezone-aware UTC datetime.
        """
        raise NotImplementedError

    def epoch_millis(self) -> int:
        """Current time as Unix milliseconds, as gateway headers expect."""
        return int(self.now().timestamp() * 1000)


class SystemClock(Clock):
    """Real clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FakeClock(Clock):
    """
    Fake clock for tests.

    Returns a fixed instant that only moves when told to.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._fixed_time

    def set_time(self, new_time: datetime) -> None:
        self._fixed_time = new_time

    def advance(self, seconds: int = 0, minutes: int = 0, hours: int = 0, days: int = 0) -> None:
        """
        Moves the fixed time forward.

        Args:
            seconds: Seconds to advance.
            minutes: Minutes to advance.
            hours: Hours to advance.
            days: Days to advance.
        """
        delta = timedelta(seconds=seconds, minutes=minutes, hours=hours, days=days)
        self._fixed_time = self._fixed_time + delta
