import time


class SystemClock:
    def now(self) -> int:
        """Whole seconds since the epoch."""
        return int(time.time())


class FrozenClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, start: int):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, value: int) -> None:
        self._now = int(value)

    def advance(self, seconds: int) -> int:
        self._now += int(seconds)
        return self._now
