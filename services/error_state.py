# services/error_state.py
import time
from typing import Callable, Optional

ERROR_TTL_SECONDS = 5.0


class ErrorSlot:
    """
    Holds at most one human-readable error message.

    A new message replaces the old one (nothing is queued) and a message
    reads as cleared once ERROR_TTL_SECONDS have passed since it was set.
    """

    def __init__(self, ttl: float = ERROR_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._message: Optional[str] = None
        self._set_at = 0.0

    def set(self, message: str) -> None:
        self._message = message
        self._set_at = self._clock()

    def clear(self) -> None:
        self._message = None

    @property
    def message(self) -> Optional[str]:
        if self._message is not None and self._clock() - self._set_at >= self.ttl:
            self._message = None
        return self._message

    @property
    def remaining(self) -> float:
        """Seconds until the current message expires (0 when there is none)."""
        if self.message is None:
            return 0.0
        return max(0.0, self.ttl - (self._clock() - self._set_at))
