"""
Deadline and cancellation for a resolution call.

Collaborator calls are synchronous and cannot be interrupted mid-flight, so a
ResolutionContext is checked at tier boundaries: once the deadline passes or
the context is cancelled, the next check raises and no further tier runs.
"""

import threading
import time
from typing import Optional

from .exceptions import ResolutionCancelledError, ResolutionTimeoutError


class ResolutionContext:
    """
    Timeout and cancellation shared by every source of one batch load.

    Args:
        timeout: Seconds until the deadline, or None for no deadline.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self, source: Optional[str] = None) -> None:
        """
        Raise if the call should stop.

        Raises:
            ResolutionCancelledError: If cancel() was called.
            ResolutionTimeoutError: If the deadline has passed.
        """
        if self.cancelled:
            suffix = f" for source {source}" if source else ""
            raise ResolutionCancelledError(f"Record resolution cancelled{suffix}")
        if self.expired:
            raise ResolutionTimeoutError(self.timeout, [source] if source else [])
