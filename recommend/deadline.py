from __future__ import annotations

import threading
import time
from typing import Optional


class DeadlineExceeded(RuntimeError):
    pass


class Deadline:
    """Caller-supplied time budget and cancel flag for one resolution.

    The remaining budget is used as the socket timeout at each network
    boundary; once expired or cancelled, the boundary fails immediately.
    """

    def __init__(self, seconds: Optional[float] = None) -> None:
        self._expires_at = None if seconds is None else time.monotonic() + max(0.0, float(seconds))
        self._cancelled = threading.Event()

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        if self.cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def timeout(self, default: float) -> float:
        """Socket timeout for the next call; raises when nothing is left."""
        if self.cancelled:
            raise DeadlineExceeded("resolution cancelled")
        remaining = self.remaining()
        if remaining is None:
            return float(default)
        if remaining <= 0.0:
            raise DeadlineExceeded("resolution deadline exceeded")
        return min(float(default), remaining)


def timeout_for(deadline: Optional[Deadline], default: float) -> float:
    if deadline is None:
        return float(default)
    return deadline.timeout(default)
