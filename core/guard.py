"""
Run Guard - Lets at most one run execute at a time.
"""

from threading import Lock


class RunGuard:
    """Single-flight guard. A run that finds the guard taken is dropped, not queued."""

    def __init__(self):
        self._lock = Lock()

    def acquire(self) -> bool:
        """Atomically switch from idle to running. Returns False if already running."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def running(self) -> bool:
        return self._lock.locked()
