import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

_EMPTY = object()


class SnapshotQueue(Generic[T]):
    """Hand the newest progress snapshot from the coordinator to the UI thread.

    Holds at most one snapshot: publishing replaces whatever the UI has not
    drawn yet, so the coordinator never waits on the terminal. Once closed,
    publishes are dropped and readers get the last pending snapshot, then None.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._pending: object = _EMPTY
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def publish(self, snapshot: T) -> bool:
        """Replace the pending snapshot. Returns False once the queue is closed."""
        with self._condition:
            if self._closed:
                return False
            self._pending = snapshot
            self._condition.notify()
        return True

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Wait for a snapshot newer than the last one read. None means closed and drained."""
        with self._condition:
            ready = self._condition.wait_for(
                lambda: self._pending is not _EMPTY or self._closed, timeout
            )
            if not ready:
                raise TimeoutError("no snapshot within timeout")
            snapshot, self._pending = self._pending, _EMPTY
        return None if snapshot is _EMPTY else snapshot
