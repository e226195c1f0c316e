import threading

import pytest

from uuid_bruteforce.snapshot_queue import SnapshotQueue


class TestSnapshotQueue:
    """Test suite for the latest-wins snapshot channel"""

    def test_latest_wins(self):
        q: SnapshotQueue[int] = SnapshotQueue()
        q.publish(1)
        q.publish(2)
        q.publish(3)
        assert q.get(timeout=0.1) == 3

    def test_get_consumes(self):
        q: SnapshotQueue[int] = SnapshotQueue()
        q.publish(1)
        assert q.get(timeout=0.1) == 1
        with pytest.raises(TimeoutError):
            q.get(timeout=0.01)

    def test_close_returns_none(self):
        q: SnapshotQueue[int] = SnapshotQueue()
        q.close()
        assert q.closed
        assert q.get() is None

    def test_pending_value_survives_close(self):
        """The last snapshot is still rendered once after close"""
        q: SnapshotQueue[int] = SnapshotQueue()
        q.publish(7)
        q.close()
        assert q.get() == 7
        assert q.get() is None

    def test_publish_after_close_is_dropped(self):
        q: SnapshotQueue[int] = SnapshotQueue()
        q.close()
        assert q.publish(1) is False
        assert q.get() is None

    def test_publish_never_blocks_without_consumer(self):
        q: SnapshotQueue[int] = SnapshotQueue()
        for i in range(10_000):
            assert q.publish(i) is True
        assert q.get(timeout=0.1) == 9_999

    def test_consumer_wakes_on_close(self):
        q: SnapshotQueue[int] = SnapshotQueue()
        results = []
        consumer = threading.Thread(target=lambda: results.append(q.get(timeout=5)))
        consumer.start()
        q.close()
        consumer.join(timeout=5)
        assert results == [None]
