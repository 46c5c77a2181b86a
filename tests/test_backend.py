"""
Tests for backend strategies, the backend factory and the queue views.
"""
from unittest.mock import MagicMock

import pytest
import redis

from tracking_queue_app.backend.factory import BackendFactory, BackendType
from tracking_queue_app.backend.strategies import InMemoryBackend, RedisBackend
from tracking_queue_app.exceptions import BackendError, BackendUnavailableError
from tracking_queue_app.queue.manager import ProcessingLock, QueueManager


class TestInMemoryBackend:
    """Test the in-memory backend used for development and tests"""

    def test_list_range_windows(self, backend):
        backend.push("q", *[f"item-{i}" for i in range(30)])

        assert backend.list_range("q", 0, 25)[0] == b"item-0"
        assert len(backend.list_range("q", 0, 25)) == 25
        assert backend.list_range("q", 25, 25) == [b"item-25", b"item-26", b"item-27", b"item-28", b"item-29"]
        assert backend.list_range("q", 50, 25) == []
        assert backend.list_range("missing", 0, 25) == []

    def test_reads_do_not_remove(self, backend):
        backend.push("q", b"a", b"b")
        backend.list_range("q", 0, 25)
        assert backend.list_length("q") == 2

    def test_count_keys_by_prefix(self, backend):
        backend.acquire("trackingProcessorLock1")
        backend.acquire("trackingProcessorLock2")
        backend.acquire("somethingElse")
        assert backend.count_keys("trackingProcessorLock") == 2

        backend.release("trackingProcessorLock1")
        assert backend.count_keys("trackingProcessorLock") == 1

    def test_memory_stats(self, backend):
        backend.push("q", b"x" * 2048)
        stats = backend.get_memory_stats()
        assert stats["used_memory_human"] == "2.00K"
        assert stats["used_memory_peak_human"] == "2.00K"


class TestRedisBackend:
    """Test the Redis backend against a mocked client"""

    def test_list_range_uses_inclusive_end(self):
        client = MagicMock()
        client.lrange.return_value = [b"a"]

        assert RedisBackend(client).list_range("trackingQueueV1", 25, 25) == [b"a"]
        client.lrange.assert_called_once_with("trackingQueueV1", 25, 49)

    def test_list_length(self):
        client = MagicMock()
        client.llen.return_value = 7
        assert RedisBackend(client).list_length("trackingQueueV1_3") == 7

    def test_count_keys_scans_prefix(self):
        client = MagicMock()
        client.scan_iter.return_value = iter([b"trackingProcessorLock0", b"trackingProcessorLock5"])

        assert RedisBackend(client).count_keys("trackingProcessorLock") == 2
        client.scan_iter.assert_called_once_with(match="trackingProcessorLock*")

    def test_memory_stats(self):
        client = MagicMock()
        client.info.return_value = {"used_memory_human": "1.20M", "used_memory_peak_human": "3.40M"}

        assert RedisBackend(client).get_memory_stats()["used_memory_human"] == "1.20M"
        client.info.assert_called_once_with("memory")

    def test_ping_failure_is_unavailable(self):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("Connection refused")

        with pytest.raises(BackendUnavailableError):
            RedisBackend(client).test_connection()

    def test_command_failure_is_backend_error(self):
        client = MagicMock()
        client.llen.side_effect = redis.TimeoutError("Timeout reading from socket")

        with pytest.raises(BackendError):
            RedisBackend(client).list_length("trackingQueueV1")


class TestBackendFactory:
    """Test backend creation from settings"""

    def test_memory_backend_is_cached(self):
        first = BackendFactory.create(BackendType.MEMORY)
        second = BackendFactory.create(BackendType.MEMORY)

        assert isinstance(first, InMemoryBackend)
        assert first is second

    def test_unreachable_redis_raises(self, monkeypatch):
        """Test that there is no silent fallback to an empty backend"""
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("Connection refused")
        monkeypatch.setattr(redis, "from_url", lambda *args, **kwargs: client)

        with pytest.raises(BackendUnavailableError):
            BackendFactory.create(BackendType.REDIS)
        assert BackendFactory._instance is None


class TestQueueViews:
    """Test shards, manager and lock"""

    def test_shard_keys(self, backend):
        shards = QueueManager(backend, number_of_queues=3).get_all_queues()

        assert [shard.get_id() for shard in shards] == [0, 1, 2]
        assert [shard.get_key() for shard in shards] == ["trackingQueueV1", "trackingQueueV1_1", "trackingQueueV1_2"]

    def test_shard_depth(self, backend):
        backend.push("trackingQueueV1_1", b"a", b"b")
        shard = QueueManager(backend, number_of_queues=2).get_all_queues()[1]
        assert shard.get_number_of_request_sets_in_queue() == 2

    def test_manager_settings(self, backend):
        manager = QueueManager(backend, number_of_queues=4, requests_to_process=50)
        assert manager.get_number_of_available_queues() == 4
        assert manager.get_number_of_requests_to_process_at_same_time() == 50

    def test_manager_needs_a_queue(self, backend):
        with pytest.raises(ValueError):
            QueueManager(backend, number_of_queues=0)

    def test_lock_count(self, backend):
        backend.acquire("trackingProcessorLock2")
        assert ProcessingLock(backend).get_number_of_acquired_locks() == 1
