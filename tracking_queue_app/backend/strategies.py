"""
Backend strategies using Strategy Pattern.
Allows reading the tracking queue from different backends (Redis, In-Memory).

Every operation here is read-only as far as the queue is concerned. The
in-memory backend has a couple of seeding helpers so tests and local
development can fill it, the diagnostics tools never call them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

import redis

from tracking_queue_app.exceptions import BackendError, BackendUnavailableError


class BackendStrategy(ABC):
    """
    Abstract base class for queue backends.

    This is the Strategy Pattern interface - the analyzer and the monitor
    only talk to this, never to a concrete client.
    """

    @abstractmethod
    def test_connection(self) -> None:
        """
        Check that the backend answers.

        Raises:
            BackendUnavailableError: if the backend cannot be reached
        """
        pass

    @abstractmethod
    def list_range(self, key: str, start: int, count: int) -> List[bytes]:
        """
        Read a window of a list without removing anything.

        Args:
            key: List key
            start: Zero-based index of the first item
            count: Maximum number of items to return

        Returns:
            Raw items in list order, empty once start is past the end
        """
        pass

    @abstractmethod
    def list_length(self, key: str) -> int:
        """Get the number of items stored under a list key"""
        pass

    @abstractmethod
    def count_keys(self, prefix: str) -> int:
        """Count the keys starting with the given prefix"""
        pass

    @abstractmethod
    def get_memory_stats(self) -> Dict[str, Any]:
        """
        Get memory usage of the backend.

        Returns:
            Mapping with ``used_memory_human`` and ``used_memory_peak_human``
            when the backend can report them. Missing keys are allowed.
        """
        pass


class RedisBackend(BackendStrategy):
    """
    Redis implementation of the queue backend.

    Each shard of the queue is a Redis list, request sets are pushed by the
    tracker and popped by the processors. We only use read commands:
    - LRANGE to page through a list
    - LLEN for shard depths
    - SCAN to count lock keys
    - INFO memory for the memory figures
    """

    def __init__(self, redis_client):
        """
        Initialize Redis backend.

        Args:
            redis_client: Redis client instance (redis.Redis)
        """
        self.redis = redis_client

    def test_connection(self) -> None:
        try:
            self.redis.ping()
        except redis.RedisError as e:
            raise BackendUnavailableError(f"Redis connection failed: {e}") from e

    def list_range(self, key: str, start: int, count: int) -> List[bytes]:
        """Read a window with LRANGE (end index is inclusive in Redis)"""
        if count <= 0:
            return []
        try:
            return self.redis.lrange(key, start, start + count - 1)
        except redis.RedisError as e:
            raise BackendError(f"Redis lrange error on {key}: {e}") from e

    def list_length(self, key: str) -> int:
        try:
            return int(self.redis.llen(key))
        except redis.RedisError as e:
            raise BackendError(f"Redis llen error on {key}: {e}") from e

    def count_keys(self, prefix: str) -> int:
        # SCAN instead of KEYS so a busy server is not blocked
        try:
            return sum(1 for _ in self.redis.scan_iter(match=f"{prefix}*"))
        except redis.RedisError as e:
            raise BackendError(f"Redis scan error for {prefix}*: {e}") from e

    def get_memory_stats(self) -> Dict[str, Any]:
        try:
            return self.redis.info("memory")
        except redis.RedisError as e:
            raise BackendError(f"Redis info error: {e}") from e


class InMemoryBackend(BackendStrategy):
    """
    In-memory backend using Python dicts and lists.

    Pros:
    - Simple (no external dependencies)
    - Fast (no network overhead)
    - Good for development and testing

    Cons:
    - Not shared (nothing else can write into it)
    - Memory figures are approximations (payload bytes only)
    """

    def __init__(self):
        """Initialize in-memory lists and keys"""
        self._lists: Dict[str, List[bytes]] = {}
        self._keys: Dict[str, bytes] = {}
        self._peak_bytes = 0

    def push(self, key: str, *items) -> int:
        """Append items to a list (seeding helper, like RPUSH)"""
        queue = self._lists.setdefault(key, [])
        for item in items:
            queue.append(item.encode("utf-8") if isinstance(item, str) else item)
        self._peak_bytes = max(self._peak_bytes, self._used_bytes())
        return len(queue)

    def acquire(self, key: str, value: bytes = b"1") -> None:
        """Store a plain key (seeding helper for processor locks)"""
        self._keys[key] = value

    def release(self, key: str) -> None:
        self._keys.pop(key, None)

    def test_connection(self) -> None:
        return None

    def list_range(self, key: str, start: int, count: int) -> List[bytes]:
        if count <= 0 or start < 0:
            return []
        return list(self._lists.get(key, [])[start:start + count])

    def list_length(self, key: str) -> int:
        return len(self._lists.get(key, []))

    def count_keys(self, prefix: str) -> int:
        return sum(1 for key in self._keys if key.startswith(prefix))

    def get_memory_stats(self) -> Dict[str, Any]:
        return {
            "used_memory_human": _human_bytes(self._used_bytes()),
            "used_memory_peak_human": _human_bytes(self._peak_bytes),
        }

    def _used_bytes(self) -> int:
        return sum(len(item) for queue in self._lists.values() for item in queue)


def _human_bytes(size: int) -> str:
    """Format a byte count the way Redis INFO does (e.g. 1.50M)"""
    for unit in ("B", "K", "M", "G"):
        if size < 1024 or unit == "G":
            return f"{size}B" if unit == "B" else f"{size:.2f}{unit}"
        size /= 1024
