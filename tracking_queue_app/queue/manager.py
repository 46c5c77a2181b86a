"""
Read-only views of the sharded tracking queue.

The tracker spreads request sets over ``number_of_queues`` Redis lists.
Shard 0 is stored under the bare key prefix, every other shard under
``<prefix>_<id>``. Processors take a lock per shard while they work on it.
"""

from typing import List

from tracking_queue_app.backend.strategies import BackendStrategy


class Shard:
    """One partition of the queue, identified by its index."""

    def __init__(self, backend: BackendStrategy, shard_id: int, key_prefix: str = "trackingQueueV1"):
        self.backend = backend
        self.shard_id = shard_id
        self.key_prefix = key_prefix

    def get_id(self) -> int:
        return self.shard_id

    def get_key(self) -> str:
        if self.shard_id:
            return f"{self.key_prefix}_{self.shard_id}"
        return self.key_prefix

    def get_number_of_request_sets_in_queue(self) -> int:
        return self.backend.list_length(self.get_key())

    def __repr__(self):
        return f"Shard(id={self.shard_id}, key={self.get_key()!r})"


class QueueManager:
    """
    Entry point to all shards of the queue.

    Args:
        backend: Backend the shards are read from
        number_of_queues: Number of shards the tracker writes into
        requests_to_process: Minimum number of queued sets before a processor starts
        key_prefix: Key of shard 0, other shards append ``_<id>``
    """

    def __init__(
        self,
        backend: BackendStrategy,
        number_of_queues: int = 1,
        requests_to_process: int = 25,
        key_prefix: str = "trackingQueueV1"
    ):
        if number_of_queues < 1:
            raise ValueError(f"number_of_queues must be at least 1, got {number_of_queues}")
        self.backend = backend
        self.number_of_queues = number_of_queues
        self.requests_to_process = requests_to_process
        self.key_prefix = key_prefix

    def get_number_of_available_queues(self) -> int:
        return self.number_of_queues

    def get_all_queues(self) -> List[Shard]:
        return [Shard(self.backend, shard_id, self.key_prefix) for shard_id in range(self.number_of_queues)]

    def get_number_of_requests_to_process_at_same_time(self) -> int:
        return self.requests_to_process


class ProcessingLock:
    """Counts the shard locks currently held by queue processors."""

    def __init__(self, backend: BackendStrategy, key_prefix: str = "trackingProcessorLock"):
        self.backend = backend
        self.key_prefix = key_prefix

    def get_number_of_acquired_locks(self) -> int:
        return self.backend.count_keys(self.key_prefix)
