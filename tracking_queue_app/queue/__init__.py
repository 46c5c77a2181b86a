"""
Queue module for the tracking queue diagnostics.
Read-only views of the shards and the stored request sets.
"""

from .manager import QueueManager, Shard, ProcessingLock
from .models import Request, RequestSet, RequestSetState

__all__ = [
    "QueueManager",
    "Shard",
    "ProcessingLock",
    "Request",
    "RequestSet",
    "RequestSetState",
]
