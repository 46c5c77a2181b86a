"""
Dependency providers for the commands.

This module builds the backend, queue manager and processor lock from
settings so the commands only deal with already wired objects.

Pattern: Dependency Injection
- Analyzer and monitor receive their collaborators
- Tests build the same objects around an InMemoryBackend
"""

from functools import lru_cache

from tracking_queue_app.backend.factory import BackendFactory, BackendType
from tracking_queue_app.backend.strategies import BackendStrategy
from tracking_queue_app.config import settings
from tracking_queue_app.exceptions import ConfigurationError
from tracking_queue_app.queue.manager import ProcessingLock, QueueManager


@lru_cache()
def get_backend() -> BackendStrategy:
    """
    Get backend instance (singleton).
    
    Factory gets config from settings internally and tests the
    connection before returning.
    
    Raises:
        ConfigurationError: if the backend setting names no known backend
        BackendUnavailableError: if the backend cannot be reached
    """
    try:
        backend = BackendType(settings.backend)
    except ValueError:
        raise ConfigurationError(f"Unknown queue backend: {settings.backend}")
    return BackendFactory.create(backend)


def get_queue_manager(backend: BackendStrategy) -> QueueManager:
    return QueueManager(
        backend,
        number_of_queues=settings.number_of_queue_workers,
        requests_to_process=settings.number_of_requests_to_process,
        key_prefix=settings.queue_key_prefix,
    )


def get_lock(backend: BackendStrategy) -> ProcessingLock:
    return ProcessingLock(backend, key_prefix=settings.lock_key_prefix)
