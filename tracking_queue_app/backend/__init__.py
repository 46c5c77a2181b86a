"""
Backend module for the tracking queue diagnostics.
Implements Strategy Pattern for flexible queue backends.
"""

from .strategies import BackendStrategy, RedisBackend, InMemoryBackend
from .factory import BackendFactory, BackendType

__all__ = [
    "BackendStrategy",
    "RedisBackend",
    "InMemoryBackend",
    "BackendFactory",
    "BackendType",
]
