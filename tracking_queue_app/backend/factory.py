"""
Factory for creating backend instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum
from .strategies import BackendStrategy, RedisBackend, InMemoryBackend
from tracking_queue_app.config import settings
from tracking_queue_app.exceptions import ConfigurationError


class BackendType(Enum):
    """Available queue backends"""
    REDIS = "redis"
    MEMORY = "memory"


class BackendFactory:
    """
    Simple factory for creating backend instances.
    
    Gets configuration from settings (not passed as parameters).
    Unlike a cache, the diagnostics are meaningless against an empty
    stand-in, so a failed connection is raised instead of falling back.
    """
    
    _instance: BackendStrategy = None  # Single cached instance
    
    @classmethod
    def create(cls, backend: BackendType) -> BackendStrategy:
        """
        Create or return cached backend instance.
        
        Args:
            backend: Type of backend (from enum)
            
        Returns:
            Singleton backend instance
            
        Raises:
            ConfigurationError: if the Redis URL cannot be parsed
            BackendUnavailableError: if the connection test fails
        """
        # Return cached instance if exists
        if cls._instance is not None:
            return cls._instance
        
        # Create new instance based on backend type
        if backend == BackendType.REDIS:
            import redis
            
            # Get config from settings
            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=settings.redis_socket_timeout,
                    socket_timeout=settings.redis_socket_timeout,
                )
            except ValueError as e:
                raise ConfigurationError(f"Invalid redis_url {settings.redis_url!r}: {e}")
            instance = RedisBackend(redis_client)
            
        elif backend == BackendType.MEMORY:
            instance = InMemoryBackend()
            
        else:
            raise ConfigurationError(f"Unknown queue backend: {backend}")
        
        # Test connection immediately
        instance.test_connection()
        cls._instance = instance
        print(f"✅ {backend.value} backend initialized")
        
        return cls._instance
    
    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
