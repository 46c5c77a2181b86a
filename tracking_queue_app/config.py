from pydantic_settings import BaseSettings, SettingsConfigDict

from tracking_queue_app import __version__


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """
    
    # Application
    app_name: str = "Tracking Queue Diagnostics"
    app_version: str = __version__
    
    # Backend
    backend: str = "redis"  # Options: "redis", "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: int = 2
    
    # Queue layout (must match the tracker writing into the queue)
    queue_key_prefix: str = "trackingQueueV1"
    lock_key_prefix: str = "trackingProcessorLock"
    number_of_queue_workers: int = 1
    number_of_requests_to_process: int = 25
    queue_enabled: bool = True
    process_during_tracking_request: bool = True
    
    # Analyzer
    analyze_page_size: int = 25  # Request sets fetched per LRANGE window
    
    # Monitor
    monitor_per_page: int = 16
    monitor_refresh_interval_ms: int = 2000
    monitor_tick_ms: int = 5  # Sleep between input polls
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
