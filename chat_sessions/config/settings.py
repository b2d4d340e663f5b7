"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Chat Sessions"
    app_version: str = "1.0.0"

    # Storage
    local_storage_path: str = "./data"
    sessions_collection: str = "chatSessions"
    activity_namespace: str = "activity"
    quota_namespace: str = "quota"

    # Sessions
    default_session_title: str = "New Conversation"
    stale_chat_threshold_hours: float = 6
    activity_key_prefix: str = "chat_last_active_"
    max_active_sessions: int = 5
    archive_after_days: float = 30

    # Compaction: sessions above the threshold keep first N + last M messages
    active_compaction_threshold: int = 50
    active_keep_first: int = 10
    active_keep_last: int = 40
    archived_compaction_threshold: int = 20
    archived_keep_first: int = 5
    archived_keep_last: int = 15

    # Cache
    cache_max_size: int = 20
    cache_default_ttl_seconds: float = 5 * 60
    sessions_cache_ttl_seconds: float = 60
    metadata_cache_ttl_seconds: float = 30  # metadata must converge faster

    # Upstream API quota
    quota_daily_limit: int = 5000  # 50 searches per day
    quota_call_cost: int = 100
    quota_history_size: int = 20
    quota_storage_key: str = "youtube_quota_simple"

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/chat_sessions.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
