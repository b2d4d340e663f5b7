"""
Application context - wires storage, cache and managers together once per process.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .cache import CacheInterface, MemoryCache
from .config import Settings, settings as default_settings
from .core import ActivityTracker, QuotaManager, SessionManager
from .core.logging_config import setup_logging
from .storage import (
    DocumentStore, KeyValueStore, LocalDocumentStore, LocalStorage, StorageKeyValueStore,
)

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Process-wide services. Build one with create_app_context() and pass it around."""
    settings: Settings
    documents: DocumentStore
    cache: CacheInterface
    local_store: KeyValueStore
    activity: ActivityTracker
    sessions: SessionManager
    quota: QuotaManager


async def create_app_context(
    config: Optional[Settings] = None,
    local_store: Optional[KeyValueStore] = None,
    configure_logging: bool = True,
) -> AppContext:
    """
    Build the application context.

    Args:
        config: Settings to use; defaults to the module-level settings
        local_store: Platform key/value store for client-local state.
            Defaults to a file-backed store under the local storage path.
        configure_logging: Whether to install the logging handlers

    Returns:
        AppContext with the quota state already loaded
    """
    config = config or default_settings
    if configure_logging:
        setup_logging(config)

    storage = LocalStorage(config.local_storage_path)
    documents = LocalDocumentStore(storage)
    cache = MemoryCache(
        default_ttl_seconds=config.cache_default_ttl_seconds,
        max_size=config.cache_max_size,
    )

    if local_store is None:
        local_store = StorageKeyValueStore(storage, namespace=config.activity_namespace)
    quota_store = StorageKeyValueStore(storage, namespace=config.quota_namespace)

    activity = ActivityTracker(
        local_store,
        stale_threshold=timedelta(hours=config.stale_chat_threshold_hours),
        key_prefix=config.activity_key_prefix,
    )
    sessions = SessionManager(documents, cache, activity, config)
    quota = QuotaManager(
        quota_store,
        daily_limit=config.quota_daily_limit,
        call_cost=config.quota_call_cost,
        history_size=config.quota_history_size,
        storage_key=config.quota_storage_key,
    )
    await quota.load()

    logger.info(f"Starting {config.app_name} v{config.app_version}")
    logger.info(f"Storage path: {config.local_storage_path}")

    return AppContext(
        settings=config,
        documents=documents,
        cache=cache,
        local_store=local_store,
        activity=activity,
        sessions=sessions,
        quota=quota,
    )
