"""
Shared test fixtures and helpers.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from chat_sessions.cache import MemoryCache
from chat_sessions.config import Settings
from chat_sessions.core import ActivityTracker, SessionManager
from chat_sessions.models import ChatMessage, ChatSession
from chat_sessions.storage import LocalDocumentStore, LocalStorage, MemoryKeyValueStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        local_storage_path=str(tmp_path / "data"),
        log_file_enabled=False,
        log_console_enabled=False,
    )


@pytest.fixture
def storage(test_settings):
    return LocalStorage(test_settings.local_storage_path)


@pytest.fixture
def documents(storage):
    return LocalDocumentStore(storage)


@pytest.fixture
def cache():
    return MemoryCache(default_ttl_seconds=300, max_size=20)


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture
def tracker(kv_store):
    return ActivityTracker(kv_store)


@pytest.fixture
def manager(documents, cache, tracker, test_settings):
    return SessionManager(documents, cache, tracker, test_settings)


def make_messages(count: int, prefix: str = "msg") -> List[ChatMessage]:
    """Alternating user/assistant messages with distinct contents."""
    return [
        ChatMessage(content=f"{prefix} {i}", role="user" if i % 2 == 0 else "assistant")
        for i in range(count)
    ]


def make_session(
    session_id: str,
    message_count: int = 0,
    days_idle: float = 0,
    title: str = "New Conversation",
) -> ChatSession:
    last_active = datetime.now(timezone.utc) - timedelta(days=days_idle)
    return ChatSession(
        id=session_id,
        title=title,
        created_at=last_active,
        last_active_at=last_active,
        messages=make_messages(message_count, prefix=session_id),
    )


async def seed_record(
    documents: LocalDocumentStore,
    user_id: str,
    active: List[ChatSession],
    archived: Optional[List[ChatSession]] = None,
    current_session_id: Optional[str] = None,
    collection: str = "chatSessions",
) -> None:
    """Write a sessions document directly to the store."""
    await documents.create_document(collection, user_id, {
        "userId": user_id,
        "activeSessions": [s.to_document() for s in active],
        "archivedSessions": [s.to_document() for s in archived or []],
        "currentSessionId": current_session_id or active[0].id,
    })
