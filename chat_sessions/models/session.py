"""
Session Models - Defines structures for chat sessions and their persisted record.

Documents are stored with camelCase field names; models accept either form
and dump by alias.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_SESSION_TITLE = "New Conversation"

Role = Literal["user", "assistant"]
Sentiment = Literal["positive", "negative", "neutral"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Serialize to the JSON-compatible, camelCase form used in storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChatMessage(CamelModel):
    """A single message. Never modified once appended to a session."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    content: str
    role: Role
    sentiment: Optional[Sentiment] = None
    timestamp: datetime = Field(default_factory=utcnow)


class SessionMetadata(CamelModel):
    """Chat session without its message bodies."""
    id: str
    title: str = DEFAULT_SESSION_TITLE
    created_at: datetime = Field(default_factory=utcnow)
    last_active_at: datetime = Field(default_factory=utcnow)
    message_count: int = 0


class ChatSession(CamelModel):
    """Full session with messages in append order."""
    id: str
    title: str = DEFAULT_SESSION_TITLE
    created_at: datetime = Field(default_factory=utcnow)
    last_active_at: datetime = Field(default_factory=utcnow)
    messages: List[ChatMessage] = Field(default_factory=list)

    def to_metadata(self) -> SessionMetadata:
        return SessionMetadata(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            last_active_at=self.last_active_at,
            message_count=len(self.messages),
        )


class UserSessions(CamelModel):
    """A user's sessions as returned by a fetch."""
    active_sessions: List[ChatSession] = Field(default_factory=list)
    archived_sessions: List[ChatSession] = Field(default_factory=list)
    current_session_id: str = ""


class UserSessionsMetadata(CamelModel):
    """A user's sessions with message bodies stripped."""
    active_sessions: List[SessionMetadata] = Field(default_factory=list)
    archived_sessions: List[SessionMetadata] = Field(default_factory=list)
    current_session_id: str = ""


class UserSessionsRecord(UserSessions):
    """The persisted per-user document."""
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginatedMessages(CamelModel):
    """One page of a session's messages."""
    messages: List[ChatMessage] = Field(default_factory=list)
    total_messages: int = 0
    total_pages: int = 0
    current_page: int = 1


class MaintenanceResult(CamelModel):
    """Outcome of a maintenance run."""
    compacted: bool = False
    archived_session_ids: List[str] = Field(default_factory=list)
