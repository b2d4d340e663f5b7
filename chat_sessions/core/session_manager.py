"""
Session Manager - Owns a user's chat sessions.

Reads go through the cache and fall back to the document store; every
mutation writes through to the store and then drops the cached copy.
"""

import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from ..cache import CacheInterface
from ..config import Settings
from ..errors import SessionNotFoundError, require_identifier
from ..models import (
    ChatMessage, ChatSession, MaintenanceResult, PaginatedMessages, UserSessions,
    UserSessionsMetadata, UserSessionsRecord,
)
from ..models.session import Role, Sentiment, utcnow
from ..storage import DocumentStore
from .activity_tracker import ActivityTracker
from .logging_config import LoggerAdapter, session_logger
from .sentiment import analyze_sentiment

logger = logging.getLogger(__name__)

_DOCUMENT_FIELDS = {
    "active_sessions": "activeSessions",
    "archived_sessions": "archivedSessions",
    "current_session_id": "currentSessionId",
}

_last_session_millis = 0


def generate_session_id() -> str:
    """Time-based session id, strictly increasing within the process."""
    global _last_session_millis
    millis = max(int(time.time() * 1000), _last_session_millis + 1)
    _last_session_millis = millis
    return f"session_{millis}"


def get_sessions_cache_key(user_id: str) -> str:
    return f"user-sessions-{user_id}"


def get_metadata_cache_key(user_id: str) -> str:
    return f"user-sessions-metadata-{user_id}"


def derive_title(content: str) -> str:
    """First four words of a message, with an ellipsis if there were more."""
    words = content.split(" ")
    return " ".join(words[:4]) + ("..." if len(words) > 4 else "")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionManager:
    """
    Manages the per-user sessions document.
    One instance serves all users; every operation takes the user id.
    """

    def __init__(
        self,
        documents: DocumentStore,
        cache: CacheInterface,
        activity: ActivityTracker,
        settings: Settings,
    ):
        """
        Args:
            documents: Authoritative document store
            cache: TTL cache for derived copies of user documents
            activity: Client-local activity tracker used for staleness
            settings: Thresholds, TTLs and collection name
        """
        self.documents = documents
        self.cache = cache
        self.activity = activity
        self.settings = settings
        self.collection = settings.sessions_collection

    def _log(self, user_id: str, session_id: Optional[str] = None) -> LoggerAdapter:
        return session_logger(logger, user_id, session_id)

    def _new_session(self) -> ChatSession:
        now = utcnow()
        return ChatSession(
            id=generate_session_id(),
            title=self.settings.default_session_title,
            created_at=now,
            last_active_at=now,
        )

    @staticmethod
    def _dump(sessions: Iterable[ChatSession]) -> List[dict]:
        return [session.to_document() for session in sessions]

    async def _write(self, user_id: str, **fields: List[ChatSession] | str) -> None:
        """Partial update of the user's document; lists of sessions are serialized."""
        payload = {}
        for name, value in fields.items():
            payload[_DOCUMENT_FIELDS[name]] = value if isinstance(value, str) else self._dump(value)
        await self.documents.update_document(self.collection, user_id, payload)

    async def _invalidate(self, user_id: str) -> None:
        """Drop the cached full-session copy. Attempted once; expiry covers a miss."""
        key = get_sessions_cache_key(user_id)
        try:
            await self.cache.delete(key)
        except Exception:
            self._log(user_id).exception(f"Failed to invalidate cache key {key}")

    # ------------------------------------------------------------------
    # Initialisation and reads
    # ------------------------------------------------------------------

    async def initialize_sessions_record(self, user_id: str) -> str:
        """
        Create the user's sessions document with one empty current session.

        If a document already exists it is updated in place rather than
        overwritten, so a concurrent initialisation keeps the other fields.

        Returns:
            str: Id of the new current session
        """
        require_identifier(user_id, "User ID")
        session = self._new_session()
        data = UserSessionsRecord(
            user_id=user_id,
            active_sessions=[session],
            current_session_id=session.id,
        ).to_document()

        existing = await self.documents.get_document(self.collection, user_id)
        if existing is None:
            await self.documents.create_document(self.collection, user_id, data)
        else:
            await self.documents.update_document(self.collection, user_id, data)

        self._log(user_id).info(f"Initialized sessions record with session {session.id}")
        return session.id

    async def _read_record(self, user_id: str) -> UserSessions:
        document = await self.documents.get_document(self.collection, user_id)
        if document is None:
            await self.initialize_sessions_record(user_id)
            document = await self.documents.get_document(self.collection, user_id)
            if document is None:
                raise RuntimeError(f"Sessions record for {user_id} missing after initialization")
        return UserSessions.model_validate(document)

    async def _load_sessions(self, user_id: str) -> UserSessions:
        """Cached read that propagates backend errors. Used by write paths."""
        require_identifier(user_id, "User ID")
        return await self.cache.get_or_set(
            get_sessions_cache_key(user_id),
            lambda: self._read_record(user_id),
            self.settings.sessions_cache_ttl_seconds,
        )

    async def get_user_sessions(self, user_id: str) -> UserSessions:
        """
        Get a user's active and archived sessions, creating the record on first access.

        Served from cache for up to ``sessions_cache_ttl_seconds``.

        Raises:
            MissingIdentifierError: if user_id is empty
        """
        require_identifier(user_id, "User ID")
        try:
            return await self._load_sessions(user_id)
        except Exception:
            self._log(user_id).exception("Error fetching user sessions")
            return UserSessions()

    async def get_session_metadata(self, user_id: str) -> UserSessionsMetadata:
        """
        Get sessions without message bodies (faster initial load).

        Uses its own cache entry with a shorter TTL than full sessions.

        Raises:
            MissingIdentifierError: if user_id is empty
        """
        require_identifier(user_id, "User ID")

        async def load_metadata() -> UserSessionsMetadata:
            sessions = await self._load_sessions(user_id)
            return UserSessionsMetadata(
                active_sessions=[s.to_metadata() for s in sessions.active_sessions],
                archived_sessions=[s.to_metadata() for s in sessions.archived_sessions],
                current_session_id=sessions.current_session_id,
            )

        try:
            return await self.cache.get_or_set(
                get_metadata_cache_key(user_id),
                load_metadata,
                self.settings.metadata_cache_ttl_seconds,
            )
        except Exception:
            self._log(user_id).exception("Error fetching session metadata")
            return UserSessionsMetadata()

    @staticmethod
    def _find_in(sessions: UserSessions, session_id: str) -> Optional[ChatSession]:
        # Active wins if an id somehow appears in both sets
        for session in sessions.active_sessions:
            if session.id == session_id:
                return session
        for session in sessions.archived_sessions:
            if session.id == session_id:
                return session
        return None

    async def find_session_by_id(self, user_id: str, session_id: str) -> Optional[ChatSession]:
        """Look a session up in active sessions first, then archived. None if absent."""
        require_identifier(user_id, "User ID")
        try:
            sessions = await self._load_sessions(user_id)
        except Exception:
            self._log(user_id, session_id).exception("Error finding session")
            return None
        return self._find_in(sessions, session_id)

    async def get_session_messages(self, user_id: str, session_id: str) -> List[ChatMessage]:
        """All messages of a session, or an empty list if it does not exist."""
        require_identifier(user_id, "User ID")
        require_identifier(session_id, "Session ID")
        session = await self.find_session_by_id(user_id, session_id)
        return list(session.messages) if session else []

    async def get_paginated_session_messages(
        self,
        user_id: str,
        session_id: str,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedMessages:
        """
        Get one page of a session's messages.

        Args:
            user_id: User identifier
            session_id: Session identifier
            page: 1-based page number; clamped into [1, max(total_pages, 1)]
            page_size: Messages per page

        Returns:
            PaginatedMessages; empty with total_pages=0 if the session is unknown
        """
        require_identifier(user_id, "User ID")
        require_identifier(session_id, "Session ID")
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        session = await self.find_session_by_id(user_id, session_id)
        if session is None:
            return PaginatedMessages()

        total_messages = len(session.messages)
        total_pages = math.ceil(total_messages / page_size)
        valid_page = max(1, min(page, total_pages or 1))

        start = (valid_page - 1) * page_size
        end = min(start + page_size, total_messages)

        return PaginatedMessages(
            messages=session.messages[start:end],
            total_messages=total_messages,
            total_pages=total_pages,
            current_page=valid_page,
        )

    # ------------------------------------------------------------------
    # Maintenance: compaction and archival
    # ------------------------------------------------------------------

    @staticmethod
    def _compact(session: ChatSession, threshold: int, keep_first: int, keep_last: int) -> ChatSession:
        if len(session.messages) <= threshold:
            return session
        messages = session.messages[:keep_first] + session.messages[len(session.messages) - keep_last:]
        return session.model_copy(update={"messages": messages})

    async def compact_session_data(self, user_id: str) -> bool:
        """
        Trim long histories to their opening and most recent messages.

        The current session is never compacted. The store is written (and
        the cache invalidated) only if the result differs from what is stored.

        Returns:
            bool: True if a write happened
        """
        if not user_id:
            logger.warning("compact_session_data called without a user id")
            return False

        s = self.settings
        sessions = await self._load_sessions(user_id)

        compact_active = [
            session if session.id == sessions.current_session_id
            else self._compact(session, s.active_compaction_threshold, s.active_keep_first, s.active_keep_last)
            for session in sessions.active_sessions
        ]
        compact_archived = [
            self._compact(session, s.archived_compaction_threshold, s.archived_keep_first, s.archived_keep_last)
            for session in sessions.archived_sessions
        ]

        if compact_active == sessions.active_sessions and compact_archived == sessions.archived_sessions:
            return False

        await self._write(user_id, active_sessions=compact_active, archived_sessions=compact_archived)
        await self._invalidate(user_id)
        self._log(user_id).info("Compacted session data")
        return True

    async def archive_old_sessions(self, user_id: str) -> List[str]:
        """
        Move long-idle sessions from the active list to the archive.

        Only runs when there are more than ``max_active_sessions`` active
        sessions. The current session always stays active. Archived sessions
        are prepended, most recently archived first.

        Returns:
            List[str]: Ids of the archived sessions (empty means no write)
        """
        if not user_id:
            logger.warning("archive_old_sessions called without a user id")
            return []

        sessions = await self._load_sessions(user_id)
        active = sessions.active_sessions
        current_id = sessions.current_session_id

        if len(active) <= self.settings.max_active_sessions or (
            len(active) == 1 and active[0].id == current_id
        ):
            return []

        cutoff = utcnow() - timedelta(days=self.settings.archive_after_days)
        to_archive = [
            session for session in active
            if session.id != current_id and _as_utc(session.last_active_at) < cutoff
        ]
        if not to_archive:
            return []

        archived_ids = {session.id for session in to_archive}
        remaining = [session for session in active if session.id not in archived_ids]

        await self._write(
            user_id,
            active_sessions=remaining,
            archived_sessions=to_archive + sessions.archived_sessions,
        )
        await self._invalidate(user_id)
        self._log(user_id).info(f"Archived {len(to_archive)} sessions")
        return [session.id for session in to_archive]

    async def run_maintenance(self, user_id: str) -> MaintenanceResult:
        """Compact, then archive. Errors propagate to the caller."""
        compacted = await self.compact_session_data(user_id)
        archived = await self.archive_old_sessions(user_id)
        return MaintenanceResult(compacted=compacted, archived_session_ids=archived)

    # ------------------------------------------------------------------
    # Session creation, switching and messages
    # ------------------------------------------------------------------

    async def get_or_create_session(self, user_id: str) -> str:
        """Return the current session id, creating a session if there is no valid one."""
        require_identifier(user_id, "User ID")
        document = await self.documents.get_document(self.collection, user_id)
        if document is None:
            return await self.initialize_sessions_record(user_id)

        sessions = UserSessions.model_validate(document)
        if any(s.id == sessions.current_session_id for s in sessions.active_sessions):
            return sessions.current_session_id

        session = self._new_session()
        await self._write(
            user_id,
            active_sessions=[session] + sessions.active_sessions,
            current_session_id=session.id,
        )
        await self._invalidate(user_id)
        return session.id

    async def create_new_session(self, user_id: str) -> str:
        """
        Create a session and make it current.

        If that pushes the active list past ``max_active_sessions``, the
        oldest entries move to the front of the archive.
        """
        require_identifier(user_id, "User ID")
        document = await self.documents.get_document(self.collection, user_id)
        if document is None:
            return await self.initialize_sessions_record(user_id)

        sessions = UserSessions.model_validate(document)
        session = self._new_session()
        active = [session] + sessions.active_sessions
        limit = self.settings.max_active_sessions

        if len(active) > limit:
            overflow = active[limit:]
            await self._write(
                user_id,
                active_sessions=active[:limit],
                archived_sessions=overflow + sessions.archived_sessions,
                current_session_id=session.id,
            )
        else:
            await self._write(user_id, active_sessions=active, current_session_id=session.id)

        await self._invalidate(user_id)
        await self.activity.update_last_active_time(session.id)
        self._log(user_id, session.id).info("Created session")
        return session.id

    @staticmethod
    def _locate(sessions: UserSessions, session_id: str) -> Tuple[Optional[int], bool]:
        for i, session in enumerate(sessions.active_sessions):
            if session.id == session_id:
                return i, True
        for i, session in enumerate(sessions.archived_sessions):
            if session.id == session_id:
                return i, False
        return None, False

    async def _read_for_update(self, user_id: str, session_id: str) -> UserSessions:
        document = await self.documents.get_document(self.collection, user_id)
        if document is None:
            raise SessionNotFoundError(user_id, session_id)
        return UserSessions.model_validate(document)

    async def set_current_session(self, user_id: str, session_id: str) -> None:
        """
        Make ``session_id`` the current session.

        An archived session is moved back to the front of the active list.

        Raises:
            SessionNotFoundError: if the session does not exist
        """
        require_identifier(user_id, "User ID")
        require_identifier(session_id, "Session ID")

        sessions = await self._read_for_update(user_id, session_id)
        index, is_active = self._locate(sessions, session_id)
        if index is None:
            raise SessionNotFoundError(user_id, session_id)

        if is_active:
            await self._write(user_id, current_session_id=session_id)
        else:
            archived = list(sessions.archived_sessions)
            session = archived.pop(index)
            await self._write(
                user_id,
                active_sessions=[session] + sessions.active_sessions,
                archived_sessions=archived,
                current_session_id=session_id,
            )

        await self.activity.update_last_active_time(session_id)
        await self._invalidate(user_id)

    @staticmethod
    def _with_sentiment(message: ChatMessage) -> ChatMessage:
        if message.role != "user" or message.sentiment is not None:
            return message
        return message.model_copy(update={"sentiment": analyze_sentiment(message.content)})

    async def add_messages(
        self,
        user_id: str,
        session_id: str,
        messages: List[ChatMessage],
    ) -> List[ChatMessage]:
        """
        Append messages to a session in one write.

        The session's ``lastActiveAt`` moves to now, and a default title is
        replaced by the start of the first user message. Appending to an
        archived session brings it back to the active list as current.
        User messages without a sentiment are scored before they are stored.

        Raises:
            SessionNotFoundError: if the session does not exist
        """
        require_identifier(user_id, "User ID")
        require_identifier(session_id, "Session ID")
        if not messages:
            return []
        messages = [self._with_sentiment(m) for m in messages]

        sessions = await self._read_for_update(user_id, session_id)
        index, is_active = self._locate(sessions, session_id)
        if index is None:
            raise SessionNotFoundError(user_id, session_id)

        source = sessions.active_sessions if is_active else sessions.archived_sessions
        session = source[index]

        title = session.title
        if title == self.settings.default_session_title:
            first_user = next((m for m in messages if m.role == "user"), None)
            if first_user is not None:
                title = derive_title(first_user.content)

        updated = session.model_copy(update={
            "messages": session.messages + list(messages),
            "last_active_at": utcnow(),
            "title": title,
        })

        if is_active:
            active = list(sessions.active_sessions)
            active[index] = updated
            await self._write(user_id, active_sessions=active)
        else:
            archived = list(sessions.archived_sessions)
            archived.pop(index)
            await self._write(
                user_id,
                active_sessions=[updated] + sessions.active_sessions,
                archived_sessions=archived,
                current_session_id=session_id,
            )

        await self._invalidate(user_id)
        await self.activity.update_last_active_time(session_id)
        return list(messages)

    async def add_message(
        self,
        user_id: str,
        session_id: str,
        content: str,
        role: Role,
        sentiment: Optional[Sentiment] = None,
    ) -> ChatMessage:
        """
        Append a single message. See add_messages.

        Raises:
            ValueError: if content is empty
        """
        if not content:
            raise ValueError("Message content is required")
        message = ChatMessage(content=content, role=role, sentiment=sentiment)
        added = await self.add_messages(user_id, session_id, [message])
        return added[0]

    # ------------------------------------------------------------------
    # Client-local activity
    # ------------------------------------------------------------------

    async def is_session_stale(self, session_id: str) -> bool:
        return await self.activity.is_session_stale(session_id)

    async def update_last_active_time(self, session_id: str) -> None:
        await self.activity.update_last_active_time(session_id)
