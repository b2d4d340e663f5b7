"""
Exception hierarchy for the chat sessions core.
"""


class ChatSessionsError(Exception):
    """Base class for all errors raised by this package."""


class MissingIdentifierError(ChatSessionsError, ValueError):
    """A required user or session identifier was empty."""


class SessionNotFoundError(ChatSessionsError, LookupError):
    """The referenced session is in neither the active nor the archived set."""

    def __init__(self, user_id: str, session_id: str):
        super().__init__(f"Session {session_id} not found for user {user_id}")
        self.user_id = user_id
        self.session_id = session_id


class StorageError(ChatSessionsError):
    """A storage backend failed to read or write."""


def require_identifier(value: str, name: str) -> str:
    """Raise MissingIdentifierError when ``value`` is empty."""
    if not value:
        raise MissingIdentifierError(f"{name} is required")
    return value
