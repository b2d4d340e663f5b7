"""Chat Sessions - conversation-session lifecycle and cache-coherency core."""

from .context import AppContext, create_app_context
from .errors import ChatSessionsError, MissingIdentifierError, SessionNotFoundError, StorageError

__all__ = [
    'AppContext', 'create_app_context',
    'ChatSessionsError', 'MissingIdentifierError', 'SessionNotFoundError', 'StorageError',
]

__version__ = "1.0.0"
