"""Models module."""

from .session import (
    DEFAULT_SESSION_TITLE, ChatMessage, ChatSession, SessionMetadata, UserSessions,
    UserSessionsMetadata, UserSessionsRecord, PaginatedMessages, MaintenanceResult,
)
from .quota import QuotaCall, QuotaData, QuotaInfo, DailyStats

__all__ = [
    'DEFAULT_SESSION_TITLE', 'ChatMessage', 'ChatSession', 'SessionMetadata', 'UserSessions',
    'UserSessionsMetadata', 'UserSessionsRecord', 'PaginatedMessages', 'MaintenanceResult',
    'QuotaCall', 'QuotaData', 'QuotaInfo', 'DailyStats',
]
