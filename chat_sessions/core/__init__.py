"""Core module - session lifecycle, client-local activity and quota tracking."""

from .activity_tracker import ActivityTracker
from .quota_manager import QuotaManager
from .sentiment import analyze_sentiment
from .session_manager import SessionManager

__all__ = ['ActivityTracker', 'QuotaManager', 'SessionManager', 'analyze_sentiment']
