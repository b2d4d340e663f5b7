"""
Activity Tracker - Client-local record of when each session was last used.

Staleness answers "has this client been away", so it is kept apart from the
durable ``lastActiveAt`` field on the session document.
"""

import logging
import time
from datetime import timedelta
from typing import Optional

from ..storage import KeyValueStore

logger = logging.getLogger(__name__)

STALE_CHAT_THRESHOLD = timedelta(hours=6)
LOCAL_STORAGE_KEY_PREFIX = "chat_last_active_"


def _now_millis() -> int:
    return int(time.time() * 1000)


class ActivityTracker:
    """
    Tracks the last-active instant per session id in a KeyValueStore.
    Values are epoch milliseconds stored as text.
    """

    def __init__(
        self,
        store: KeyValueStore,
        stale_threshold: timedelta = STALE_CHAT_THRESHOLD,
        key_prefix: str = LOCAL_STORAGE_KEY_PREFIX,
    ):
        self.store = store
        self.stale_threshold = stale_threshold
        self.key_prefix = key_prefix

    def _get_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def update_last_active_time(self, session_id: str) -> None:
        """Record now as the session's last-active instant."""
        try:
            await self.store.set(self._get_key(session_id), str(_now_millis()))
        except Exception:
            logger.exception(f"Error updating last active time for session {session_id}")

    async def get_last_active_millis(self, session_id: str) -> Optional[int]:
        value = await self.store.get(self._get_key(session_id))
        if not value:
            return None
        return int(value)

    async def is_session_stale(self, session_id: str) -> bool:
        """
        Check whether the session has been idle longer than the threshold.

        A session with no local record is not stale, so a first load never
        shows a stale prompt. Any read error also counts as not stale.
        """
        try:
            last_active = await self.get_last_active_millis(session_id)
        except Exception:
            logger.exception(f"Error checking if session {session_id} is stale")
            return False

        if last_active is None:
            return False

        threshold_ms = self.stale_threshold.total_seconds() * 1000
        return (_now_millis() - last_active) > threshold_ms

    async def clear(self, session_id: str) -> None:
        await self.store.remove(self._get_key(session_id))
