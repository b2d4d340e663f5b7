"""
Quota Manager - Daily budget for a rate-limited upstream API.

Usage resets lazily: the first load on a new calendar day clears the
counter and the call history. There is no background timer.
"""

import logging
from datetime import date

from pydantic import ValidationError

from ..errors import StorageError
from ..models import DailyStats, QuotaCall, QuotaData, QuotaInfo
from ..storage import KeyValueStore
from .logging_config import truncate_large_data

logger = logging.getLogger(__name__)

STORAGE_KEY = "youtube_quota_simple"
DAILY_LIMIT = 5000  # 50 searches per day at 100 units each
CALL_COST = 100
HISTORY_SIZE = 20


class QuotaManager:
    """
    Tracks consumption against a fixed daily limit.

    Build one per process and pass it to every caller that issues
    upstream requests.
    """

    def __init__(
        self,
        store: KeyValueStore,
        daily_limit: int = DAILY_LIMIT,
        call_cost: int = CALL_COST,
        history_size: int = HISTORY_SIZE,
        storage_key: str = STORAGE_KEY,
    ):
        """
        Args:
            store: Where the quota record is persisted
            daily_limit: Units available per calendar day
            call_cost: Units consumed by one call
            history_size: Number of recent calls retained
            storage_key: Key of the persisted record
        """
        self.store = store
        self.daily_limit = daily_limit
        self.call_cost = call_cost
        self.history_size = history_size
        self.storage_key = storage_key
        self.quota_data = QuotaData(last_reset_date=self._today())
        # Set while a persisted record may exist that we failed to read
        self._record_unread = False

    @staticmethod
    def _today() -> str:
        return date.today().isoformat()

    async def load(self) -> None:
        """Load persisted state, resetting it if it belongs to an earlier day."""
        try:
            stored = await self.store.get(self.storage_key)
        except Exception:
            logger.exception("Error loading quota data")
            self._record_unread = True
            return

        self._record_unread = False

        if not stored:
            return

        try:
            data = QuotaData.model_validate_json(stored)
        except ValidationError:
            logger.exception("Discarding unreadable quota data")
            return

        today = self._today()
        if data.last_reset_date != today:
            logger.info(f"New day, resetting quota usage (was {data.daily_usage})")
            data = QuotaData(last_reset_date=today)

        self.quota_data = data

    async def save(self) -> None:
        await self.store.set(self.storage_key, self.quota_data.model_dump_json(by_alias=True))

    def can_make_call(self) -> bool:
        return self.quota_data.daily_usage < self.daily_limit

    async def record_call(self, query: str, success: bool) -> None:
        """
        Charge one call against today's budget and persist.

        The in-memory counter is updated before persisting so the next
        can_make_call() sees it even if the save is still in flight.

        If the last load() could not read the stored record, it is read
        again first; the call is refused rather than overwriting usage
        that was never loaded.

        Raises:
            StorageError: if the stored record is still unreadable or the
                save fails
        """
        if self._record_unread:
            await self.load()
            if self._record_unread:
                raise StorageError("Quota record could not be read, refusing to overwrite it")

        data = self.quota_data
        data.daily_usage += self.call_cost
        data.call_history.append(QuotaCall(success=success, query=query))
        if len(data.call_history) > self.history_size:
            data.call_history = data.call_history[-self.history_size:]

        await self.save()
        logger.info(
            f"API call recorded ({'ok' if success else 'failed'}: {truncate_large_data(query)}). "
            f"Usage: {data.daily_usage}/{self.daily_limit}"
        )

    def get_quota_info(self) -> QuotaInfo:
        used = self.quota_data.daily_usage
        remaining = max(0, self.daily_limit - used)
        percentage = used / self.daily_limit * 100

        if percentage > 80:
            status = "critical"
        elif percentage > 60:
            status = "warning"
        else:
            status = "healthy"

        return QuotaInfo(used=used, remaining=remaining, percentage=f"{percentage:.1f}", status=status)

    def get_daily_stats(self) -> DailyStats:
        """Stats over the retained call history, not lifetime totals."""
        history = self.quota_data.call_history
        total = len(history)
        successful = sum(1 for call in history if call.success)
        success_rate = f"{successful / total * 100:.1f}" if total else "0"

        return DailyStats(
            total_calls=total,
            successful_calls=successful,
            success_rate=f"{success_rate}%",
            remaining_calls=self.get_quota_info().remaining // self.call_cost,
        )

    @property
    def daily_usage(self) -> int:
        return self.quota_data.daily_usage

    @property
    def last_reset_date(self) -> str:
        return self.quota_data.last_reset_date
