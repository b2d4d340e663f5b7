"""
Quota Models - Daily usage state for a rate-limited upstream API.
"""

from datetime import datetime
from typing import List, Literal

from pydantic import Field

from .session import CamelModel, utcnow

QuotaStatus = Literal["healthy", "warning", "critical"]


class QuotaCall(CamelModel):
    """One recorded upstream call."""
    timestamp: datetime = Field(default_factory=utcnow)
    success: bool
    query: str


class QuotaData(CamelModel):
    """Persisted quota state."""
    daily_usage: int = 0
    last_reset_date: str  # ISO calendar date, e.g. "2024-05-01"
    call_history: List[QuotaCall] = Field(default_factory=list)


class QuotaInfo(CamelModel):
    used: int
    remaining: int
    percentage: str  # one decimal place, e.g. "62.5"
    status: QuotaStatus


class DailyStats(CamelModel):
    total_calls: int
    successful_calls: int
    success_rate: str  # e.g. "75.0%"
    remaining_calls: int
