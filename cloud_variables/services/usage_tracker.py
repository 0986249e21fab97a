"""
Daily usage counters per tenant. Feeds the daily request limit and the /api/usage report.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cloud_variables.db.base import utcnow
from cloud_variables.models.usage_stats import UsageStats

logger = logging.getLogger(__name__)

COUNTERS = (
    "requests_count",
    "variables_created",
    "variables_updated",
    "variables_deleted",
    "variables_read",
    "total_bytes_stored",
    "total_bytes_transferred",
)


def today() -> date:
    return utcnow().date()


class UsageTracker:
    def __init__(self, db: Session):
        self.db = db

    def get_today(self, user_id: int) -> Optional[UsageStats]:
        return self.db.query(UsageStats).filter(
            UsageStats.user_id == user_id,
            UsageStats.date == today(),
        ).first()

    def get_or_create_today(self, user_id: int) -> UsageStats:
        """
        Get or create the counter row for (user_id, today).
        A concurrent request may insert the row first; the unique constraint makes us re-read it.
        """
        stats = self.get_today(user_id)
        if stats:
            return stats

        stats = UsageStats(user_id=user_id, date=today(), **{name: 0 for name in COUNTERS})
        self.db.add(stats)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            stats = self.get_today(user_id)
            if stats is None:
                raise
            return stats
        self.db.refresh(stats)
        return stats

    def record(self, user_id: int, **increments: int) -> None:
        """Add to today's counters, e.g. record(user_id, requests_count=1)."""
        unknown = set(increments) - set(COUNTERS)
        if unknown:
            raise ValueError(f"Unknown usage counters: {sorted(unknown)}")
        values = {
            getattr(UsageStats, name): getattr(UsageStats, name) + amount
            for name, amount in increments.items()
            if amount
        }
        if not values:
            return

        stats = self.get_or_create_today(user_id)
        self.db.query(UsageStats).filter(UsageStats.id == stats.id).update(
            values, synchronize_session=False
        )
        self.db.commit()

    def requests_today(self, user_id: int) -> int:
        stats = self.get_today(user_id)
        return stats.requests_count if stats else 0
