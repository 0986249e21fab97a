"""
Per-tenant, per-day usage counters. One row per (user_id, date), upserted on every counted
request; requests_count feeds the daily request limit.
"""
from sqlalchemy import Column, Integer, BigInteger, Date, ForeignKey, UniqueConstraint
from cloud_variables.db.base import Base


class UsageStats(Base):
    __tablename__ = "usage_stats"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_usage_stats_user_id_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    requests_count = Column(Integer, default=0, nullable=False)
    variables_created = Column(Integer, default=0, nullable=False)
    variables_updated = Column(Integer, default=0, nullable=False)
    variables_deleted = Column(Integer, default=0, nullable=False)
    variables_read = Column(Integer, default=0, nullable=False)
    total_bytes_stored = Column(BigInteger, default=0, nullable=False)
    total_bytes_transferred = Column(BigInteger, default=0, nullable=False)

    def __repr__(self):
        return f"<UsageStats(user_id={self.user_id}, date={self.date}, requests={self.requests_count})>"
