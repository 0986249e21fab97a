"""
Append-only audit trail of tier changes made by admins. Rows are never updated or deleted
by the application.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from cloud_variables.db.base import Base, utcnow


class PromotionHistory(Base):
    __tablename__ = "promotion_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    from_tier_id = Column(Integer, ForeignKey("tiers.id"), nullable=False)
    to_tier_id = Column(Integer, ForeignKey("tiers.id"), nullable=False)
    promoted_by = Column(Integer, nullable=False)  # admin user id
    reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
