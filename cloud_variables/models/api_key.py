from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from cloud_variables.db.base import Base, utcnow


class ApiKey(Base):
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    key_hash = Column(String, nullable=False)
    prefix = Column(String(16), nullable=False, index=True)  # non-secret lookup index
    last_used_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    permissions = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at < utcnow()

    def is_valid(self) -> bool:
        return bool(self.is_active) and not self.is_expired()
