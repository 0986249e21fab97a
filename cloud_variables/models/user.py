import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from cloud_variables.db.base import Base, utcnow


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # stored lower-cased
    password_hash = Column(String, nullable=False)
    role = Column(String, default=UserRole.USER.value, nullable=False)
    tier_id = Column(Integer, ForeignKey("tiers.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
