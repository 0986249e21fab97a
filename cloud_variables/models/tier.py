from sqlalchemy import Column, Integer, String, Boolean, DateTime
from cloud_variables.db.base import Base, utcnow


class Tier(Base):
    __tablename__ = "tiers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String, nullable=True)
    max_variables = Column(Integer, nullable=False)
    max_variable_size_mb = Column(Integer, nullable=False)
    max_requests_per_day = Column(Integer, nullable=False)
    max_api_keys = Column(Integer, nullable=False)
    price_monthly = Column(Integer, default=0, nullable=False)  # in cents; 0 marks the default tier
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Tier(id={self.id}, name={self.name}, price_monthly={self.price_monthly})>"
