from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from cloud_variables.db.base import Base, utcnow


class Variable(Base):
    """
    Ledger row for one tenant variable. The JSON document itself lives in the blob store at
    storage_path; this row must never outlive its blob.
    """
    __tablename__ = "variables"
    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_variables_user_id_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    key = Column(String(255), nullable=False)
    description = Column(String, nullable=True)
    size_bytes = Column(BigInteger, default=0, nullable=False)
    version = Column(Integer, default=1, nullable=False)
    storage_path = Column(String, nullable=False)
    is_encrypted = Column(Boolean, default=False, nullable=False)  # flag only, no cipher applied
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Variable(id={self.id}, user_id={self.user_id}, key={self.key}, version={self.version})>"
