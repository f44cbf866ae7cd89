import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid
from portfolio_snapshots.database import Base
from portfolio_snapshots.models.position import utcnow


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=False)
    description = Column(Text)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Setting(key={self.key}, value={self.value})>"
