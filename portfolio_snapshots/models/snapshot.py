import enum
import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship
from portfolio_snapshots.database import Base
from portfolio_snapshots.models.position import utcnow


class SnapshotStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETE = "complete"


class Snapshot(Base):
    __tablename__ = "snapshots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255))
    start_date = Column(Date)
    end_date = Column(Date)
    notes = Column(Text)
    status = Column(String(20), nullable=False, default=SnapshotStatus.PENDING.value)
    overall_portfolio_return_pct = Column(Numeric(10, 4))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    positions = relationship("SnapshotPosition", back_populates="snapshot", passive_deletes=True)

    def __repr__(self):
        return f"<Snapshot(id={self.id}, name={self.name}, end_date={self.end_date})>"


class SnapshotPosition(Base):
    __tablename__ = "snapshot_positions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    snapshot_id = Column(Uuid, ForeignKey("snapshots.id"), nullable=False, index=True)
    ticker = Column(String(20), nullable=False, index=True)
    company_name = Column(String(255))
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_price = Column(Numeric(18, 4))
    end_price = Column(Numeric(18, 4))
    return_pct_at_snapshot = Column(Numeric(10, 4))
    dividends_paid = Column(Numeric(18, 6), nullable=False, default=0)
    status = Column(String(10))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    snapshot = relationship("Snapshot", back_populates="positions")

    def __repr__(self):
        return f"<SnapshotPosition(snapshot_id={self.snapshot_id}, ticker={self.ticker})>"
