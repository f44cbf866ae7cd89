import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from portfolio_snapshots.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PositionStatus(str, enum.Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class Position(Base):
    __tablename__ = "positions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    ticker = Column(String(20), nullable=False, index=True)
    company_name = Column(String(255))
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    start_price = Column(Numeric(18, 4))
    end_price = Column(Numeric(18, 4))
    start_price_override = Column(Numeric(18, 4))
    end_price_override = Column(Numeric(18, 4))
    status = Column(String(10), nullable=False, default=PositionStatus.OPEN.value)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    dividends = relationship("Dividend", back_populates="position", passive_deletes=True)

    def __repr__(self):
        return f"<Position(id={self.id}, ticker={self.ticker}, status={self.status})>"


class Dividend(Base):
    __tablename__ = "dividends"
    __table_args__ = (
        UniqueConstraint("position_id", "payment_date", name="uq_dividends_position_payment_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    position_id = Column(Uuid, ForeignKey("positions.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    amount = Column(Numeric(18, 6), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    position = relationship("Position", back_populates="dividends")

    def __repr__(self):
        return f"<Dividend(position_id={self.position_id}, date={self.payment_date}, amount={self.amount})>"
