import uuid
from pydantic import BaseModel
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class SnapshotResponse(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    status: str
    overall_portfolio_return_pct: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SnapshotCreate(BaseModel):
    end_date: date
    start_date: Optional[date] = None
    notes: Optional[str] = None
    name: Optional[str] = None


class SnapshotUpdate(BaseModel):
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None


class SnapshotCreateResponse(BaseModel):
    snapshot_id: uuid.UUID
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    positions_created: int


class SnapshotPositionResponse(BaseModel):
    id: uuid.UUID
    snapshot_id: uuid.UUID
    ticker: str
    company_name: Optional[str] = None
    start_date: date
    end_date: date
    start_price: Optional[Decimal] = None
    end_price: Optional[Decimal] = None
    return_pct_at_snapshot: Optional[float] = None
    dividends_paid: Decimal = Decimal("0")
    status: Optional[str] = None
    position_status: Optional[str] = None
    return_pct: Optional[float] = None
    return_class: Optional[str] = None

    class Config:
        from_attributes = True


class SnapshotSummaryResponse(BaseModel):
    total_positions: int
    winners: int
    losers: int
    total_dividends: float
    average_return: float

    class Config:
        from_attributes = True


class PerformerResponse(BaseModel):
    ticker: str
    return_pct: float

    class Config:
        from_attributes = True


class SnapshotStatsResponse(SnapshotSummaryResponse):
    snapshot_id: Optional[uuid.UUID] = None
    priced_positions: int
    overall_return: Optional[float] = None
    best_performer: Optional[PerformerResponse] = None
    worst_performer: Optional[PerformerResponse] = None


class SnapshotDetailResponse(BaseModel):
    snapshot: SnapshotResponse
    positions: List[SnapshotPositionResponse]
    summary: SnapshotSummaryResponse
    stats: Optional[SnapshotStatsResponse] = None


class FetchPricesResponse(BaseModel):
    snapshot_id: uuid.UUID
    status: str
    updated: int
    missing: int


class PopulateDividendsResponse(BaseModel):
    snapshot_id: uuid.UUID
    updated: int
    dividends_recorded: int
