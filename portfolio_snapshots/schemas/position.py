import uuid
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from portfolio_snapshots.models.position import PositionStatus


class PositionResponse(BaseModel):
    id: uuid.UUID
    ticker: str
    company_name: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_price: Optional[Decimal] = None
    end_price: Optional[Decimal] = None
    start_price_override: Optional[Decimal] = None
    end_price_override: Optional[Decimal] = None
    effective_start_price: Optional[Decimal] = None
    effective_end_price: Optional[Decimal] = None
    status: PositionStatus
    return_pct: Optional[float] = None
    return_class: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PositionCreate(BaseModel):
    ticker: str = Field(min_length=1, max_length=20)
    company_name: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    start_price: Optional[Decimal] = Field(default=None, ge=0)
    end_price: Optional[Decimal] = Field(default=None, ge=0)
    start_price_override: Optional[Decimal] = Field(default=None, ge=0)
    end_price_override: Optional[Decimal] = Field(default=None, ge=0)
    status: PositionStatus = PositionStatus.OPEN

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be blank")
        return v


class PositionUpdate(BaseModel):
    ticker: Optional[str] = Field(default=None, min_length=1, max_length=20)
    company_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_price_override: Optional[Decimal] = Field(default=None, ge=0)
    end_price_override: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[PositionStatus] = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be blank")
        return v


class PositionDeleteResponse(BaseModel):
    id: uuid.UUID
    ticker: str
    snapshot_rows_purged: int
