import uuid
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Literal

from portfolio_snapshots.database import get_db
from portfolio_snapshots.models import Position
from portfolio_snapshots.schemas.position import (
    PositionResponse,
    PositionCreate,
    PositionUpdate,
    PositionDeleteResponse,
)
from portfolio_snapshots.services.returns import (
    classify_return,
    effective_price,
    filter_by_status,
    position_return,
)
from portfolio_snapshots.services.tracker import TrackerService

router = APIRouter(prefix="/positions", tags=["positions"])


def _position_response(position: Position) -> PositionResponse:
    return_pct = position_return(position)
    return PositionResponse(
        id=position.id,
        ticker=position.ticker,
        company_name=position.company_name,
        start_date=position.start_date,
        end_date=position.end_date,
        start_price=position.start_price,
        end_price=position.end_price,
        start_price_override=position.start_price_override,
        end_price_override=position.end_price_override,
        effective_start_price=effective_price(position.start_price, position.start_price_override),
        effective_end_price=effective_price(position.end_price, position.end_price_override),
        status=position.status,
        return_pct=return_pct,
        return_class=classify_return(return_pct),
        created_at=position.created_at,
        updated_at=position.updated_at,
    )


async def _get_position_or_404(db: AsyncSession, position_id: uuid.UUID) -> Position:
    result = await db.execute(select(Position).where(Position.id == position_id))
    position = result.scalar_one_or_none()
    if not position:
        raise HTTPException(status_code=404, detail="Position not found")
    return position


def _check_dates(position: Position) -> None:
    if position.end_date is not None and position.end_date < position.start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")


@router.get("", response_model=List[PositionResponse])
async def list_positions(
    status: Literal["all", "open", "closed"] = Query(default="all", description="Filter by status: all, open, closed"),
    db: AsyncSession = Depends(get_db),
):
    """List positions, newest first, optionally filtered by status."""
    result = await db.execute(select(Position).order_by(Position.created_at.desc()))
    positions = filter_by_status(result.scalars().all(), status)
    return [_position_response(position) for position in positions]


@router.get("/{position_id}", response_model=PositionResponse)
async def get_position(position_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Get a specific position by ID."""
    position = await _get_position_or_404(db, position_id)
    return _position_response(position)


@router.post("", response_model=PositionResponse)
async def create_position(
    position_data: PositionCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new position."""
    position = Position(
        ticker=position_data.ticker,
        company_name=position_data.company_name,
        start_date=position_data.start_date,
        end_date=position_data.end_date,
        start_price=position_data.start_price,
        end_price=position_data.end_price,
        start_price_override=position_data.start_price_override,
        end_price_override=position_data.end_price_override,
        status=position_data.status.value,
    )
    _check_dates(position)

    db.add(position)
    await db.commit()
    await db.refresh(position)

    return _position_response(position)


@router.put("/{position_id}", response_model=PositionResponse)
async def update_position(
    position_id: uuid.UUID,
    update_data: PositionUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update an existing position. Only fields present in the body change."""
    position = await _get_position_or_404(db, position_id)

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if field == "status" and value is not None:
            value = value.value
        if field in ("ticker", "start_date", "status") and value is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be cleared")
        setattr(position, field, value)
    _check_dates(position)

    await db.commit()
    await db.refresh(position)

    return _position_response(position)


@router.delete("/{position_id}", response_model=PositionDeleteResponse)
async def delete_position(
    position_id: uuid.UUID,
    purge_snapshot_history: bool = Query(
        default=False,
        description="Also delete snapshot rows with the same ticker in every snapshot",
    ),
    db: AsyncSession = Depends(get_db),
):
    """Delete a position and its dividends."""
    position = await _get_position_or_404(db, position_id)
    ticker = position.ticker

    tracker = TrackerService(db)
    purged = await tracker.delete_position(position, purge_snapshot_history=purge_snapshot_history)

    return PositionDeleteResponse(id=position_id, ticker=ticker, snapshot_rows_purged=purged)
