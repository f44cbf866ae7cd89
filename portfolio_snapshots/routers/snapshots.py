import logging
import uuid
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from portfolio_snapshots.config import Settings, get_settings
from portfolio_snapshots.database import get_db
from portfolio_snapshots.models import Snapshot
from portfolio_snapshots.schemas.snapshot import (
    SnapshotResponse,
    SnapshotCreate,
    SnapshotUpdate,
    SnapshotCreateResponse,
    SnapshotPositionResponse,
    SnapshotSummaryResponse,
    SnapshotStatsResponse,
    SnapshotDetailResponse,
    FetchPricesResponse,
    PopulateDividendsResponse,
)
from portfolio_snapshots.services.market_data import (
    SERVICE_NAME,
    MarketDataProvider,
    MarketDataUnavailable,
    get_market_data,
)
from portfolio_snapshots.services.report import render_snapshot_report, report_filename
from portfolio_snapshots.services.returns import classify_return, snapshot_position_return
from portfolio_snapshots.services.snapshot_builder import (
    InvalidSnapshotRange,
    SnapshotBuilder,
    SnapshotNotFound,
)
from portfolio_snapshots.services.summary import summarize_positions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snapshots", tags=["snapshots"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Snapshot not found")


def _service_unavailable(e: MarketDataUnavailable) -> HTTPException:
    return HTTPException(status_code=503, detail=f"{SERVICE_NAME} is unavailable: {e}")


@router.get("", response_model=List[SnapshotResponse])
async def list_snapshots(db: AsyncSession = Depends(get_db)):
    """List snapshots, most recent end date first."""
    result = await db.execute(select(Snapshot).order_by(Snapshot.end_date.desc().nulls_last()))
    return result.scalars().all()


@router.post("/create", response_model=SnapshotCreateResponse)
async def create_snapshot(
    snapshot_data: SnapshotCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a snapshot seeded from the current positions."""
    builder = SnapshotBuilder(db)
    try:
        snapshot, rows = await builder.create_snapshot(
            end_date=snapshot_data.end_date,
            start_date=snapshot_data.start_date,
            notes=snapshot_data.notes,
            name=snapshot_data.name,
        )
    except InvalidSnapshotRange as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SnapshotCreateResponse(
        snapshot_id=snapshot.id,
        status=snapshot.status,
        start_date=snapshot.start_date,
        end_date=snapshot.end_date,
        positions_created=len(rows),
    )


@router.get("/{snapshot_id}", response_model=SnapshotDetailResponse)
async def get_snapshot(snapshot_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Get a snapshot with its positions (ordered by ticker) and summary."""
    builder = SnapshotBuilder(db)
    try:
        snapshot = await builder.get_snapshot(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()

    rows = await builder.get_rows(snapshot_id)
    statuses = await builder.get_position_statuses(rows)

    positions = []
    for row in rows:
        return_pct = snapshot_position_return(row)
        response = SnapshotPositionResponse.model_validate(row)
        response.position_status = statuses.get(row.ticker)
        response.return_pct = return_pct
        response.return_class = classify_return(return_pct)
        positions.append(response)

    # Stats are optional on this page
    stats = None
    try:
        stats = SnapshotStatsResponse(snapshot_id=snapshot.id, **asdict(await builder.get_stats(snapshot_id)))
    except Exception as e:
        logger.warning(f"Failed to compute stats for snapshot {snapshot_id}: {e}")

    return SnapshotDetailResponse(
        snapshot=SnapshotResponse.model_validate(snapshot),
        positions=positions,
        summary=SnapshotSummaryResponse(**asdict(summarize_positions(rows))),
        stats=stats,
    )


@router.put("/{snapshot_id}", response_model=SnapshotResponse)
async def update_snapshot(
    snapshot_id: uuid.UUID,
    update_data: SnapshotUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a snapshot's name, notes or dates. Positions are not touched."""
    builder = SnapshotBuilder(db)
    try:
        snapshot = await builder.get_snapshot(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()

    for field, value in update_data.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value or None
        setattr(snapshot, field, value)

    if snapshot.start_date and snapshot.end_date and snapshot.start_date > snapshot.end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")

    await db.commit()
    await db.refresh(snapshot)
    return snapshot


@router.delete("/{snapshot_id}")
async def delete_snapshot(snapshot_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Delete a snapshot and its positions."""
    builder = SnapshotBuilder(db)
    try:
        deleted_rows = await builder.delete_snapshot(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()

    return {
        "status": "success",
        "snapshot_id": snapshot_id,
        "positions_deleted": deleted_rows,
    }


@router.post("/{snapshot_id}/fetch-prices", response_model=FetchPricesResponse)
async def fetch_prices(
    snapshot_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    market_data: MarketDataProvider = Depends(get_market_data),
):
    """Fill missing snapshot prices from market data."""
    builder = SnapshotBuilder(db, market_data)
    try:
        return await builder.fetch_prices(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()
    except MarketDataUnavailable as e:
        raise _service_unavailable(e)


@router.post("/{snapshot_id}/populate-dividends", response_model=PopulateDividendsResponse)
async def populate_dividends(
    snapshot_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    market_data: MarketDataProvider = Depends(get_market_data),
):
    """Record dividends paid during each snapshot position's holding period."""
    builder = SnapshotBuilder(db, market_data)
    try:
        return await builder.populate_dividends(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()
    except MarketDataUnavailable as e:
        raise _service_unavailable(e)


@router.get("/{snapshot_id}/stats", response_model=SnapshotStatsResponse)
async def get_snapshot_stats(snapshot_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Portfolio statistics for a snapshot."""
    builder = SnapshotBuilder(db)
    try:
        stats = await builder.get_stats(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()

    return SnapshotStatsResponse(snapshot_id=snapshot_id, **asdict(stats))


@router.get("/{snapshot_id}/report", response_class=HTMLResponse)
async def export_report(
    snapshot_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Download the snapshot as a standalone HTML report."""
    builder = SnapshotBuilder(db)
    try:
        snapshot = await builder.get_snapshot(snapshot_id)
    except SnapshotNotFound:
        raise _not_found()

    rows = await builder.get_rows(snapshot_id)
    statuses = await builder.get_position_statuses(rows)
    html = render_snapshot_report(snapshot, rows, statuses, title=settings.report_title)

    return HTMLResponse(
        content=html,
        headers={"Content-Disposition": f'attachment; filename="{report_filename(snapshot)}"'},
    )
