import logging
import uuid
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_snapshots.models import (
    Dividend,
    Position,
    PositionStatus,
    Snapshot,
    SnapshotPosition,
    SnapshotStatus,
)
from portfolio_snapshots.services.market_data import MarketDataProvider
from portfolio_snapshots.services.returns import compute_return, effective_price, snapshot_position_return
from portfolio_snapshots.services.summary import SnapshotStats, overall_return_pct, snapshot_stats

logger = logging.getLogger(__name__)


class SnapshotNotFound(Exception):
    pass


class InvalidSnapshotRange(ValueError):
    pass


def _as_pct(value: Optional[float]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(round(value, 4)))


class SnapshotBuilder:
    def __init__(self, db: AsyncSession, market_data: Optional[MarketDataProvider] = None):
        self.db = db
        self.market_data = market_data

    async def get_snapshot(self, snapshot_id: uuid.UUID) -> Snapshot:
        result = await self.db.execute(select(Snapshot).where(Snapshot.id == snapshot_id))
        snapshot = result.scalar_one_or_none()
        if snapshot is None:
            raise SnapshotNotFound(str(snapshot_id))
        return snapshot

    async def get_rows(self, snapshot_id: uuid.UUID) -> List[SnapshotPosition]:
        result = await self.db.execute(
            select(SnapshotPosition)
            .where(SnapshotPosition.snapshot_id == snapshot_id)
            .order_by(SnapshotPosition.ticker.asc())
        )
        return list(result.scalars().all())

    async def get_position_statuses(self, rows: List[SnapshotPosition]) -> Dict[str, str]:
        """
        Live status of each row's ticker from the positions table, falling back
        to the status copied into the row when no position matches.
        """
        tickers = {row.ticker for row in rows}
        statuses: Dict[str, str] = {}
        if tickers:
            result = await self.db.execute(
                select(Position.ticker, Position.status).where(Position.ticker.in_(sorted(tickers)))
            )
            for ticker, status in result.all():
                # Any open position with the ticker keeps it open
                if statuses.get(ticker) != PositionStatus.OPEN.value:
                    statuses[ticker] = status

        return {
            row.ticker: statuses.get(row.ticker, row.status)
            for row in rows
        }

    async def create_snapshot(
        self,
        end_date: date,
        start_date: Optional[date] = None,
        notes: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Tuple[Snapshot, List[SnapshotPosition]]:
        """
        Create a snapshot and seed one row per position active in the range.

        Positions that started after ``end_date`` or closed before
        ``start_date`` are skipped. Row dates are clipped to the range, and a
        position's own (override-aware) prices are copied only where the row
        date is the position's own start or end date.
        """
        if start_date is not None and start_date > end_date:
            raise InvalidSnapshotRange("start_date must be on or before end_date")

        result = await self.db.execute(select(Position).order_by(Position.ticker.asc()))
        positions = [p for p in result.scalars().all() if p.start_date <= end_date]

        if start_date is None:
            start_date = min((p.start_date for p in positions), default=end_date)

        snapshot = Snapshot(
            name=name,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
            status=SnapshotStatus.PENDING.value,
        )
        self.db.add(snapshot)
        await self.db.flush()

        rows = []
        for position in positions:
            if position.end_date is not None and position.end_date < start_date:
                continue

            row_start = max(position.start_date, start_date)
            row_end = min(position.end_date or end_date, end_date)

            start_price = None
            if row_start == position.start_date:
                start_price = effective_price(position.start_price, position.start_price_override)

            end_price = None
            if position.end_date is not None and row_end == position.end_date:
                end_price = effective_price(position.end_price, position.end_price_override)

            row = SnapshotPosition(
                snapshot_id=snapshot.id,
                ticker=position.ticker,
                company_name=position.company_name,
                start_date=row_start,
                end_date=row_end,
                start_price=start_price,
                end_price=end_price,
                return_pct_at_snapshot=_as_pct(compute_return(start_price, end_price)),
                dividends_paid=Decimal("0"),
                status=position.status,
            )
            self.db.add(row)
            rows.append(row)

        self._refresh_snapshot_totals(snapshot, rows)
        await self.db.commit()

        logger.info(
            f"Snapshot {snapshot.id} created: {start_date} to {end_date}, "
            f"{len(rows)} positions"
        )
        return snapshot, rows

    async def fetch_prices(self, snapshot_id: uuid.UUID) -> Dict:
        """Fill missing start/end prices from market data and recompute returns."""
        snapshot = await self.get_snapshot(snapshot_id)
        rows = await self.get_rows(snapshot_id)

        updated = 0
        try:
            for row in rows:
                changed = False
                if row.start_price is None:
                    price = await self.market_data.get_close_on_or_before(row.ticker, row.start_date)
                    if price is not None:
                        row.start_price = price
                        changed = True
                if row.end_price is None:
                    price = await self.market_data.get_close_on_or_before(row.ticker, row.end_date)
                    if price is not None:
                        row.end_price = price
                        changed = True

                if changed:
                    row.return_pct_at_snapshot = _as_pct(snapshot_position_return(row))
                    updated += 1
        except Exception as e:
            logger.error(f"Failed to fetch prices for snapshot {snapshot_id}: {e}")
            await self.db.rollback()
            raise

        missing = sum(1 for row in rows if row.start_price is None or row.end_price is None)
        self._refresh_snapshot_totals(snapshot, rows)
        await self.db.commit()

        logger.info(f"Snapshot {snapshot_id} prices fetched: updated={updated}, missing={missing}")
        return {
            "snapshot_id": snapshot.id,
            "status": snapshot.status,
            "updated": updated,
            "missing": missing,
        }

    async def populate_dividends(self, snapshot_id: uuid.UUID) -> Dict:
        """
        Record dividends paid inside each row's holding period and set the
        row's dividends_paid to their sum.
        """
        snapshot = await self.get_snapshot(snapshot_id)
        rows = await self.get_rows(snapshot_id)

        positions_by_ticker = defaultdict(list)
        result = await self.db.execute(
            select(Position).where(Position.ticker.in_(sorted({row.ticker for row in rows})))
        )
        for position in result.scalars().all():
            positions_by_ticker[position.ticker].append(position)

        updated = 0
        recorded = 0
        known_dates: Dict[uuid.UUID, set] = {}
        try:
            for row in rows:
                payments = await self.market_data.get_dividends(row.ticker, row.start_date, row.end_date)
                payments = [(day, amount) for day, amount in payments if amount > 0]

                total = sum((amount for _, amount in payments), Decimal("0"))
                if total != (row.dividends_paid or Decimal("0")):
                    row.dividends_paid = total
                    row.return_pct_at_snapshot = _as_pct(snapshot_position_return(row))
                    updated += 1

                position = self._match_position(positions_by_ticker[row.ticker], row)
                if position is not None and payments:
                    recorded += await self._record_dividends(position, payments, known_dates)
        except Exception as e:
            logger.error(f"Failed to populate dividends for snapshot {snapshot_id}: {e}")
            await self.db.rollback()
            raise

        self._refresh_snapshot_totals(snapshot, rows)
        await self.db.commit()

        logger.info(
            f"Snapshot {snapshot_id} dividends populated: rows updated={updated}, "
            f"dividends recorded={recorded}"
        )
        return {
            "snapshot_id": snapshot.id,
            "updated": updated,
            "dividends_recorded": recorded,
        }

    async def get_stats(self, snapshot_id: uuid.UUID) -> SnapshotStats:
        await self.get_snapshot(snapshot_id)
        rows = await self.get_rows(snapshot_id)
        return snapshot_stats(rows)

    async def delete_snapshot(self, snapshot_id: uuid.UUID) -> int:
        """Delete a snapshot's rows, then the snapshot itself."""
        snapshot = await self.get_snapshot(snapshot_id)

        result = await self.db.execute(
            delete(SnapshotPosition).where(SnapshotPosition.snapshot_id == snapshot.id)
        )
        await self.db.flush()
        await self.db.delete(snapshot)
        await self.db.commit()

        logger.info(f"Snapshot {snapshot_id} deleted with {result.rowcount} positions")
        return result.rowcount

    @staticmethod
    def _match_position(candidates: List[Position], row: SnapshotPosition) -> Optional[Position]:
        for position in candidates:
            if position.start_date <= row.end_date and (
                position.end_date is None or position.end_date >= row.start_date
            ):
                return position
        return None

    async def _record_dividends(
        self,
        position: Position,
        payments: List[Tuple[date, Decimal]],
        known_dates: Dict[uuid.UUID, set],
    ) -> int:
        if position.id not in known_dates:
            result = await self.db.execute(
                select(Dividend.payment_date).where(Dividend.position_id == position.id)
            )
            known_dates[position.id] = set(result.scalars().all())
        known = known_dates[position.id]

        added = 0
        for payment_date, amount in payments:
            if payment_date in known:
                continue
            self.db.add(Dividend(position_id=position.id, payment_date=payment_date, amount=amount))
            known.add(payment_date)
            added += 1
        return added

    @staticmethod
    def _refresh_snapshot_totals(snapshot: Snapshot, rows: List[SnapshotPosition]) -> None:
        snapshot.overall_portfolio_return_pct = _as_pct(overall_return_pct(rows))
        fully_priced = all(row.start_price is not None and row.end_price is not None for row in rows)
        snapshot.status = (
            SnapshotStatus.COMPLETE.value if rows and fully_priced else SnapshotStatus.PENDING.value
        )
