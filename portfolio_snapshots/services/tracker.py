import logging
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_snapshots.models import Dividend, Position, PositionStatus, SnapshotPosition
from portfolio_snapshots.services.market_data import MarketDataProvider

logger = logging.getLogger(__name__)


class TrackerService:
    def __init__(self, db: AsyncSession, market_data: Optional[MarketDataProvider] = None):
        self.db = db
        self.market_data = market_data

    async def update_position_prices(self) -> int:
        """
        Fill fetched prices that are still missing: start_price for every
        position, end_price for closed positions with an end date.
        Returns number of positions updated.
        """
        result = await self.db.execute(
            select(Position).where(
                or_(
                    Position.start_price.is_(None),
                    (Position.status == PositionStatus.CLOSED.value)
                    & Position.end_date.is_not(None)
                    & Position.end_price.is_(None),
                )
            )
        )
        positions: List[Position] = list(result.scalars().all())

        updated_count = 0
        for position in positions:
            try:
                changed = False
                if position.start_price is None:
                    price = await self.market_data.get_close_on_or_before(
                        position.ticker, position.start_date
                    )
                    if price is not None:
                        position.start_price = price
                        changed = True

                if (
                    position.status == PositionStatus.CLOSED.value
                    and position.end_date is not None
                    and position.end_price is None
                ):
                    price = await self.market_data.get_close_on_or_before(
                        position.ticker, position.end_date
                    )
                    if price is not None:
                        position.end_price = price
                        changed = True

                if changed:
                    updated_count += 1
            except Exception as e:
                logger.warning(f"Failed to update price for position {position.id}: {e}")

        if updated_count > 0:
            await self.db.commit()
            logger.info(f"Updated prices for {updated_count} positions")

        return updated_count

    async def delete_position(self, position: Position, purge_snapshot_history: bool = False) -> int:
        """
        Delete a position and its dividends.

        Snapshot rows are matched by ticker only, so they are removed only when
        ``purge_snapshot_history`` is set. Returns the number of snapshot rows
        removed.
        """
        purged = 0
        try:
            if purge_snapshot_history:
                result = await self.db.execute(
                    delete(SnapshotPosition).where(SnapshotPosition.ticker == position.ticker)
                )
                purged = result.rowcount
                logger.warning(
                    f"Purged {purged} snapshot rows for ticker {position.ticker} "
                    f"while deleting position {position.id}"
                )

            await self.db.execute(delete(Dividend).where(Dividend.position_id == position.id))
            await self.db.delete(position)
            await self.db.commit()
        except Exception as e:
            logger.error(f"Failed to delete position {position.id}: {e}")
            await self.db.rollback()
            raise

        logger.info(f"Position {position.id} ({position.ticker}) deleted")
        return purged
