import logging
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from portfolio_snapshots.config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _create_engine():
    settings = get_settings()
    if settings.demo_mode:
        # One shared in-memory connection so every session sees the same data
        return create_async_engine(
            settings.effective_database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        settings.effective_database_url,
        pool_pre_ping=True,
    )


engine = _create_engine()

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a request-scoped session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except HTTPException:
            await session.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error, rolling back: {type(e).__name__}: {e}")
            await session.rollback()
            raise


DEMO_POSITIONS = [
    ("AAPL", "Apple Inc.", date(2024, 1, 15), Decimal("185.50")),
    ("MSFT", "Microsoft Corporation", date(2024, 2, 1), Decimal("412.80")),
    ("GOOGL", "Alphabet Inc.", date(2024, 1, 20), Decimal("142.65")),
]


async def init_demo_database() -> None:
    """Create the schema in the in-memory database and seed sample positions."""
    # Import models so they register on Base.metadata
    from portfolio_snapshots.models import Position, PositionStatus

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Position.id).limit(1))
        if result.first() is not None:
            return

        for ticker, company_name, start_date, start_price in DEMO_POSITIONS:
            session.add(
                Position(
                    ticker=ticker,
                    company_name=company_name,
                    start_date=start_date,
                    start_price=start_price,
                    status=PositionStatus.OPEN.value,
                )
            )
        await session.commit()
        logger.info(f"Seeded demo database with {len(DEMO_POSITIONS)} positions")
