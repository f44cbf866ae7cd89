"""Pytest configuration and fixtures."""

import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Tuple

# Set test env vars before any app import
os.environ["DATABASE_URL"] = ""
os.environ["API_KEY"] = ""
os.environ["PRICE_REFRESH_INTERVAL_SECONDS"] = "0"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import portfolio_snapshots.models  # noqa: F401  registers tables
from portfolio_snapshots.database import Base, get_db
from portfolio_snapshots.main import app
from portfolio_snapshots.services.market_data import (
    MarketDataProvider,
    MarketDataUnavailable,
    get_market_data,
)


class StubMarketData(MarketDataProvider):
    """Market data with explicit closes and dividends per ticker."""

    def __init__(self):
        self.closes: Dict[str, Dict[date, Decimal]] = {}
        self.dividends: Dict[str, List[Tuple[date, Decimal]]] = {}
        self.calls = 0

    def set_close(self, ticker: str, day: date, price) -> None:
        self.closes.setdefault(ticker, {})[day] = Decimal(str(price))

    def add_dividend(self, ticker: str, day: date, amount) -> None:
        self.dividends.setdefault(ticker, []).append((day, Decimal(str(amount))))

    async def get_daily_closes(self, ticker, start, end):
        self.calls += 1
        points = self.closes.get(ticker, {})
        return sorted((d, p) for d, p in points.items() if start <= d <= end)

    async def get_dividends(self, ticker, start, end):
        self.calls += 1
        return sorted((d, a) for d, a in self.dividends.get(ticker, []) if start < d <= end)


class FailingMarketData(MarketDataProvider):
    async def get_daily_closes(self, ticker, start, end):
        raise MarketDataUnavailable("connection refused")

    async def get_dividends(self, ticker, start, end):
        raise MarketDataUnavailable("connection refused")


@pytest.fixture()
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session


@pytest.fixture()
def market_data() -> StubMarketData:
    return StubMarketData()


@pytest.fixture()
async def client(db_session, market_data) -> AsyncGenerator[AsyncClient, None]:
    """Test client with database and market data overrides."""

    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_market_data] = lambda: market_data

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def position_payload():
    def _make(ticker="AAPL", **overrides):
        payload = {
            "ticker": ticker,
            "company_name": f"{ticker} Inc.",
            "start_date": "2024-08-05",
            "status": "Open",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture()
def market_data_outage(client):
    """Swap the client's market data for one that always fails."""
    app.dependency_overrides[get_market_data] = lambda: FailingMarketData()
