import aiohttp
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Request

logger = logging.getLogger(__name__)

SERVICE_NAME = "Market data service"

PricePoint = Tuple[date, Decimal]


class MarketDataUnavailable(Exception):
    """The upstream price/dividend service could not be reached or failed."""


def _to_timestamp(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


def _to_date(timestamp: int) -> date:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


class MarketDataProvider(ABC):
    """Source of daily closing prices and dividend payments."""

    @abstractmethod
    async def get_daily_closes(self, ticker: str, start: date, end: date) -> List[PricePoint]:
        """Daily closes for start <= day <= end, oldest first."""

    @abstractmethod
    async def get_dividends(self, ticker: str, start: date, end: date) -> List[PricePoint]:
        """Dividend payments with start < payment_date <= end, oldest first."""

    async def get_close_on_or_before(
        self, ticker: str, day: date, lookback_days: int = 7
    ) -> Optional[Decimal]:
        """Last close on or before ``day``, looking back over weekends and holidays."""
        closes = await self.get_daily_closes(ticker, day - timedelta(days=lookback_days), day)
        eligible = [price for point_date, price in closes if point_date <= day]
        return eligible[-1] if eligible else None

    async def close(self):
        pass


class MarketDataClient(MarketDataProvider):
    def __init__(self, base_url: str, timeout_seconds: int = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": "Mozilla/5.0", "Accept": "application/json"}
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, url: str, params: Optional[Dict] = None) -> Optional[Any]:
        session = await self._get_session()
        try:
            async with session.get(url, params=params, timeout=self.timeout) as response:
                if response.status == 404:
                    return None
                response.raise_for_status()
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Request failed for {url}: {e}")
            raise MarketDataUnavailable(f"{SERVICE_NAME} request failed: {e}") from e

    async def _get_chart(self, ticker: str, start: date, end: date) -> Optional[Dict]:
        url = f"{self.base_url}/{ticker}"
        params = {
            "period1": _to_timestamp(start),
            "period2": _to_timestamp(end + timedelta(days=1)),
            "interval": "1d",
            "events": "div",
        }
        data = await self._request(url, params)
        if not isinstance(data, dict) or not data:
            logger.warning(f"No chart data for {ticker}")
            return None

        results = (data.get("chart") or {}).get("result") or []
        return results[0] if results else None

    async def get_daily_closes(self, ticker: str, start: date, end: date) -> List[PricePoint]:
        chart = await self._get_chart(ticker, start, end)
        if not chart:
            return []

        timestamps = chart.get("timestamp") or []
        quotes = (chart.get("indicators") or {}).get("quote") or [{}]
        closes = quotes[0].get("close") or []

        points = []
        for timestamp, close in zip(timestamps, closes):
            if close is None:
                continue
            point_date = _to_date(timestamp)
            if start <= point_date <= end:
                points.append((point_date, Decimal(str(close))))
        return points

    async def get_dividends(self, ticker: str, start: date, end: date) -> List[PricePoint]:
        chart = await self._get_chart(ticker, start, end)
        if not chart:
            return []

        events = ((chart.get("events") or {}).get("dividends") or {}).values()
        payments = []
        for event in events:
            try:
                payment_date = _to_date(int(event["date"]))
                amount = Decimal(str(event["amount"]))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed dividend event for {ticker}: {event}, error: {e}")
                continue
            if start < payment_date <= end:
                payments.append((payment_date, amount))
        return sorted(payments)


class DemoMarketDataClient(MarketDataProvider):
    """Deterministic prices and quarterly dividends for demo mode and tests."""

    EPOCH = date(2024, 1, 1)
    DIVIDEND_MONTHS = (3, 6, 9, 12)
    DIVIDEND_AMOUNT = Decimal("0.24")

    def _base_price(self, ticker: str) -> Decimal:
        return Decimal(50 + sum(ord(c) for c in ticker.upper()) % 150)

    def price_on(self, ticker: str, day: date) -> Decimal:
        drift = Decimal("0.0005") * (day - self.EPOCH).days
        return (self._base_price(ticker) * (1 + drift)).quantize(Decimal("0.01"))

    async def get_daily_closes(self, ticker: str, start: date, end: date) -> List[PricePoint]:
        points = []
        day = start
        while day <= end:
            if day.weekday() < 5:
                points.append((day, self.price_on(ticker, day)))
            day += timedelta(days=1)
        return points

    async def get_dividends(self, ticker: str, start: date, end: date) -> List[PricePoint]:
        payments = []
        for year in range(start.year, end.year + 1):
            for month in self.DIVIDEND_MONTHS:
                payment_date = date(year, month, 15)
                if start < payment_date <= end:
                    payments.append((payment_date, self.DIVIDEND_AMOUNT))
        return payments


def create_market_data_client(settings) -> MarketDataProvider:
    if settings.demo_mode:
        logger.warning("Database not configured. Using demo market data.")
        return DemoMarketDataClient()
    return MarketDataClient(settings.market_data_base_url, settings.market_data_timeout_seconds)


def get_market_data(request: Request) -> MarketDataProvider:
    """Dependency returning the application's market data client."""
    return request.app.state.market_data
