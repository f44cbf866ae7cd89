from pydantic_settings import BaseSettings
from functools import lru_cache

PLACEHOLDER_VALUES = {
    "",
    "your_database_url_here",
    "your_api_key_here",
    "changeme",
}

DEMO_DATABASE_URL = "sqlite+aiosqlite://"


class Settings(BaseSettings):
    # Database
    database_url: str = ""

    # Access control (X-API-Key header)
    api_key: str = ""

    # Market data
    market_data_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    market_data_timeout_seconds: int = 30

    # Polling (0 disables the price refresh job)
    price_refresh_interval_seconds: int = 0

    # Report
    report_title: str = "Microcap Opportunities Portfolio"

    # Logging
    log_level: str = "INFO"

    @property
    def demo_mode(self) -> bool:
        """True when no real database is configured."""
        return self.database_url.strip() in PLACEHOLDER_VALUES

    @property
    def api_key_enabled(self) -> bool:
        return self.api_key.strip() not in PLACEHOLDER_VALUES

    @property
    def effective_database_url(self) -> str:
        if self.demo_mode:
            return DEMO_DATABASE_URL
        url = self.database_url
        # Supabase/Heroku style URLs need the async driver
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        if url.startswith("postgresql://"):
            url = "postgresql+asyncpg://" + url[len("postgresql://"):]
        return url

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def libpq_database_url(url: str) -> str:
    """Strip a SQLAlchemy ``+driver`` suffix so psycopg2 accepts the URL."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{scheme.split('+', 1)[0]}://{rest}"
