import pytest

from portfolio_snapshots.config import DEMO_DATABASE_URL, Settings, libpq_database_url


@pytest.mark.parametrize("url", ["", "   ", "your_database_url_here", "changeme"])
def test_placeholder_database_url_enables_demo_mode(url):
    settings = Settings(database_url=url, _env_file=None)
    assert settings.demo_mode
    assert settings.effective_database_url == DEMO_DATABASE_URL


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@db:5432/app", "postgresql+asyncpg://u:p@db:5432/app"),
        ("postgresql://u:p@db:5432/app", "postgresql+asyncpg://u:p@db:5432/app"),
        ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("sqlite+aiosqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_effective_database_url(url, expected):
    settings = Settings(database_url=url, _env_file=None)
    assert not settings.demo_mode
    assert settings.effective_database_url == expected


def test_api_key_enabled():
    assert not Settings(api_key="", _env_file=None).api_key_enabled
    assert not Settings(api_key="your_api_key_here", _env_file=None).api_key_enabled
    assert Settings(api_key="s3cret", _env_file=None).api_key_enabled


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.market_data_timeout_seconds == 30
    assert settings.price_refresh_interval_seconds == 0
    assert settings.report_title == "Microcap Opportunities Portfolio"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgresql+asyncpg://u:p@db:5432/app", "postgresql://u:p@db:5432/app"),
        ("postgresql+psycopg2://u:p@db/app", "postgresql://u:p@db/app"),
        ("postgresql://u:p@db/app", "postgresql://u:p@db/app"),
        ("postgres://u:p@db/app", "postgres://u:p@db/app"),
        ("host=db dbname=app", "host=db dbname=app"),
    ],
)
def test_libpq_database_url(url, expected):
    assert libpq_database_url(url) == expected
