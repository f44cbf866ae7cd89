import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from portfolio_snapshots.services.report import (
    build_report_row,
    format_date,
    format_price,
    format_return,
    holding_days,
    render_snapshot_report,
    report_filename,
)


def _snapshot(end_date=date(2024, 12, 31)):
    return SimpleNamespace(id=uuid.uuid4(), start_date=date(2024, 1, 1), end_date=end_date)


def _row(ticker, start_price, end_price, status="Open", dividends="0"):
    return SimpleNamespace(
        ticker=ticker,
        start_date=date(2024, 1, 2),
        end_date=date(2024, 12, 31),
        start_price=Decimal(start_price) if start_price else None,
        end_price=Decimal(end_price) if end_price else None,
        dividends_paid=Decimal(dividends),
        status=status,
    )


def test_formatters():
    assert format_date(date(2024, 3, 5)) == "3/5/2024"
    assert format_date(None) == "N/A"
    assert format_price(Decimal("1234.5")) == "$1,234.50"
    assert format_price(None) == "-"
    assert format_return(20.0) == "+20.0%"
    assert format_return(-3.27) == "-3.3%"
    assert format_return(None) == "-"


def test_holding_days():
    assert holding_days(date(2024, 1, 1), date(2024, 1, 31)) == 30
    assert holding_days(date(2024, 1, 1), date(2024, 1, 1)) == 0


def test_build_report_row_band():
    row = build_report_row(_row("AAA", "10", "12"))
    assert row.return_display == "+20.0%"
    assert row.band == "positive"
    assert row.start_date == "1/2/2024"


def test_build_report_row_without_prices_has_no_band():
    row = build_report_row(_row("AAA", "10", None))
    assert row.end_price == "-"
    assert row.return_display == "-"
    assert row.band is None


def test_report_filename():
    assert report_filename(_snapshot()) == "portfolio-snapshot-2024-12-31.html"
    assert report_filename(_snapshot(end_date=None)) == "portfolio-snapshot-export.html"


def test_render_splits_open_and_closed_sections():
    snapshot = _snapshot()
    rows = [_row("AAA", "10", "12"), _row("BBB", "10", "9"), _row("CCC", "20", "29")]
    statuses = {"AAA": "Open", "BBB": "Closed", "CCC": "Open"}

    html = render_snapshot_report(snapshot, rows, statuses, title="Test Portfolio", generated_on=date(2025, 1, 2))

    assert "<h1>Test Portfolio</h1>" in html
    assert "Period: 2024-01-01 to 2024-12-31" in html
    assert "Open Positions (2)" in html
    assert "Closed Positions (1)" in html
    assert '<span class="negative">-10.0%</span>' in html
    assert '<span class="more-positive">+45.0%</span>' in html
    assert "Generated on January 02, 2025" in html
    assert f"Data from Portfolio Snapshot {snapshot.id}" in html


def test_render_omits_empty_closed_section():
    html = render_snapshot_report(_snapshot(), [_row("AAA", "10", "12")], {"AAA": "Open"}, title="T")
    assert "Open Positions (1)" in html
    assert "Closed Positions" not in html


def test_render_falls_back_to_row_status():
    html = render_snapshot_report(_snapshot(), [_row("OLD", "10", "12", status="Closed")], {}, title="T")
    assert "Open Positions (0)" in html
    assert "Closed Positions (1)" in html


def test_render_escapes_title():
    html = render_snapshot_report(_snapshot(), [], {}, title="<b>Fund</b>")
    assert "&lt;b&gt;Fund&lt;/b&gt;" in html
