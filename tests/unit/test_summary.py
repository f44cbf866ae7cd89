from decimal import Decimal
from types import SimpleNamespace

import pytest

from portfolio_snapshots.services.summary import overall_return_pct, snapshot_stats, summarize_positions


def _row(ticker, start, end, dividends="0"):
    return SimpleNamespace(
        ticker=ticker,
        start_price=Decimal(start) if start is not None else None,
        end_price=Decimal(end) if end is not None else None,
        dividends_paid=Decimal(dividends) if dividends is not None else None,
    )


def test_summary_of_empty_snapshot():
    summary = summarize_positions([])
    assert summary.total_positions == 0
    assert summary.winners == 0
    assert summary.losers == 0
    assert summary.total_dividends == 0.0
    assert summary.average_return == 0.0


def test_summary_counts_winners_and_losers():
    rows = [
        _row("AAA", "100", "120"),
        _row("BBB", "50", "40"),
        _row("CCC", "10", "10"),
    ]
    summary = summarize_positions(rows)
    assert summary.total_positions == 3
    assert summary.winners == 1
    assert summary.losers == 1
    assert summary.average_return == pytest.approx(0.0)


def test_unpriced_rows_count_as_zero_in_average():
    rows = [_row("AAA", "100", "130"), _row("BBB", "100", None)]
    summary = summarize_positions(rows)
    assert summary.average_return == pytest.approx(15.0)
    assert summary.winners == 1
    assert summary.losers == 0


def test_total_dividends():
    rows = [_row("AAA", "100", "100", "1.25"), _row("BBB", "10", "11", "0.50")]
    summary = summarize_positions(rows)
    assert summary.total_dividends == pytest.approx(1.75)
    assert summary.average_return == pytest.approx((1.25 + 15.0) / 2)


def test_overall_return_ignores_unpriced_rows():
    rows = [_row("AAA", "100", "130"), _row("BBB", None, "10")]
    assert overall_return_pct(rows) == pytest.approx(30.0)
    assert overall_return_pct([_row("BBB", None, None)]) is None


def test_snapshot_stats_performers():
    rows = [
        _row("AAA", "100", "130"),
        _row("BBB", "100", "80"),
        _row("CCC", "100", None),
    ]
    stats = snapshot_stats(rows)
    assert stats.total_positions == 3
    assert stats.priced_positions == 2
    assert stats.best_performer.ticker == "AAA"
    assert stats.worst_performer.ticker == "BBB"
    assert stats.worst_performer.return_pct == pytest.approx(-20.0)
    assert stats.overall_return == pytest.approx(5.0)


def test_snapshot_stats_without_prices():
    stats = snapshot_stats([_row("AAA", None, None)])
    assert stats.priced_positions == 0
    assert stats.best_performer is None
    assert stats.overall_return is None


def test_missing_dividends_count_as_zero():
    rows = [_row("AAA", "100", "110", dividends=None), _row("BBB", "100", "95", dividends=None)]
    summary = summarize_positions(rows)
    assert summary.total_dividends == 0.0
    assert summary.winners == 1
    assert summary.losers == 1
    assert summary.average_return == pytest.approx(2.5)
