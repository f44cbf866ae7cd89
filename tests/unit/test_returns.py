from decimal import Decimal
from types import SimpleNamespace

import pytest

from portfolio_snapshots.services.returns import (
    classify_return,
    compute_return,
    compute_return_with_dividends,
    effective_price,
    filter_by_status,
    position_return,
    return_band,
    snapshot_position_return,
    to_decimal,
)


def test_compute_return_basic_gain():
    assert compute_return(100, 120) == pytest.approx(20.0)


def test_compute_return_loss():
    assert compute_return(Decimal("50"), Decimal("40")) == pytest.approx(-20.0)


def test_compute_return_missing_price_is_none():
    assert compute_return(None, 120) is None
    assert compute_return(100, None) is None


def test_compute_return_zero_start_is_none():
    assert compute_return(0, 120) is None


def test_compute_return_zero_end_is_total_loss():
    assert compute_return(100, 0) == pytest.approx(-100.0)


def test_override_takes_precedence():
    assert compute_return(100, 120, start_override=80) == pytest.approx(50.0)
    assert compute_return(100, 120, end_override=150) == pytest.approx(50.0)


def test_override_fills_missing_price():
    assert compute_return(None, 110, start_override=100) == pytest.approx(10.0)


def test_zero_override_falls_back_to_fetched_price():
    assert effective_price(Decimal("12.5"), Decimal("0")) == Decimal("12.5")
    assert compute_return(100, 120, start_override=0) == pytest.approx(20.0)


def test_compute_return_with_dividends():
    assert compute_return_with_dividends(100, 100, 5) == pytest.approx(5.0)
    assert compute_return_with_dividends(100, 110, Decimal("2.5")) == pytest.approx(12.5)
    assert compute_return_with_dividends(100, None, 5) is None


def test_to_decimal():
    assert to_decimal(None) is None
    assert to_decimal(1.5) == Decimal("1.5")
    assert to_decimal(float("nan")) is None
    with pytest.raises(ValueError):
        to_decimal("abc")


def test_position_return_uses_overrides():
    position = SimpleNamespace(
        start_price=Decimal("10"),
        end_price=None,
        start_price_override=None,
        end_price_override=Decimal("15"),
    )
    assert position_return(position) == pytest.approx(50.0)


def test_snapshot_position_return_includes_dividends():
    row = SimpleNamespace(start_price=Decimal("20"), end_price=Decimal("21"), dividends_paid=Decimal("1"))
    assert snapshot_position_return(row) == pytest.approx(10.0)


def test_classify_return():
    assert classify_return(3.2) == "gain"
    assert classify_return(0.0) == "gain"
    assert classify_return(-0.01) == "loss"
    assert classify_return(None) is None


@pytest.mark.parametrize(
    "return_pct,band",
    [
        (-5.0, "negative"),
        (0.0, "low-positive"),
        (14.99, "low-positive"),
        (15.0, "positive"),
        (30.0, "more-positive"),
        (49.9, "more-positive"),
        (50.0, "very-positive"),
        (250.0, "very-positive"),
        (None, None),
    ],
)
def test_return_band_boundaries(return_pct, band):
    assert return_band(return_pct) == band


def test_filter_by_status():
    rows = [
        SimpleNamespace(ticker="AAA", status="Open"),
        SimpleNamespace(ticker="BBB", status="Closed"),
        SimpleNamespace(ticker="CCC", status="Open"),
    ]
    assert [r.ticker for r in filter_by_status(rows, "open")] == ["AAA", "CCC"]
    assert [r.ticker for r in filter_by_status(rows, "closed")] == ["BBB"]
    assert len(filter_by_status(rows, "all")) == 3
    assert len(filter_by_status(rows, "ALL")) == 3


def test_filter_by_status_rejects_unknown_filter():
    with pytest.raises(ValueError):
        filter_by_status([], "pending")


def test_reference_values():
    assert compute_return(100, 110) == pytest.approx(10.0)
    assert compute_return(100, 200, start_override=150) == pytest.approx(33.333, rel=1e-4)
    assert compute_return_with_dividends(100, 120, 5) == pytest.approx(25.0)

    aapl = compute_return(150, 180)
    assert aapl == pytest.approx(20.0)
    assert classify_return(aapl) == "gain"
    assert return_band(aapl) == "positive"


def test_open_filter_is_idempotent():
    rows = [SimpleNamespace(status="Open"), SimpleNamespace(status="Closed")]
    once = filter_by_status(rows, "open")
    assert filter_by_status(once, "open") == once
