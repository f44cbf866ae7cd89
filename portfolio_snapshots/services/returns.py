"""
Return arithmetic shared by the positions API, the snapshot builder and the
HTML report.

Prices arrive as Numeric columns (Decimal), JSON floats or plain ints, so every
input goes through ``to_decimal`` first. Percentages leave as ``float``.
A return that cannot be computed (missing price, zero start price) is ``None``,
never ``0`` and never an exception.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, TypeVar

from portfolio_snapshots.models.position import PositionStatus

T = TypeVar("T")

STATUS_FILTERS = ("all", "open", "closed")

# (exclusive upper bound, band) pairs, checked in order
RETURN_BANDS = (
    (Decimal("0"), "negative"),
    (Decimal("15"), "low-positive"),
    (Decimal("30"), "positive"),
    (Decimal("50"), "more-positive"),
)
TOP_BAND = "very-positive"

GAIN = "gain"
LOSS = "loss"


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a price-like value to Decimal; None and non-finite values become None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a numeric value: {value!r}")
    if not result.is_finite():
        return None
    return result


def effective_price(price: Any, override: Any = None) -> Optional[Decimal]:
    """Apply override precedence: a present, non-zero override wins over the fetched price."""
    override_value = to_decimal(override)
    if override_value:
        return override_value
    return to_decimal(price)


def compute_return(
    start_price: Any,
    end_price: Any,
    start_override: Any = None,
    end_override: Any = None,
    dividends: Any = 0,
) -> Optional[float]:
    """
    Percentage return between two prices.

    ``((end + dividends) - start) / start * 100`` using the effective prices.
    Returns None when either effective price is missing or the start price is
    zero.
    """
    start = effective_price(start_price, start_override)
    end = effective_price(end_price, end_override)
    if start is None or end is None:
        return None
    if start == 0:
        return None

    income = to_decimal(dividends) or Decimal("0")
    return float((end + income - start) / start * 100)


def compute_return_with_dividends(start_price: Any, end_price: Any, dividends: Any) -> Optional[float]:
    return compute_return(start_price, end_price, dividends=dividends)


def position_return(position: Any) -> Optional[float]:
    """Return for a Position row, honoring its manual overrides."""
    return compute_return(
        position.start_price,
        position.end_price,
        position.start_price_override,
        position.end_price_override,
    )


def snapshot_position_return(row: Any) -> Optional[float]:
    """Return for a SnapshotPosition row including the dividends it paid."""
    return compute_return_with_dividends(row.start_price, row.end_price, row.dividends_paid)


def classify_return(return_pct: Optional[float]) -> Optional[str]:
    if return_pct is None:
        return None
    return GAIN if return_pct >= 0 else LOSS


def return_band(return_pct: Optional[float]) -> Optional[str]:
    """Colour band used by the HTML report. Bounds are inclusive-lower, exclusive-upper."""
    if return_pct is None:
        return None
    value = to_decimal(return_pct)
    for upper, band in RETURN_BANDS:
        if value < upper:
            return band
    return TOP_BAND


def filter_by_status(rows: Iterable[T], status_filter: str = "all") -> List[T]:
    """Keep rows whose status matches 'open' or 'closed'; 'all' keeps everything."""
    status_filter = status_filter.lower()
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status_filter}")

    if status_filter == "all":
        return list(rows)

    wanted = PositionStatus.OPEN.value if status_filter == "open" else PositionStatus.CLOSED.value
    return [row for row in rows if row.status == wanted]
