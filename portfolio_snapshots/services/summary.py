from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from portfolio_snapshots.services.returns import snapshot_position_return, to_decimal


@dataclass
class SnapshotSummary:
    total_positions: int = 0
    winners: int = 0
    losers: int = 0
    total_dividends: float = 0.0
    average_return: float = 0.0


@dataclass
class Performer:
    ticker: str
    return_pct: float


@dataclass
class SnapshotStats(SnapshotSummary):
    priced_positions: int = 0
    overall_return: Optional[float] = None
    best_performer: Optional[Performer] = None
    worst_performer: Optional[Performer] = None


def summarize_positions(rows: Sequence[Any]) -> SnapshotSummary:
    """
    Portfolio-level statistics for a snapshot's positions.

    Rows without a computable return count as 0 towards the average, so the
    denominator is always the full row count.
    """
    if not rows:
        return SnapshotSummary()

    returns = [snapshot_position_return(row) for row in rows]
    counted = [r if r is not None else 0.0 for r in returns]

    total_dividends = sum(
        (to_decimal(row.dividends_paid) or Decimal("0") for row in rows),
        Decimal("0"),
    )

    return SnapshotSummary(
        total_positions=len(rows),
        winners=sum(1 for r in counted if r > 0),
        losers=sum(1 for r in counted if r < 0),
        total_dividends=float(total_dividends),
        average_return=sum(counted) / len(rows),
    )


def overall_return_pct(rows: Sequence[Any]) -> Optional[float]:
    """Mean return over the rows that have both prices; None if none do."""
    priced = [r for r in (snapshot_position_return(row) for row in rows) if r is not None]
    if not priced:
        return None
    return sum(priced) / len(priced)


def snapshot_stats(rows: Sequence[Any]) -> SnapshotStats:
    summary = summarize_positions(rows)
    stats = SnapshotStats(**summary.__dict__)

    performers: List[Performer] = []
    for row in rows:
        return_pct = snapshot_position_return(row)
        if return_pct is not None:
            performers.append(Performer(ticker=row.ticker, return_pct=return_pct))

    stats.priced_positions = len(performers)
    stats.overall_return = overall_return_pct(rows)
    if performers:
        stats.best_performer = max(performers, key=lambda p: p.return_pct)
        stats.worst_performer = min(performers, key=lambda p: p.return_pct)
    return stats
