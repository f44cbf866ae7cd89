import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from portfolio_snapshots.models.position import PositionStatus
from portfolio_snapshots.services.returns import return_band, snapshot_position_return, to_decimal

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "snapshot_report.html"

_env = Environment(
    loader=PackageLoader("portfolio_snapshots", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass
class ReportRow:
    ticker: str
    start_date: str
    end_date: str
    start_price: str
    end_price: str
    dividends: str
    return_display: str
    band: Optional[str]
    holding_days: int


def format_date(value: Optional[date]) -> str:
    if value is None:
        return "N/A"
    return f"{value.month}/{value.day}/{value.year}"


def format_price(value: Any) -> str:
    amount = to_decimal(value)
    if amount is None:
        return "-"
    return f"${amount:,.2f}"


def format_return(return_pct: Optional[float]) -> str:
    if return_pct is None:
        return "-"
    sign = "+" if return_pct >= 0 else ""
    return f"{sign}{return_pct:.1f}%"


def holding_days(start: date, end: date) -> int:
    return math.ceil(abs((end - start).days))


def build_report_row(row: Any) -> ReportRow:
    return_pct = snapshot_position_return(row)
    dividends = to_decimal(row.dividends_paid) or Decimal("0")
    return ReportRow(
        ticker=row.ticker,
        start_date=format_date(row.start_date),
        end_date=format_date(row.end_date),
        start_price=format_price(row.start_price),
        end_price=format_price(row.end_price),
        dividends=f"${dividends:,.2f}",
        return_display=format_return(return_pct),
        band=return_band(return_pct),
        holding_days=holding_days(row.start_date, row.end_date),
    )


def report_filename(snapshot: Any) -> str:
    return f"portfolio-snapshot-{snapshot.end_date.isoformat() if snapshot.end_date else 'export'}.html"


def render_snapshot_report(
    snapshot: Any,
    rows: Sequence[Any],
    position_statuses: Dict[str, Optional[str]],
    title: str,
    generated_on: Optional[date] = None,
) -> str:
    """
    Render the standalone HTML report for a snapshot.

    Rows are split on the live position status: anything not Closed is listed
    under Open Positions. The closed table is omitted when empty.
    """
    open_rows: List[ReportRow] = []
    closed_rows: List[ReportRow] = []
    for row in rows:
        status = position_statuses.get(row.ticker, row.status)
        target = closed_rows if status == PositionStatus.CLOSED.value else open_rows
        target.append(build_report_row(row))

    generated_on = generated_on or date.today()
    html = _env.get_template(TEMPLATE_NAME).render(
        title=title,
        generated_on=generated_on.strftime("%B %d, %Y"),
        period_start=snapshot.start_date.isoformat() if snapshot.start_date else "N/A",
        period_end=snapshot.end_date.isoformat() if snapshot.end_date else "N/A",
        snapshot_id=str(snapshot.id),
        sections=[
            ("Open Positions", open_rows, True),
            ("Closed Positions", closed_rows, bool(closed_rows)),
        ],
    )
    logger.info(
        f"Rendered report for snapshot {snapshot.id}: "
        f"{len(open_rows)} open, {len(closed_rows)} closed"
    )
    return html
