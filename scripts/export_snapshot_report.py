#!/usr/bin/env python3
"""
Export a snapshot's HTML report straight from the database.

Useful when the API service is not running.

Usage:
    python scripts/export_snapshot_report.py <snapshot-id>
    python scripts/export_snapshot_report.py <snapshot-id> --output reports/
"""

import argparse
import os
import sys
from pathlib import Path
from types import SimpleNamespace

import psycopg2
from psycopg2.extras import RealDictCursor
from dotenv import load_dotenv

from portfolio_snapshots.config import libpq_database_url
from portfolio_snapshots.services.report import render_snapshot_report, report_filename

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_TITLE = "Microcap Opportunities Portfolio"


def get_connection():
    """Get database connection."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return psycopg2.connect(libpq_database_url(database_url))
    return psycopg2.connect(
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=os.getenv("POSTGRES_PORT", 5432),
        user=os.getenv("POSTGRES_USER"),
        password=os.getenv("POSTGRES_PASSWORD"),
        dbname=os.getenv("POSTGRES_DATABASE", "portfolio"),
        sslmode=os.getenv("POSTGRES_SSLMODE", "prefer"),
    )


def load_snapshot(conn, snapshot_id):
    """Load the snapshot, its rows ordered by ticker, and live position statuses."""
    cur = conn.cursor(cursor_factory=RealDictCursor)

    cur.execute("SELECT * FROM snapshots WHERE id = %s", (snapshot_id,))
    snapshot = cur.fetchone()
    if not snapshot:
        return None, [], {}

    cur.execute(
        "SELECT * FROM snapshot_positions WHERE snapshot_id = %s ORDER BY ticker",
        (snapshot_id,),
    )
    rows = [SimpleNamespace(**row) for row in cur.fetchall()]

    statuses = {}
    tickers = sorted({row.ticker for row in rows})
    if tickers:
        cur.execute(
            "SELECT ticker, status FROM positions WHERE ticker = ANY(%s)",
            (tickers,),
        )
        for row in cur.fetchall():
            if statuses.get(row["ticker"]) != "Open":
                statuses[row["ticker"]] = row["status"]

    cur.close()
    return SimpleNamespace(**snapshot), rows, statuses


def main():
    parser = argparse.ArgumentParser(description="Export a snapshot HTML report")
    parser.add_argument("snapshot_id", help="Snapshot UUID")
    parser.add_argument("--output", "-o", default=".", help="Output directory")
    parser.add_argument("--title", default=os.getenv("REPORT_TITLE", DEFAULT_TITLE))
    args = parser.parse_args()

    conn = get_connection()
    try:
        snapshot, rows, statuses = load_snapshot(conn, args.snapshot_id)
    finally:
        conn.close()

    if snapshot is None:
        print(f"Error: snapshot {args.snapshot_id} not found")
        sys.exit(1)

    html = render_snapshot_report(snapshot, rows, statuses, title=args.title)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / report_filename(snapshot)
    output_path.write_text(html, encoding="utf-8")

    print(f"Wrote {len(rows)} positions to {output_path}")


if __name__ == "__main__":
    main()
