#!/usr/bin/env python3
"""
Sales Export Script

Exports sales to CSV: either the lines of every sale of one day, or the
per-day summary for the last N days. Free-text fields are sanitized against
CSV formula injection.

Usage:
    python export_sales.py --output sales_today.csv
    python export_sales.py --day 2025-03-14 --output sales_2025-03-14.csv
    python export_sales.py --summary --days 30 --output last_30_days.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.time import utc_now
from services.csv_export_service import generate_daily_summary_csv, generate_sales_csv


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Export sales from the POS database to CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Lines of every sale made today (UTC)
  python export_sales.py --output sales_today.csv

  # Lines of every sale of a given day
  python export_sales.py --day 2025-03-14 --output sales_2025-03-14.csv

  # Per-day summary for the last 30 days
  python export_sales.py --summary --days 30 --output last_30_days.csv
        """
    )

    parser.add_argument(
        "--output",
        "-o",
        required=True,
        help="Path to output CSV file"
    )

    parser.add_argument(
        "--day",
        "-d",
        type=_parse_day,
        help="UTC day to export (YYYY-MM-DD, default today)"
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Export the per-day summary instead of sale lines"
    )

    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days covered by --summary (default 30)"
    )

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.summary:
            print(f"Building daily summary for the last {args.days} days...")
            csv_content = generate_daily_summary_csv(days=args.days)
        else:
            day = args.day or utc_now().date()
            print(f"Exporting sales of {day.isoformat()}...")
            csv_content = generate_sales_csv(day)

        rows = max(len(csv_content.splitlines()) - 1, 0)
        if rows == 0:
            print("No sales found for the requested period")
            return 1

        with open(args.output, "w", newline="", encoding="utf-8") as f:
            f.write(csv_content)

        print()
        print("=" * 60)
        print("EXPORT SUMMARY")
        print("=" * 60)
        print(f"Rows exported: {rows}")
        print(f"Output file: {args.output}")
        print("=" * 60)

        return 0

    except KeyboardInterrupt:
        print("\n\nExport interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
