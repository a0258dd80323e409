#!/usr/bin/env python3
"""
Database Backup Script

Copies the live SQLite database to the backup directory (POS_BACKUP_DIR by
default) and keeps only the newest backups.

Usage:
    python backup_database.py
    python backup_database.py --dir /mnt/usb/backups --keep 10
    python backup_database.py --check
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.database import check_integrity
from services.backup_service import DEFAULT_BACKUPS_TO_KEEP, create_backup


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Back up the POS database")
    parser.add_argument("--dir", type=Path, help="Backup directory (default: POS_BACKUP_DIR)")
    parser.add_argument(
        "--keep",
        type=int,
        default=DEFAULT_BACKUPS_TO_KEEP,
        help=f"Number of backups to keep (default {DEFAULT_BACKUPS_TO_KEEP})"
    )
    parser.add_argument("--check", action="store_true", help="Run an integrity check before backing up")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.check and not check_integrity():
            print("ERROR: integrity check failed, backup not created", file=sys.stderr)
            return 1

        result = create_backup(backup_dir=args.dir, keep=args.keep)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if not result.success:
        print(f"ERROR: backup failed: {result.error}", file=sys.stderr)
        return 1

    print(f"[SUCCESS] Backup created: {result.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
