"""
Backup service for the local SQLite store.

Creates online backups (safe while the terminal is running) named
backup_<timestamp>.db and keeps only the newest ones.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from domain.time import utc_now
from repositories.database import get_backup_dir, get_database_path

logger = logging.getLogger(__name__)

DEFAULT_BACKUPS_TO_KEEP = 30


@dataclass(frozen=True, slots=True)
class BackupResult:
    success: bool
    path: Optional[Path] = None
    error: Optional[str] = None


def _backup_files(backup_dir: Path) -> List[Path]:
    """Backups in `backup_dir`, newest first."""

    files = [p for p in backup_dir.glob("backup_*.db") if p.is_file()]
    return sorted(files, key=lambda p: (p.stat().st_mtime, p.name), reverse=True)


def clean_old_backups(backup_dir: Path, keep: int = DEFAULT_BACKUPS_TO_KEEP) -> List[Path]:
    """Delete all but the newest `keep` backups. Returns the deleted paths."""

    removed: List[Path] = []
    for path in _backup_files(backup_dir)[keep:]:
        try:
            path.unlink()
            removed.append(path)
        except OSError as e:
            logger.warning("Could not delete old backup %s: %s", path, e)
    return removed


def create_backup(backup_dir: Optional[Path] = None, keep: int = DEFAULT_BACKUPS_TO_KEEP) -> BackupResult:
    """
    Copy the live database to `backup_dir` and prune old backups.

    Failures are logged and reported in the result rather than raised.

    Raises:
        ValueError: the configured database is not a SQLite file
    """

    if keep < 1:
        raise ValueError("keep must be >= 1")

    source_path = get_database_path()
    if source_path is None:
        raise ValueError("Backups are only supported for SQLite file databases")

    target_dir = backup_dir or get_backup_dir()
    timestamp = utc_now().strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    target = target_dir / f"backup_{timestamp}.db"

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        source = sqlite3.connect(str(source_path))
        try:
            destination = sqlite3.connect(str(target))
            try:
                source.backup(destination)
            finally:
                destination.close()
        finally:
            source.close()
    except (OSError, sqlite3.Error) as e:
        logger.error("Database backup to %s failed: %s", target, e)
        return BackupResult(success=False, error=str(e))

    logger.info("Database backup created: %s", target)
    clean_old_backups(target_dir, keep=keep)
    return BackupResult(success=True, path=target)


__all__ = ["BackupResult", "create_backup", "clean_old_backups", "DEFAULT_BACKUPS_TO_KEEP"]
