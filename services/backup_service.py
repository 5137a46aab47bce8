"""
Snapshot manager
----------------
Full-file copies of the live SQLite store.

Snapshots are named ``clinic_backup_<timestamp>.db`` and live in the
default backup directory (``Config.BACKUP_DIR``) unless the caller passes
a custom directory. Safety copies taken before destructive operations use
other prefixes (``pre_restore_``, ``pre_import_``, ``pre_db_import_``) so
they never show up in listings and are never pruned.
"""

import os
import shutil
from datetime import datetime, timezone

from core import database
from core.config import Config
from core.exceptions import NotFoundError, StorageError
from core.logging_setup import get_logger
from core.results import service_operation
from core.time_utils import file_timestamp

logger = get_logger("backup")

SNAPSHOT_PREFIX = "clinic_backup_"
SNAPSHOT_SUFFIX = ".db"


def snapshot_filename(now: datetime | None = None) -> str:
    return f"{SNAPSHOT_PREFIX}{file_timestamp(now)}{SNAPSHOT_SUFFIX}"


def is_snapshot_filename(filename: str) -> bool:
    return filename.startswith(SNAPSHOT_PREFIX) and filename.endswith(SNAPSHOT_SUFFIX)


def get_default_backup_dir() -> str:
    """Default backup directory, created if missing."""
    os.makedirs(Config.BACKUP_DIR, exist_ok=True)
    return Config.BACKUP_DIR


def resolve_backup_dir(custom_path: str | None = None, create: bool = True) -> str:
    """Pick the directory a snapshot operation works in.

    With create=True a missing custom directory is created; otherwise a
    missing custom directory falls back to the default one.
    """
    if custom_path:
        if create:
            os.makedirs(custom_path, exist_ok=True)
            return custom_path
        if os.path.isdir(custom_path):
            return custom_path
    return get_default_backup_dir()


def copy_file(source: str, destination: str) -> None:
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise StorageError(f"Could not copy {source} to {destination}: {e}") from e


def _live_store_path() -> str:
    return database.get_db_path()


def write_snapshot(custom_path: str | None = None, now: datetime | None = None) -> str:
    """Copy the live store into a new snapshot file and return its path."""
    source = _live_store_path()
    if not os.path.exists(source):
        raise StorageError(f"Database file not found: {source}")

    directory = resolve_backup_dir(custom_path, create=True)
    backup_path = os.path.join(directory, snapshot_filename(now))
    copy_file(source, backup_path)
    logger.info("Backup created at %s", backup_path)
    return backup_path


def take_safety_snapshot(prefix: str, now: datetime | None = None) -> str | None:
    """Copy the live store aside before it is overwritten.

    Always goes to the default directory. Returns None when there is no
    live store yet (nothing to protect). A failed copy raises StorageError
    so the destructive operation is aborted.
    """
    source = _live_store_path()
    if not os.path.exists(source):
        logger.warning("No live database at %s; skipping %s safety copy", source, prefix)
        return None

    safety_path = os.path.join(get_default_backup_dir(), f"{prefix}{file_timestamp(now)}.db")
    copy_file(source, safety_path)
    logger.info("Safety copy written to %s", safety_path)
    return safety_path


def release_store() -> None:
    """Best-effort close of pooled connections to the live store."""
    try:
        database.release_connections()
    except Exception as e:
        logger.warning("Could not close database connections: %s", e)


def overwrite_store(source: str) -> None:
    """Replace the live store file with the bytes of source.

    Not reversible: if the copy fails partway the live file may be
    damaged and the safety copy is the way back.
    """
    release_store()
    copy_file(source, _live_store_path())


def scan_snapshots(directory: str) -> list[dict]:
    """Snapshot files in directory, newest first by modification time."""
    backups = []
    if not os.path.isdir(directory):
        return backups

    for entry in os.scandir(directory):
        if not entry.is_file() or not is_snapshot_filename(entry.name):
            continue
        stats = entry.stat()
        backups.append({
            "filename": entry.name,
            "path": entry.path,
            "size": stats.st_size,
            "date": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            "_mtime": stats.st_mtime,
        })

    backups.sort(key=lambda b: (b["_mtime"], b["filename"]), reverse=True)
    for b in backups:
        del b["_mtime"]
    return backups


def prune_snapshots(directory: str, max_backups: int) -> list[str]:
    """Delete the snapshots beyond the newest max_backups. Returns deleted paths."""
    backups = scan_snapshots(directory)
    if len(backups) <= max_backups:
        return []

    # Oldest first among the excess
    excess = list(reversed(backups[max_backups:]))
    deleted = []
    for backup in excess:
        try:
            os.remove(backup["path"])
        except OSError as e:
            raise StorageError(f"Could not delete {backup['path']}: {e}") from e
        deleted.append(backup["path"])
        logger.info("Pruned old backup %s", backup["filename"])
    return deleted


# -----------------------------
# Public operations
# -----------------------------
@service_operation("Backup failed")
def create_backup(custom_path: str | None = None, now: datetime | None = None):
    return {"backup_path": write_snapshot(custom_path, now)}


@service_operation("Failed to list backups")
def list_backups(custom_path: str | None = None):
    directory = resolve_backup_dir(custom_path, create=False)
    return {"directory": directory, "backups": scan_snapshots(directory)}


@service_operation("Delete failed")
def delete_backup(backup_path: str):
    if not os.path.exists(backup_path):
        raise NotFoundError("Backup file does not exist")
    try:
        os.remove(backup_path)
    except OSError as e:
        raise StorageError(str(e)) from e
    logger.info("Backup deleted: %s", backup_path)
    return None


@service_operation("Restore failed")
def restore_from_backup(backup_path: str, now: datetime | None = None):
    if not os.path.exists(backup_path):
        raise NotFoundError("Backup file does not exist")

    safety_path = take_safety_snapshot("pre_restore_", now)
    overwrite_store(backup_path)
    logger.info("Database restored from backup: %s", backup_path)
    return {"safety_backup_path": safety_path}


@service_operation("Retention cleanup failed")
def enforce_retention(max_backups: int, custom_path: str | None = None):
    directory = resolve_backup_dir(custom_path, create=False)
    return {"deleted": prune_snapshots(directory, int(max_backups))}
