from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler

from core.config import Config
from core.logging_setup import get_logger
from core.results import service_operation
from services import backup_settings
from services.backup_service import write_snapshot, resolve_backup_dir, prune_snapshots

logger = get_logger("backup_scheduler")


def _store(store=None):
    return store if store is not None else backup_settings.JsonSettingsStore()


# ---------------------------------------------------------
# Settings operations
# ---------------------------------------------------------
@service_operation("Setup failed")
def setup_automatic_backups(interval_hours: float = 24, max_backups: int = 7, custom_path: str | None = None, store=None, now: datetime | None = None):
    settings = backup_settings.configure(interval_hours, max_backups, custom_path, now=now)
    _store(store).save(settings)
    logger.info(
        "Automatic backups configured: every %s hours, keeping %s backups",
        settings.interval_hours, settings.max_backups,
    )
    return {"settings": settings.to_dict()}


@service_operation("Could not disable automatic backups")
def disable_automatic_backups(store=None):
    store = _store(store)
    settings = store.load()
    if settings is None:
        return {"settings": None}
    settings = backup_settings.disable(settings)
    store.save(settings)
    logger.info("Automatic backups disabled")
    return {"settings": settings.to_dict()}


def get_backup_settings(store=None) -> dict | None:
    """Current settings as the camelCase dict, or None when never configured."""
    try:
        settings = _store(store).load()
    except (OSError, ValueError) as e:
        logger.error("Could not read backup settings: %s", e)
        return None
    return settings.to_dict() if settings else None


# ---------------------------------------------------------
# Trigger
# ---------------------------------------------------------
@service_operation("Automatic backup failed")
def run_if_due(store=None, now: datetime | None = None):
    """Take a snapshot when one is due, then prune to max_backups."""
    store = _store(store)
    settings = store.load()

    if not backup_settings.is_due(settings, now):
        return {"performed": False}

    logger.info("Automatic backup is due, performing backup...")
    backup_path = write_snapshot(settings.custom_path, now)
    store.save(backup_settings.mark_backed_up(settings, now))

    directory = resolve_backup_dir(settings.custom_path, create=False)
    deleted = prune_snapshots(directory, settings.max_backups)
    return {"performed": True, "backup_path": backup_path, "deleted": deleted}


class BackupScheduler:
    """Runs run_if_due at start-up and then on a fixed polling interval.

    A failed poll is logged and the next poll tries again.
    """

    JOB_ID = "automatic_backup"

    def __init__(self, store=None, poll_hours: float = None):
        self.store = store
        self.poll_hours = poll_hours or Config.BACKUP_POLL_HOURS
        self._scheduler = BackgroundScheduler(daemon=True)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def tick(self) -> dict:
        result = run_if_due(self.store)
        if not result["success"]:
            logger.warning("Automatic backup poll failed: %s", result["error"])
        elif result.get("performed"):
            logger.info("Automatic backup written to %s", result["backup_path"])
        return result

    def start(self) -> None:
        if self.running:
            return
        self.tick()
        self._scheduler.add_job(
            self.tick,
            trigger="interval",
            hours=self.poll_hours,
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Backup scheduler started (polling every %s hours)", self.poll_hours)

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Backup scheduler stopped")
