import json
import os
from dataclasses import dataclass, replace
from datetime import datetime

from core.config import Config
from core.exceptions import ValidationError
from core.logging_setup import get_logger
from core.time_utils import now_utc, to_iso, parse_iso, hours_between

logger = get_logger("backup_settings")


@dataclass(frozen=True)
class BackupSettings:
    """Automatic snapshot configuration.

    Serialized with the camelCase keys of backup_settings.json.
    """

    interval_hours: float = 24
    max_backups: int = 7
    custom_path: str | None = None
    last_backup: datetime | None = None
    enabled: bool = True

    def to_dict(self) -> dict:
        data = {
            "intervalHours": self.interval_hours,
            "maxBackups": self.max_backups,
            "lastBackup": to_iso(self.last_backup) if self.last_backup else None,
            "enabled": self.enabled,
        }
        if self.custom_path:
            data["customPath"] = self.custom_path
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BackupSettings":
        last_backup = data.get("lastBackup")
        return cls(
            interval_hours=data.get("intervalHours", 24),
            max_backups=int(data.get("maxBackups", 7)),
            custom_path=data.get("customPath") or None,
            last_backup=parse_iso(last_backup) if last_backup else None,
            enabled=bool(data.get("enabled", False)),
        )


class JsonSettingsStore:
    """Keeps BackupSettings in a JSON file in the data directory."""

    def __init__(self, path: str = None):
        self.path = path or Config.settings_path()

    def load(self) -> BackupSettings | None:
        if not os.path.exists(self.path):
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return BackupSettings.from_dict(json.load(f))

    def save(self, settings: BackupSettings) -> None:
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)


def configure(interval_hours: float = 24, max_backups: int = 7, custom_path: str | None = None, now: datetime | None = None) -> BackupSettings:
    """Fresh settings for automatic snapshots, enabled and stamped now."""
    if interval_hours is None or interval_hours <= 0:
        raise ValidationError("Backup interval must be greater than zero hours")
    if max_backups is None or int(max_backups) < 1:
        raise ValidationError("At least one backup must be kept")
    return BackupSettings(
        interval_hours=interval_hours,
        max_backups=int(max_backups),
        custom_path=custom_path or None,
        last_backup=now or now_utc(),
        enabled=True,
    )


def is_due(settings: BackupSettings | None, now: datetime | None = None) -> bool:
    """True when automatic snapshots are on and interval_hours have elapsed."""
    if settings is None or not settings.enabled:
        return False
    if settings.last_backup is None:
        return True
    return hours_between(settings.last_backup, now or now_utc()) >= settings.interval_hours


def mark_backed_up(settings: BackupSettings, now: datetime | None = None) -> BackupSettings:
    return replace(settings, last_backup=now or now_utc())


def disable(settings: BackupSettings) -> BackupSettings:
    return replace(settings, enabled=False)
