"""
Unit tests for automatic backup settings and the due check.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import ValidationError
from services.backup_settings import (
    BackupSettings,
    JsonSettingsStore,
    configure,
    disable,
    is_due,
    mark_backed_up,
)

NOW = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class TestIsDue:

    def test_due_after_interval(self):
        settings = BackupSettings(interval_hours=24, last_backup=NOW - timedelta(hours=25))
        assert is_due(settings, NOW) is True

    def test_not_due_before_interval(self):
        settings = BackupSettings(interval_hours=24, last_backup=NOW - timedelta(hours=23))
        assert is_due(settings, NOW) is False

    def test_due_exactly_at_interval(self):
        settings = BackupSettings(interval_hours=24, last_backup=NOW - timedelta(hours=24))
        assert is_due(settings, NOW) is True

    def test_fractional_interval(self):
        settings = BackupSettings(interval_hours=0.5, last_backup=NOW - timedelta(minutes=31))
        assert is_due(settings, NOW) is True

    def test_disabled_never_due(self):
        settings = BackupSettings(interval_hours=1, last_backup=NOW - timedelta(days=30), enabled=False)
        assert is_due(settings, NOW) is False

    def test_no_settings_never_due(self):
        assert is_due(None, NOW) is False

    def test_naive_last_backup_treated_as_utc(self):
        settings = BackupSettings(interval_hours=24, last_backup=datetime(2024, 2, 28, 9, 0, 0))
        assert is_due(settings, NOW) is True


class TestConfigure:

    def test_configure_stamps_now_and_enables(self):
        settings = configure(12, 5, "/tmp/backups", now=NOW)
        assert settings == BackupSettings(12, 5, "/tmp/backups", NOW, True)
        # Not due immediately after configuring
        assert is_due(settings, NOW) is False

    @pytest.mark.parametrize("interval", [0, -1])
    def test_interval_must_be_positive(self, interval):
        with pytest.raises(ValidationError):
            configure(interval, 7, now=NOW)

    def test_must_keep_at_least_one_backup(self):
        with pytest.raises(ValidationError):
            configure(24, 0, now=NOW)

    def test_mark_and_disable_return_new_settings(self):
        settings = configure(24, 7, now=NOW - timedelta(days=2))
        later = mark_backed_up(settings, NOW)
        assert later.last_backup == NOW
        assert settings.last_backup == NOW - timedelta(days=2)
        assert disable(later).enabled is False


class TestJsonSettingsStore:

    def test_missing_file_loads_none(self, tmp_path):
        store = JsonSettingsStore(str(tmp_path / "backup_settings.json"))
        assert store.load() is None

    def test_saved_settings_load_back(self, tmp_path):
        store = JsonSettingsStore(str(tmp_path / "backup_settings.json"))
        settings = configure(6, 3, str(tmp_path / "custom"), now=NOW)
        store.save(settings)
        assert store.load() == settings

    def test_file_uses_camel_case_keys(self, tmp_path):
        settings = configure(24, 7, now=NOW)
        assert settings.to_dict() == {
            "intervalHours": 24,
            "maxBackups": 7,
            "lastBackup": "2024-03-01T09:00:00.000Z",
            "enabled": True,
        }
