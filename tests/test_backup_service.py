"""
Tests for the snapshot manager: create, list, delete, restore and retention.
"""

import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from core.config import Config
from core.exceptions import StorageError
from services import backup_service
from services.patient_service import create_regular_patient
from services.query_service import get_patient_counts

pytestmark = pytest.mark.usefixtures("clinic_db")

NOW = datetime(2024, 3, 1, 9, 15, 30, 123000, tzinfo=timezone.utc)


def _read(path):
    with open(path, "rb") as f:
        return f.read()


def _make_snapshot(directory, name, mtime):
    path = os.path.join(directory, name)
    with open(path, "wb") as f:
        f.write(b"snapshot")
    os.utime(path, (mtime, mtime))
    return path


class TestCreateBackup:

    def test_snapshot_is_byte_copy_of_store(self, clinic_db):
        create_regular_patient({"name": "Ana Reyes"})

        result = backup_service.create_backup(now=NOW)

        assert result["success"] is True
        assert os.path.dirname(result["backup_path"]) == Config.BACKUP_DIR
        assert os.path.basename(result["backup_path"]) == "clinic_backup_2024-03-01T09-15-30-123Z.db"
        assert _read(result["backup_path"]) == _read(clinic_db)

    def test_custom_directory_is_created(self, tmp_path):
        custom = tmp_path / "usb" / "backups"

        result = backup_service.create_backup(str(custom), now=NOW)

        assert result["success"] is True
        assert custom.is_dir()
        assert os.path.dirname(result["backup_path"]) == str(custom)

    def test_missing_store_reports_failure(self, clinic_db):
        os.remove(clinic_db)

        result = backup_service.create_backup(now=NOW)

        assert result["success"] is False
        assert result["code"] == "STORAGE_ERROR"


class TestListBackups:

    def test_newest_first_by_modification_time(self):
        directory = backup_service.get_default_backup_dir()
        _make_snapshot(directory, "clinic_backup_b.db", 1_700_000_000)
        _make_snapshot(directory, "clinic_backup_a.db", 1_700_000_300)
        _make_snapshot(directory, "clinic_backup_c.db", 1_700_000_100)

        result = backup_service.list_backups()

        assert result["success"] is True
        assert [b["filename"] for b in result["backups"]] == [
            "clinic_backup_a.db",
            "clinic_backup_c.db",
            "clinic_backup_b.db",
        ]
        first = result["backups"][0]
        assert first["size"] == len(b"snapshot")
        assert first["date"] == datetime.fromtimestamp(1_700_000_300, tz=timezone.utc)

    def test_safety_copies_and_other_files_are_not_listed(self):
        directory = backup_service.get_default_backup_dir()
        _make_snapshot(directory, "clinic_backup_1.db", 1_700_000_000)
        _make_snapshot(directory, "pre_restore_2024.db", 1_700_000_100)
        _make_snapshot(directory, "clinic_export_2024.json", 1_700_000_200)

        result = backup_service.list_backups()

        assert [b["filename"] for b in result["backups"]] == ["clinic_backup_1.db"]

    def test_empty_directory(self):
        result = backup_service.list_backups()
        assert result == {"success": True, "directory": Config.BACKUP_DIR, "backups": []}

    def test_missing_custom_directory_falls_back_to_default(self, tmp_path):
        _make_snapshot(backup_service.get_default_backup_dir(), "clinic_backup_1.db", 1_700_000_000)

        result = backup_service.list_backups(str(tmp_path / "nowhere"))

        assert result["directory"] == Config.BACKUP_DIR
        assert len(result["backups"]) == 1
        assert not (tmp_path / "nowhere").exists()


class TestDeleteBackup:

    def test_delete_removes_file(self):
        path = _make_snapshot(backup_service.get_default_backup_dir(), "clinic_backup_1.db", 1_700_000_000)

        result = backup_service.delete_backup(path)

        assert result == {"success": True}
        assert not os.path.exists(path)

    def test_delete_missing_file(self, tmp_path):
        result = backup_service.delete_backup(str(tmp_path / "clinic_backup_gone.db"))

        assert result["success"] is False
        assert result["code"] == "NOT_FOUND"
        assert result["error"] == "Delete failed: Backup file does not exist"


class TestRestoreBackup:

    def test_restore_brings_back_snapshot_contents(self):
        create_regular_patient({"name": "Before Backup"})
        backup = backup_service.create_backup(now=NOW)["backup_path"]
        create_regular_patient({"name": "After Backup"})
        assert get_patient_counts()["regular"] == 2

        result = backup_service.restore_from_backup(backup, now=NOW)

        assert result["success"] is True
        assert get_patient_counts()["regular"] == 1

    def test_restore_writes_safety_copy_outside_listing(self):
        backup = backup_service.create_backup(now=NOW)["backup_path"]

        result = backup_service.restore_from_backup(backup, now=NOW)

        safety = result["safety_backup_path"]
        assert os.path.basename(safety).startswith("pre_restore_")
        assert os.path.exists(safety)
        listed = [b["path"] for b in backup_service.list_backups()["backups"]]
        assert listed == [backup]

    def test_restore_missing_snapshot(self, tmp_path):
        result = backup_service.restore_from_backup(str(tmp_path / "missing.db"))

        assert result["success"] is False
        assert result["code"] == "NOT_FOUND"

    def test_failed_safety_copy_aborts_restore(self):
        create_regular_patient({"name": "Before Backup"})
        backup = backup_service.create_backup(now=NOW)["backup_path"]
        create_regular_patient({"name": "After Backup"})

        with patch("services.backup_service.take_safety_snapshot", side_effect=StorageError("disk full")):
            result = backup_service.restore_from_backup(backup, now=NOW)

        assert result["success"] is False
        assert result["code"] == "STORAGE_ERROR"
        assert get_patient_counts()["regular"] == 2


class TestRetention:

    def test_keeps_newest_snapshots(self):
        directory = backup_service.get_default_backup_dir()
        paths = [
            _make_snapshot(directory, f"clinic_backup_{i}.db", 1_700_000_000 + i * 60)
            for i in range(5)
        ]

        result = backup_service.enforce_retention(2)

        assert result["success"] is True
        assert sorted(result["deleted"]) == sorted(paths[:3])
        remaining = [b["path"] for b in backup_service.list_backups()["backups"]]
        assert remaining == [paths[4], paths[3]]

    def test_under_limit_deletes_nothing(self):
        _make_snapshot(backup_service.get_default_backup_dir(), "clinic_backup_1.db", 1_700_000_000)

        result = backup_service.enforce_retention(7)

        assert result["deleted"] == []

    def test_safety_copies_are_never_pruned(self):
        directory = backup_service.get_default_backup_dir()
        safety = _make_snapshot(directory, "pre_import_old.db", 1_600_000_000)
        _make_snapshot(directory, "clinic_backup_1.db", 1_700_000_000)
        _make_snapshot(directory, "clinic_backup_2.db", 1_700_000_100)

        backup_service.enforce_retention(1)

        assert os.path.exists(safety)
