"""
Shared fixtures.

Every test that touches the store gets its own SQLite file, backup
directory and settings file under pytest's tmp_path, so tests never see
each other's data or the real data directory.
"""
import os
import tempfile

# Keep module-level Config defaults away from the real data directory
os.environ.setdefault("CLINIC_DATA_DIR", tempfile.mkdtemp(prefix="clinic-tests-"))

import pytest

from core import database
from core.config import Config


class MemorySettingsStore:
    """Settings store kept in memory; records every save."""

    def __init__(self, settings=None):
        self.settings = settings
        self.saved = []

    def load(self):
        return self.settings

    def save(self, settings):
        self.settings = settings
        self.saved.append(settings)


@pytest.fixture
def clinic_db(tmp_path, monkeypatch):
    """A fresh, initialised store plus isolated backup and data directories."""
    monkeypatch.setattr(Config, "DATA_DIR", str(tmp_path))
    monkeypatch.setattr(Config, "BACKUP_DIR", str(tmp_path / "backups"))

    db_path = str(tmp_path / "clinic.db")
    database.configure_database(db_path)
    database.init_db()
    yield db_path
    database.release_connections()


@pytest.fixture
def settings_store():
    return MemorySettingsStore()


@pytest.fixture
def regular_patient(clinic_db):
    from services.patient_service import create_regular_patient

    result = create_regular_patient({"name": "Maria Santos", "sex": "Female", "age": 34})
    assert result["success"], result
    return result["patient_id"]


@pytest.fixture
def ortho_patient(clinic_db):
    """Orthodontic patient on a 10,000 / 12 month contract."""
    from services.orthodontic_service import create_orthodontic_patient

    result = create_orthodontic_patient(
        {"name": "Juan Dela Cruz", "sex": "Male", "age": 15},
        contract_price=10000.0,
        contract_months=12,
    )
    assert result["success"], result
    return result["patient_id"]
