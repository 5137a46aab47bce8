import os
from dotenv import load_dotenv

load_dotenv()

# Path: project_root/data
BASE_DIR = os.path.dirname(os.path.dirname(__file__))


class Config:
    DATA_DIR = os.getenv("CLINIC_DATA_DIR", os.path.join(BASE_DIR, "data"))
    DB_PATH = os.getenv("CLINIC_DB_PATH", os.path.join(DATA_DIR, "clinic.db"))
    BACKUP_DIR = os.getenv("CLINIC_BACKUP_DIR", os.path.join(DATA_DIR, "backups"))
    LOG_DIR = os.getenv("CLINIC_LOG_DIR", os.path.join(DATA_DIR, "logs"))
    SETTINGS_FILENAME = "backup_settings.json"

    # Automatic snapshot polling interval
    BACKUP_POLL_HOURS = float(os.getenv("CLINIC_BACKUP_POLL_HOURS", "1"))

    DEBUG = os.getenv("CLINIC_DEBUG", "0") == "1"

    # Price per unit of each additional per-visit charge on orthodontic records
    CHARGE_RATES = {
        "recement": 500.0,
        "replacement": 500.0,
        "rebracket": 500.0,
        "xray": 1000.0,
        "dental_kit": 350.0,
        "kabayoshi": 300.0,
        "lingual_button": 250.0,
    }

    @classmethod
    def settings_path(cls) -> str:
        return os.path.join(cls.DATA_DIR, cls.SETTINGS_FILENAME)
