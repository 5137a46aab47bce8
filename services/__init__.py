from .backup_service import create_backup, list_backups, delete_backup, restore_from_backup, enforce_retention
from .transfer_service import (
    export_database_to_json,
    import_database_from_json,
    export_database_file,
    import_database_file,
)

# Domain services are imported from their own modules (services.patient_service,
# services.orthodontic_service, ...).

__all__ = [
    "create_backup",
    "list_backups",
    "delete_backup",
    "restore_from_backup",
    "enforce_retention",
    "export_database_to_json",
    "import_database_from_json",
    "export_database_file",
    "import_database_file",
]
