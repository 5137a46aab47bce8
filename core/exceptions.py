"""
Clinic error hierarchy
======================
Services raise these; the operation boundary (``core.results.service_operation``)
turns every error into ``{"success": False, "error": "..."}``.
"""


class ClinicError(Exception):
    """Base class for all clinic errors."""

    code = "CLINIC_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message=None, code=None):
        if message:
            self.message = message
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class NotFoundError(ClinicError):
    """A snapshot, import file, patient or record does not exist."""

    code = "NOT_FOUND"
    message = "Not found"


class StorageError(ClinicError):
    """Copy, read or write failure on the store or a backup file."""

    code = "STORAGE_ERROR"
    message = "Storage operation failed"


class ValidationError(ClinicError):
    code = "VALIDATION_ERROR"
    message = "Invalid input"


class SchemaMismatchError(ClinicError):
    """An import document does not fit the live schema."""

    code = "SCHEMA_MISMATCH"
    message = "Import document does not match the database schema"
