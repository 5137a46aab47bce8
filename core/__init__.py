from .database import get_db_context, get_session, session_scope, configure_database, init_db, Base
from .exceptions import ClinicError, NotFoundError, StorageError, ValidationError, SchemaMismatchError
from .results import service_operation

__all__ = [
    "get_db_context",
    "get_session",
    "session_scope",
    "configure_database",
    "init_db",
    "Base",
    "ClinicError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "SchemaMismatchError",
    "service_operation",
]
