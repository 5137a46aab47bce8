"""
Export / import of the whole store.

Two formats:

- JSON document: ``{"table_name": [{"column": value, ...}, ...], ...}``,
  pretty-printed, independent of SQLite's file format.
- Raw database file: the SQLite file copied byte for byte.

Both imports copy the live store aside first (``pre_import_`` /
``pre_db_import_``) and refuse to run if that copy fails.
"""

import json
import os
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import create_engine, inspect

from core import database
from core.exceptions import NotFoundError, SchemaMismatchError, StorageError, ValidationError
from core.logging_setup import get_logger
from core.results import service_operation
from core.time_utils import file_timestamp
from services.backup_service import (
    get_default_backup_dir,
    take_safety_snapshot,
    overwrite_store,
    copy_file,
)

logger = get_logger("transfer")

SQLITE_HEADER = b"SQLite format 3\x00"


@dataclass(frozen=True)
class TableSchema:
    """Column layout of one live table, used to vet import rows."""

    name: str
    columns: tuple

    def import_columns(self, rows: list) -> list:
        """Column list for inserting rows; every row must have the same keys."""
        first = rows[0]
        if not isinstance(first, dict):
            raise SchemaMismatchError(f"Rows for table '{self.name}' must be objects")
        columns = list(first.keys())
        unknown = [c for c in columns if c not in self.columns]
        if unknown:
            raise SchemaMismatchError(
                f"Table '{self.name}' has no column(s): {', '.join(unknown)}"
            )

        expected = set(columns)
        for index, row in enumerate(rows):
            if not isinstance(row, dict) or set(row.keys()) != expected:
                raise SchemaMismatchError(
                    f"Row {index} of table '{self.name}' does not match the columns of the first row"
                )
        return columns


def read_schema(conn) -> dict:
    """TableSchema for every user table in the connected store."""
    inspector = inspect(conn)
    return {
        name: TableSchema(name, tuple(col["name"] for col in inspector.get_columns(name)))
        for name in inspector.get_table_names()
    }


def build_import_plan(conn, document: dict) -> list:
    """Validate the whole document against the live schema before writing.

    Returns [(table_name, columns, rows), ...] for the non-empty tables.
    """
    if not isinstance(document, dict):
        raise SchemaMismatchError("Import document must map table names to lists of rows")

    schema = read_schema(conn)
    plan = []
    for table_name, rows in document.items():
        if not isinstance(rows, list):
            raise SchemaMismatchError(f"Table '{table_name}' must hold a list of rows")
        if not rows:
            continue
        if table_name not in schema:
            raise SchemaMismatchError(f"Unknown table '{table_name}'")
        plan.append((table_name, schema[table_name].import_columns(rows), rows))
    return plan


def dump_tables(engine) -> dict:
    """Every row of every user table, keyed by table name."""
    data = {}
    with engine.connect() as conn:
        quote = conn.dialect.identifier_preparer.quote
        for table_name in inspect(conn).get_table_names():
            result = conn.exec_driver_sql(f"SELECT * FROM {quote(table_name)}")
            data[table_name] = [dict(row._mapping) for row in result]
    return data


def load_tables(conn, plan: list) -> dict:
    """Replace the rows of each planned table. Runs inside the caller's transaction."""
    quote = conn.dialect.identifier_preparer.quote
    counts = {}
    for table_name, columns, rows in plan:
        conn.exec_driver_sql(f"DELETE FROM {quote(table_name)}")

        column_list = ", ".join(quote(c) for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        conn.exec_driver_sql(
            f"INSERT INTO {quote(table_name)} ({column_list}) VALUES ({placeholders})",
            [tuple(row[c] for c in columns) for row in rows],
        )
        counts[table_name] = len(rows)
        logger.debug("Imported %d rows into %s", len(rows), table_name)
    return counts


def _readonly_engine(db_path: str):
    return create_engine(f"sqlite:///file:{db_path}?mode=ro&uri=true")


# -----------------------------
# JSON document
# -----------------------------
@service_operation("Export failed")
def export_database_to_json(output_path: str | None = None, now: datetime | None = None):
    db_path = database.get_db_path()
    if not os.path.exists(db_path):
        raise StorageError(f"Database file not found: {db_path}")

    engine = _readonly_engine(db_path)
    try:
        data = dump_tables(engine)
    finally:
        engine.dispose()

    if output_path:
        directory = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(directory, exist_ok=True)
        export_file_path = output_path
    else:
        export_file_path = os.path.join(
            get_default_backup_dir(), f"clinic_export_{file_timestamp(now)}.json"
        )

    with open(export_file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info("Database exported to JSON: %s", export_file_path)
    return {"file_path": export_file_path, "tables": {k: len(v) for k, v in data.items()}}


@service_operation("Import failed")
def import_database_from_json(json_file_path: str, now: datetime | None = None):
    if not os.path.exists(json_file_path):
        raise NotFoundError("JSON file does not exist")

    try:
        with open(json_file_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON document: {e}") from e

    safety_path = take_safety_snapshot("pre_import_", now)

    # engine.begin() commits on success and rolls back every table on error
    with database.get_engine().begin() as conn:
        plan = build_import_plan(conn, document)
        counts = load_tables(conn, plan)

    logger.info("Database imported from JSON: %s", json_file_path)
    return {"safety_backup_path": safety_path, "tables": counts}


# -----------------------------
# Raw database file
# -----------------------------
@service_operation("Export failed")
def export_database_file(output_path: str):
    if not output_path:
        raise ValidationError("An output path is required")
    source = database.get_db_path()
    if not os.path.exists(source):
        raise StorageError(f"Database file not found: {source}")

    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    copy_file(source, output_path)
    logger.info("Database file exported to: %s", output_path)
    return {"file_path": output_path}


def _looks_like_sqlite(path: str) -> bool:
    with open(path, "rb") as f:
        return f.read(len(SQLITE_HEADER)) == SQLITE_HEADER


@service_operation("Import failed")
def import_database_file(import_file_path: str, now: datetime | None = None):
    if not os.path.exists(import_file_path):
        raise NotFoundError("Database file does not exist")
    if not _looks_like_sqlite(import_file_path):
        raise ValidationError("Selected file is not a SQLite database")

    safety_path = take_safety_snapshot("pre_db_import_", now)
    overwrite_store(import_file_path)
    logger.info("Database imported from: %s", import_file_path)
    return {"safety_backup_path": safety_path}
