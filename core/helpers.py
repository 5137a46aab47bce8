from datetime import date, datetime

from sqlalchemy import Date, DateTime

from core.exceptions import ValidationError


def parse_date(value):
    """Accept a date, a datetime or an ISO string (YYYY-MM-DD...)."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value}") from e


def require_name(name) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Patient name is required")
    return name


def apply_fields(obj, data: dict, exclude=()):
    """Copy known column values from data onto a model instance.

    Keys that are not columns (or are excluded) are ignored. Date columns
    accept ISO strings.
    """
    columns = {c.name: c for c in obj.__table__.columns}
    for key, value in (data or {}).items():
        if key in exclude or key not in columns:
            continue
        column_type = columns[key].type
        if isinstance(column_type, Date) and not isinstance(column_type, DateTime):
            value = parse_date(value)
        setattr(obj, key, value)
    return obj


def format_money(value) -> str:
    return f"{float(value or 0):,.2f}"
