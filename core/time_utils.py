from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if getattr(dt, "tzinfo", None) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def hours_between(start: datetime, end: datetime) -> float:
    """Fractional hours from start to end."""
    return (ensure_aware(end) - ensure_aware(start)).total_seconds() / 3600


def to_iso(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-03-01T09:15:30.123Z."""
    dt = ensure_aware(dt).astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string written by to_iso (or any fromisoformat form)."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(value))


def file_timestamp(dt: datetime | None = None) -> str:
    """to_iso with ':' and '.' replaced so it can sit inside a filename."""
    return to_iso(dt or now_utc()).replace(":", "-").replace(".", "-")
