from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def serialize_datetime(dt: datetime | None) -> str | None:
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
