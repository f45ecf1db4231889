from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize for comparisons; SQL providers hand back naive UTC datetimes."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value
