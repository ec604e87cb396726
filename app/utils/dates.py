from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime. Use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def days_ago(n: int) -> datetime:
    return utc_now() - timedelta(days=n)


def days_from_now(n: int) -> datetime:
    return utc_now() + timedelta(days=n)
