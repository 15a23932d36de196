"""Datetime utilities for consistent timestamp handling."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def parse_datetime_utc(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse datetime string and ensure it's timezone-aware (UTC).

    Args:
        dt_str: ISO format datetime string, or None

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if not dt_str:
        return None
    dt = datetime.fromisoformat(dt_str)
    return ensure_utc(dt)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def age_in_days(dt: datetime, now: Optional[datetime] = None) -> float:
    """Fractional days elapsed since `dt` (never negative)."""
    now = now or utc_now()
    return max(0.0, (now - ensure_utc(dt)).total_seconds() / 86400.0)


def format_time_ago(dt: datetime, now: Optional[datetime] = None) -> str:
    """Human readable relative age, e.g. '3h ago'."""
    now = now or utc_now()
    seconds = max(0.0, (now - ensure_utc(dt)).total_seconds())
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if hours < 1:
        return f"{minutes}m ago"
    if days < 1:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    return f"{days // 30}mo ago"
