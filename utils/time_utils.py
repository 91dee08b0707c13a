"""Timestamp helpers shared by the chat models and the presentation layers."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize an instant as an ISO-8601 UTC string with a trailing Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_relative_date(value: datetime, now: datetime | None = None) -> str:
    """
    Human label for a chat timestamp.

    Returns "Today", "Yesterday", "N days ago" within a week, otherwise the
    calendar date (YYYY-MM-DD).
    """
    now = ensure_utc(now or utc_now())
    value = ensure_utc(value)
    days = int((now - value).total_seconds() // 86400)

    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return value.date().isoformat()
