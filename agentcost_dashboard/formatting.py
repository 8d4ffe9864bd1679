"""Display formatting for currency, counts, latency and timestamps."""

from __future__ import annotations

import math
from datetime import datetime, timezone


def _is_missing(value: float | int | None) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_currency(value: float | int | None) -> str:
    if _is_missing(value) or value == 0:
        return "$0.00"
    if value < 0.01:
        return f"${value:.6f}"
    if value < 1:
        return f"${value:.4f}"
    return f"${value:.2f}"


def format_number(value: float | int | None) -> str:
    if _is_missing(value):
        return "0"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    if isinstance(value, int) or float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_latency(ms: float | int | None) -> str:
    if _is_missing(ms):
        return "0ms"
    if ms < 1000:
        return f"{_round_half_up(ms)}ms"
    return f"{ms / 1000:.2f}s"


def format_percentage(value: float | int | None) -> str:
    """Format a percentage the backend already scaled to 0-100."""
    if _is_missing(value):
        return "0.0%"
    return f"{value:.1f}%"


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a backend timestamp; values without an offset are UTC."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: str | datetime) -> str:
    """``Jan 5, 02:30 PM`` style."""
    d = parse_timestamp(value)
    return f"{d:%b} {d.day}, {d:%I:%M %p}"


def format_relative_time(value: str | datetime, *, now: datetime | None = None) -> str:
    then = parse_timestamp(value)
    current = now or datetime.now(timezone.utc)
    diff_seconds = (current - then).total_seconds()

    diff_mins = math.floor(diff_seconds / 60)
    diff_hours = math.floor(diff_seconds / 3600)
    diff_days = math.floor(diff_seconds / 86400)

    if diff_mins < 1:
        return "Just now"
    if diff_mins < 60:
        return f"{diff_mins}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days < 7:
        return f"{diff_days}d ago"
    return format_date(then)


def format_last_refresh(value: datetime | None, *, now: datetime | None = None) -> str:
    if value is None:
        return "Never"

    current = now or datetime.now(value.tzinfo)
    diff = math.floor((current - value).total_seconds())

    if diff < 5:
        return "Just now"
    if diff < 60:
        return f"{diff}s ago"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    return value.strftime("%Y-%m-%d %H:%M:%S")


def mask_secret(secret: str, *, limit: int = 32) -> str:
    return "•" * min(len(secret), limit)
