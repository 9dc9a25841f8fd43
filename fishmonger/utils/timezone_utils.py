from __future__ import annotations

from datetime import datetime, timezone as dt_timezone


class TimezoneUtils:
    """Timestamp helpers; every stored timestamp is timezone-aware UTC."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def ensure_utc(value: datetime | None) -> datetime | None:
        """SQLite hands back naive datetimes; treat them as UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt_timezone.utc)
        return value.astimezone(dt_timezone.utc)

    @staticmethod
    def to_iso(value: datetime | None) -> str | None:
        normalized = TimezoneUtils.ensure_utc(value)
        return normalized.isoformat() if normalized else None
