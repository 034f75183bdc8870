from datetime import datetime, timezone, timedelta
from typing import Optional


class DateUtils:
    """
    Date/time helpers for consistent handling across the application.

    Everything is timezone-aware UTC. SQLite hands back naive datetimes for
    DateTime(timezone=True) columns, so values read from the database go
    through to_utc() before comparison.
    """

    UTC = timezone.utc

    @classmethod
    def now_utc(cls) -> datetime:
        """Get current UTC datetime - always use this for database storage"""
        return datetime.now(cls.UTC)

    @classmethod
    def to_utc(cls, dt: datetime) -> datetime:
        """Convert datetime to UTC, treating naive values as UTC"""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=cls.UTC)
        return dt.astimezone(cls.UTC)

    @classmethod
    def to_iso_string(cls, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return cls.to_utc(dt).isoformat()

    @classmethod
    def from_timestamp(cls, ts: float) -> datetime:
        return datetime.fromtimestamp(ts, cls.UTC)

    @classmethod
    def is_expired(cls, expiry_date: datetime) -> bool:
        return cls.now_utc() >= cls.to_utc(expiry_date)

    @classmethod
    def create_expiry_time(
        cls,
        minutes: int = 0,
        hours: int = 0,
        days: int = 0,
    ) -> datetime:
        return cls.now_utc() + timedelta(minutes=minutes, hours=hours, days=days)
