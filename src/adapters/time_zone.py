"""
Zone-aware time adapter (TimePort implementation).

Supplies evaluation instants for rate plan resolution.

Key behaviors:
- now_utc: Returns current UTC time (timezone-aware)
- to_zone: Converts to the configured or a named IANA timezone
- Naive datetimes are treated as UTC on conversion
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo


class ZoneTimeAdapter:
    """
    Time adapter for a configurable IANA timezone.

    Revisions may be recorded in any zone; comparisons between aware
    datetimes are zone-independent, the zone only matters for display and
    day-granularity truncation.
    """

    def __init__(self, tz_name: str = "UTC") -> None:
        """
        Initialize with specified timezone.

        Args:
            tz_name: IANA timezone name (default: UTC)
        """
        self._tz_name = tz_name
        self._tz = ZoneInfo(tz_name)
        self._utc = UTC

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        return datetime.now(self._utc)

    def to_zone(self, dt: datetime, tz_name: str | None = None) -> datetime:
        """
        Convert a datetime to `tz_name` (default: the configured zone).

        If dt is naive, it's assumed to be UTC.
        """
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=self._utc)

        tz = ZoneInfo(tz_name) if tz_name else self._tz
        return dt.astimezone(tz)

    @property
    def timezone_name(self) -> str:
        """Get the configured timezone name."""
        return self._tz_name


class FrozenTimeAdapter(ZoneTimeAdapter):
    """
    Time adapter that returns a fixed time.

    Useful for deterministic testing.
    """

    def __init__(self, frozen_utc: datetime, tz_name: str = "UTC") -> None:
        """
        Initialize with frozen time.

        Args:
            frozen_utc: The UTC time to return from now_utc()
            tz_name: IANA timezone name for conversions
        """
        super().__init__(tz_name)
        if frozen_utc.tzinfo is None:
            frozen_utc = frozen_utc.replace(tzinfo=UTC)
        self._frozen_utc = frozen_utc.astimezone(UTC)

    def now_utc(self) -> datetime:
        """Get frozen UTC time."""
        return self._frozen_utc

    def advance(self, delta: timedelta) -> None:
        """Advance frozen time by delta (for testing)."""
        self._frozen_utc = self._frozen_utc + delta


def create_time_adapter(tz_name: str = "UTC") -> ZoneTimeAdapter:
    """Factory function to create a time adapter."""
    return ZoneTimeAdapter(tz_name)
