"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def epoch_millis(moment: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch (defaults to now)."""
    return int((moment or utc_now()).timestamp() * 1000)


def cutoff_before(*, hours: int = 0, days: int = 0) -> datetime:
    """Point in time `hours`/`days` before now."""
    return utc_now() - timedelta(hours=hours, days=days)
