"""Symbolic time-window tokens resolved to absolute lower bounds."""
from datetime import datetime, timedelta, timezone
import structlog

log = structlog.get_logger()

WINDOW_DURATIONS: dict[str, timedelta] = {
    "1m": timedelta(minutes=1),
    "5m": timedelta(minutes=5),
    "20m": timedelta(minutes=20),
    "1h": timedelta(hours=1),
    "5h": timedelta(hours=5),
    "1d": timedelta(days=1),
    "1w": timedelta(weeks=1),
    "1mo": timedelta(days=30),
}

FALLBACK_WINDOW = "1h"


def window_duration(token: str) -> timedelta:
    """
    Map a window token to its duration.

    Unrecognized tokens resolve to the one-hour window instead of failing.
    """
    duration = WINDOW_DURATIONS.get(token)
    if duration is None:
        log.warning("window.unknown_token", token=token, fallback=FALLBACK_WINDOW)
        return WINDOW_DURATIONS[FALLBACK_WINDOW]
    return duration


def resolve_lower_bound(token: str | None, now: datetime | None = None) -> datetime | None:
    """
    Compute the oldest timestamp a query for ``token`` may return.

    Evaluated against the wall clock on every call so the window always
    covers the most recent span of time.

    Args:
        token: Window token, or None/empty for an unbounded query
        now: Reference instant (defaults to the current UTC time)

    Returns:
        Timezone-aware UTC lower bound, or None when no window was requested
    """
    if not token:
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    return now - window_duration(token)
