"""Tests for window token resolution."""
from datetime import datetime, timedelta, timezone
import pytest
from eventlens.query.window import WINDOW_DURATIONS, resolve_lower_bound, window_duration


@pytest.mark.parametrize(
    "token,expected",
    [
        ("1m", timedelta(minutes=1)),
        ("5m", timedelta(minutes=5)),
        ("20m", timedelta(minutes=20)),
        ("1h", timedelta(hours=1)),
        ("5h", timedelta(hours=5)),
        ("1d", timedelta(days=1)),
        ("1w", timedelta(days=7)),
        ("1mo", timedelta(days=30)),
    ],
)
def test_known_tokens(token, expected):
    assert window_duration(token) == expected


def test_unknown_token_falls_back_to_one_hour():
    """Unrecognized tokens resolve to the 1h window instead of failing."""
    assert window_duration("3y") == timedelta(hours=1)
    assert window_duration("1H") == WINDOW_DURATIONS["1h"]


def test_lower_bound_relative_to_reference():
    now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    assert resolve_lower_bound("5m", now=now) == datetime(2026, 10, 18, 11, 55, tzinfo=timezone.utc)


def test_no_window_means_no_bound():
    assert resolve_lower_bound(None) is None
    assert resolve_lower_bound("") is None


def test_lower_bound_tracks_wall_clock():
    """The bound is recomputed on every call, never cached."""
    before = datetime.now(timezone.utc)
    bound = resolve_lower_bound("1h")
    after = datetime.now(timezone.utc)

    assert bound.tzinfo is not None
    assert before - timedelta(hours=1) <= bound <= after - timedelta(hours=1)
    assert resolve_lower_bound("1h") >= bound
