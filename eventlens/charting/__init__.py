"""Charting pipeline: numeric field discovery and time-series aggregation."""
from .fields import discover_fields, parse_path, resolve_path, as_number
from .series import SeriesPoint, aggregate_series
from .session import ChartSession

__all__ = [
    "discover_fields",
    "parse_path",
    "resolve_path",
    "as_number",
    "SeriesPoint",
    "aggregate_series",
    "ChartSession",
]
