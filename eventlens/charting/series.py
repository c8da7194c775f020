"""Aggregation of event payloads into timestamp-ordered chart series."""
from datetime import datetime, timedelta, timezone
from typing import Iterable
from pydantic import BaseModel, Field
import structlog
from .fields import as_number, load_payload, parse_path, resolve_path
from ..event_models import Event

log = structlog.get_logger()

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


class SeriesPoint(BaseModel):
    """One chart bucket: a display time and the summed field values."""
    time: str = Field(..., description="HH:MM:SS label of the bucket (UTC)")
    values: dict[str, int | float] = Field(default_factory=dict)

    def to_record(self) -> dict:
        """Flat record as chart libraries expect it; the time label wins over a field named 'time'."""
        record: dict = {"time": self.time}
        record.update((k, v) for k, v in self.values.items() if k != "time")
        return record


def timestamp_ms(value: datetime) -> int:
    """Milliseconds since the epoch for an aware or UTC-naive datetime."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // _MILLISECOND


def time_label(ms: int) -> str:
    return (EPOCH + ms * _MILLISECOND).strftime("%H:%M:%S")


def aggregate_series(events: Iterable[Event], fields: list[str]) -> list[SeriesPoint]:
    """
    Build a chart series for the selected fields.

    Events sharing a millisecond timestamp fold into one bucket by summing
    each field; a field missing from an event leaves the bucket's value
    untouched. Events with unparseable payloads are skipped.

    Args:
        events: Events in any order
        fields: Field paths to extract

    Returns:
        Points ordered by ascending timestamp
    """
    paths = {field: parse_path(field) for field in fields}
    buckets: dict[int, dict[str, int | float]] = {}

    for event in events:
        payload = load_payload(event.structured)
        if payload is None:
            continue

        values = {}
        for field, segments in paths.items():
            number = as_number(resolve_path(payload, segments))
            if number is not None:
                values[field] = number

        key = timestamp_ms(event.timestamp)
        bucket = buckets.get(key)
        if bucket is None:
            buckets[key] = values
        else:
            for field, number in values.items():
                bucket[field] = bucket.get(field, 0) + number

    series = [SeriesPoint(time=time_label(key), values=buckets[key]) for key in sorted(buckets)]
    log.debug("charting.series_built", points=len(series), fields=len(paths))
    return series
