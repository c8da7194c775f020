"""
Numeric field discovery over structured payloads of unknown shape.

A field path addresses a position inside a payload: object keys are joined
with dots and array positions use brackets, e.g. ``cpu.cores[2].load``.
"""
import math
import re
from typing import Any, Iterable, Iterator
import orjson
import structlog
from ..event_models import Event

log = structlog.get_logger()

# Returned by resolve_path when the path does not lead to a value
MISSING = object()

_NUMERIC_TEXT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_SEGMENT = re.compile(r"\[(\d+)\]|\.?([^.\[\]]+)")


def load_payload(structured: str) -> Any:
    """
    Parse a structured payload.

    Returns:
        The decoded JSON value, or None when the payload is not valid JSON
    """
    if not structured:
        return None
    try:
        return orjson.loads(structured)
    except orjson.JSONDecodeError as e:
        log.debug("charting.payload_skipped", error=str(e))
        return None


def as_number(value: Any) -> int | float | None:
    """
    Coerce a JSON leaf to a finite number.

    Numbers pass through, strings count only when the whole string is a
    finite decimal number. Booleans and everything else yield None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and _NUMERIC_TEXT.match(value):
        try:
            number = float(value)
        except (ValueError, OverflowError):
            return None
        return number if math.isfinite(number) else None
    return None


def _numeric_paths(value: Any, path: str) -> Iterator[str]:
    if isinstance(value, dict):
        for key, child in value.items():
            # An empty key has no spelling in a path
            if key == "":
                continue
            yield from _numeric_paths(child, f"{path}.{key}" if path else str(key))
    elif isinstance(value, list):
        for index, child in enumerate(value):
            yield from _numeric_paths(child, f"{path}[{index}]")
    elif path and as_number(value) is not None:
        yield path


def discover_fields(events: Iterable[Event]) -> list[str]:
    """
    Collect every path that leads to a numeric leaf in any event.

    Events whose payload does not parse are skipped.

    Returns:
        Paths sorted lexicographically
    """
    fields: set[str] = set()
    skipped = 0
    for event in events:
        payload = load_payload(event.structured)
        if payload is None:
            skipped += 1
            continue
        try:
            fields.update(_numeric_paths(payload, ""))
        except RecursionError:
            skipped += 1
            log.warning("charting.payload_too_deep", topic=event.topic)

    log.debug("charting.fields_discovered", fields=len(fields), skipped=skipped)
    return sorted(fields)


def parse_path(path: str) -> list[str | int]:
    """Split a field path into object keys (str) and array indices (int)."""
    segments: list[str | int] = []
    for match in _SEGMENT.finditer(path):
        index, key = match.groups()
        segments.append(int(index) if index is not None else key)
    return segments


def resolve_path(value: Any, segments: list[str | int]) -> Any:
    """
    Follow parsed path segments into a decoded payload.

    Returns:
        The value at the path, or MISSING on a type mismatch or a missing
        key or index
    """
    for segment in segments:
        if isinstance(segment, int):
            if not isinstance(value, list) or segment >= len(value):
                return MISSING
        elif not isinstance(value, dict) or segment not in value:
            return MISSING
        value = value[segment]
    return value
