"""Base adapter interface for event store backends."""
from abc import ABC, abstractmethod
from typing import Any
import orjson
from ..event_models import Event, QueryFilter, Store


class EventStoreAdapter(ABC):
    """Abstract interface for event store implementations."""

    store: Store

    @abstractmethod
    async def fetch(self, query: QueryFilter) -> list[Event]:
        """
        Run a filtered, paginated event query.

        Args:
            query: Store-agnostic filter to compile for this backend

        Returns:
            Events ordered newest first

        Raises:
            asyncio.TimeoutError: If the store did not answer in time
            Exception: Driver errors are propagated unchanged
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the backend is healthy and accessible.

        Returns:
            True if backend is healthy, False otherwise
        """
        pass

    async def close(self) -> None:
        """Release backend resources owned by the adapter (none by default)."""
        return None


def structured_text(value: Any) -> str:
    """Render a payload column as text whatever type the driver produced."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return orjson.dumps(value, default=str).decode()


def row_to_event(timestamp, tool, topic, structured) -> Event:
    return Event(
        timestamp=timestamp,
        tool=tool,
        topic=topic,
        structured=structured_text(structured),
    )
