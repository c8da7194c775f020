from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field, field_validator

DEFAULT_LIMIT = 100


class Store(str, Enum):
    """Backing stores an event query can be resolved against."""
    COLUMNAR = "columnar"
    RELATIONAL = "relational"


# Names accepted from clients, including the ones the dashboard sends
STORE_ALIASES = {
    "columnar": Store.COLUMNAR,
    "clickhouse": Store.COLUMNAR,
    "duckdb": Store.COLUMNAR,
    "relational": Store.RELATIONAL,
    "postgresql": Store.RELATIONAL,
    "postgres": Store.RELATIONAL,
}


class Event(BaseModel):
    timestamp: datetime
    tool: str = ""
    topic: str = ""
    structured: str = Field("", description="Serialized JSON payload of arbitrary shape")

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("tool", "topic", "structured", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value


class QueryFilter(BaseModel):
    """Store-agnostic description of an event query."""
    window: str | None = Field(None, description="Window token such as 1m, 1h or 1mo")
    content: str | None = Field(None, description="Substring to find in the structured payload")
    topic: str | None = Field(None, description="Exact topic to match")
    store: Store = Store.COLUMNAR
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @field_validator("window", "content", "topic", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("store", mode="before")
    @classmethod
    def _store_alias(cls, value):
        if value is None or value == "":
            return Store.COLUMNAR
        if isinstance(value, str):
            store = STORE_ALIASES.get(value.strip().lower())
            if store is None:
                raise ValueError(f"unknown database {value!r}")
            return store
        return value

    @field_validator("limit")
    @classmethod
    def _default_limit(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_LIMIT

    @field_validator("offset")
    @classmethod
    def _non_negative_offset(cls, value: int) -> int:
        return max(value, 0)

    def next_page(self) -> "QueryFilter":
        """Filter for the page following this one."""
        return self.model_copy(update={"offset": self.offset + self.limit})


class EventPage(BaseModel):
    """One page of events and the page size the server actually applied."""
    events: list[Event] = Field(default_factory=list)
    limit: int = DEFAULT_LIMIT
