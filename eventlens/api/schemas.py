from pydantic import BaseModel, Field
from typing import Any, Dict, List
from ..event_models import Event, QueryFilter


class FilterParams(BaseModel):
    """Filter echoed back under the request's own parameter names."""
    timeRange: str | None = None
    content: str | None = None
    topic: str | None = None
    database: str
    limit: int
    offset: int

    @classmethod
    def from_filter(cls, query: QueryFilter) -> "FilterParams":
        return cls(
            timeRange=query.window,
            content=query.content,
            topic=query.topic,
            database=query.store.value,
            limit=query.limit,
            offset=query.offset,
        )


class EventListResponse(BaseModel):
    events: List[Event]
    count: int
    params: FilterParams


class ChartResponse(BaseModel):
    fields: List[str] = Field(default_factory=list, description="Numeric field paths found in the events")
    selected: List[str] = Field(default_factory=list)
    series: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class ErrorResponse(BaseModel):
    error: str
