from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from .schemas import ChartResponse, ErrorResponse, EventListResponse, FilterParams
from ..charting.session import ChartSession
from ..config import Settings
from ..errors import InvalidFilter, StoreUnavailable
from ..event_models import QueryFilter
from ..services.query_service import QueryService

router = APIRouter(prefix="/api")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid filter"},
    500: {"model": ErrorResponse, "description": "Store query failed or timed out"},
    503: {"model": ErrorResponse, "description": "Store not configured"},
}


def get_query_service(request: Request) -> QueryService:
    service = getattr(request.app.state, "query_service", None)
    if service is None:
        raise StoreUnavailable("none", "No event store is configured")
    return service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _build_filter(settings: Settings, timeRange, content, topic, database, limit, offset) -> QueryFilter:
    try:
        return QueryFilter(
            window=timeRange,
            content=content,
            topic=topic,
            store=database or settings.DEFAULT_STORE,
            limit=limit if limit > 0 else settings.DEFAULT_PAGE_SIZE,
            offset=offset,
        )
    except ValidationError as e:
        raise InvalidFilter(e.errors()[0]["msg"]) from e


def event_filter(
    timeRange: str | None = Query(None, description="Window token: 1m, 5m, 20m, 1h, 5h, 1d, 1w, 1mo"),
    content: str | None = Query(None, description="Substring to find in the structured payload"),
    topic: str | None = Query(None, description="Exact topic"),
    database: str | None = Query(None, description="columnar or relational"),
    limit: int = 0,
    offset: int = 0,
    settings: Settings = Depends(get_app_settings),
) -> QueryFilter:
    return _build_filter(settings, timeRange, content, topic, database, limit, offset)


@router.get("/health")
async def api_health(request: Request):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }


@router.get("/events", response_model=EventListResponse, responses=ERROR_RESPONSES)
async def list_events(
    request: Request,
    query: QueryFilter = Depends(event_filter),
    service: QueryService = Depends(get_query_service),
):
    query = service.apply_defaults(query)
    request.state.query_filter = query
    events = await service.resolve(query)
    request.state.event_count = len(events)
    return EventListResponse(events=events, count=len(events), params=FilterParams.from_filter(query))


@router.get("/charts", response_model=ChartResponse, responses=ERROR_RESPONSES)
async def chart_series(
    request: Request,
    timeRange: str | None = Query(None),
    topic: str | None = Query(None),
    database: str | None = Query(None),
    fields: list[str] | None = Query(None, description="Field paths to plot"),
    limit: int = 0,
    service: QueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
):
    if not topic or not topic.strip():
        raise InvalidFilter("Please enter a topic filter")

    chart_limit = limit if limit > 0 else settings.CHART_PAGE_SIZE
    query = service.apply_defaults(
        _build_filter(settings, timeRange, None, topic.strip(), database, chart_limit, 0)
    )
    request.state.query_filter = query
    events = await service.resolve(query)
    request.state.event_count = len(events)

    session = ChartSession()
    if fields:
        session.select(fields)
    session.load(events)
    return ChartResponse(
        fields=session.fields,
        selected=session.selected,
        series=session.records(),
        count=len(events),
    )


@router.get("/stats")
async def store_stats(request: Request, settings: Settings = Depends(get_app_settings)):
    service = getattr(request.app.state, "query_service", None)
    health = await service.health() if service is not None else {}
    return {
        "default_store": settings.DEFAULT_STORE,
        "stores": {
            store: ("connected" if health[store] else "disconnected") if store in health else "not_configured"
            for store in ("columnar", "relational")
        },
    }
