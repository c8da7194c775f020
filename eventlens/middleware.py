"""
HTTP middleware: correlation IDs, request metrics and the per-request log line.

Endpoints that resolve an event query leave it on ``request.state.query_filter``
(and the number of events on ``request.state.event_count``) so the request
log line says which store and filter a slow or failing request used.
"""
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import structlog

UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """Path template of the matched route, or ``unmatched`` for 404s."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


def query_context(request: Request) -> dict:
    query = getattr(request.state, "query_filter", None)
    if query is None:
        return {}
    context = {
        "store": query.store.value,
        "window": query.window,
        "topic": query.topic,
        "has_content": query.content is not None,
        "limit": query.limit,
        "offset": query.offset,
    }
    count = getattr(request.state, "event_count", None)
    if count is not None:
        context["events"] = count
    return context


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a correlation ID.

    The ID comes from the X-Correlation-ID header or a new UUID; it is bound
    to the structlog context and echoed on the response.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            http_method=request.method,
        )

        response = await call_next(request)
        response.headers["x-correlation-id"] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Records Prometheus request metrics and logs one line per request.

    Metrics are labelled by route template so query strings and unknown
    paths cannot blow up label cardinality.
    """

    def __init__(self, app, metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        # The Prometheus mount is not measured
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        logger = structlog.get_logger()
        self.metrics.http_requests_active.inc()
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start
            route = route_template(request)
            self.metrics.observe_request(request.method, route, 500, duration)
            logger.error(
                "http_request_error",
                route=route,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
                **query_context(request),
            )
            raise
        finally:
            self.metrics.http_requests_active.dec()

        duration = time.perf_counter() - start
        route = route_template(request)
        self.metrics.observe_request(request.method, route, response.status_code, duration)
        logger.info(
            "http_request",
            route=route,
            http_status=response.status_code,
            duration_ms=round(duration * 1000, 2),
            **query_context(request),
        )
        return response
