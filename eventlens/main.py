"""
EventLens - browse structured events and chart their numeric fields.

Features:
- Event queries against a columnar (DuckDB) or relational (PostgreSQL) store
- Numeric field discovery and time-series aggregation for charts
- Structured logging with correlation IDs
- Prometheus metrics
- Health checks (liveness and readiness)
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from . import __version__
from .config import Settings, get_settings
from .logging import setup_logging, get_logger
from .api.router import router
from .api.error_handlers import register_error_handlers
from .middleware import CorrelationIdMiddleware, MetricsMiddleware
from .metrics import Metrics
from .health import HealthChecker
from .services.connections import StoreConnections
from .services.query_service import QueryService

SERVICE_NAME = "eventlens"

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open store connections for the lifetime of the process.

    A query service installed on ``app.state`` before startup is kept as is.
    """
    settings: Settings = app.state.settings
    connections = None
    if getattr(app.state, "query_service", None) is None:
        connections = StoreConnections(settings)
        adapters = await connections.open()
        app.state.query_service = QueryService(
            adapters, metrics=app.state.metrics, max_limit=settings.MAX_PAGE_SIZE
        )

    logger.info(
        "service_starting",
        version=__version__,
        env=settings.ENV,
        stores=[store.value for store in app.state.query_service.stores],
    )
    try:
        yield
    finally:
        logger.info("service_stopping")
        app.state.metrics.app_up.labels(service=SERVICE_NAME, version=__version__).set(0)
        if connections is not None:
            await connections.close()
            app.state.query_service = None


def create_app(settings: Settings | None = None, query_service: QueryService | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration (defaults to environment settings)
        query_service: Pre-built query service; when omitted the stores are
            opened on startup from the settings
    """
    settings = settings or get_settings()
    metrics = Metrics(service_name=SERVICE_NAME, version=__version__)
    health_checker = HealthChecker.from_settings(settings, service_name=SERVICE_NAME, version=__version__)

    app = FastAPI(
        title="EventLens",
        version=__version__,
        description="Event browsing and time-series charting over columnar and relational stores",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.query_service = query_service

    # Added last runs first: correlation ID, then metrics
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization", "X-Correlation-ID"],
    )

    register_error_handlers(app)
    app.include_router(router)
    app.mount("/metrics", make_asgi_app(registry=metrics.registry))

    @app.get("/health")
    async def health():
        """
        Liveness probe - basic health check.

        Returns 200 if service is running.
        """
        logger.debug("health_check_liveness")
        return health_checker.liveness()

    @app.get("/health/ready")
    async def health_ready(request: Request):
        """
        Readiness probe - comprehensive health check.

        Returns:
            200: At least one event store answers and resources are fine
            503: Service is not ready
        """
        logger.debug("health_check_readiness")
        result = await health_checker.readiness(request.app.state.query_service)
        status_code = 200 if result["status"] == "ready" else 503
        return JSONResponse(result, status_code=status_code)

    return app


_settings = get_settings()
setup_logging(json_output=_settings.LOG_JSON, service_name=SERVICE_NAME, level=_settings.LOG_LEVEL)

app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventlens.main:app",
        host="0.0.0.0",
        port=_settings.SERVICE_PORT,
    )
