"""Structured error responses for the API."""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog
from ..errors import InvalidFilter, QueryFailed, StoreUnavailable, TimeoutFailure

log = structlog.get_logger()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def invalid_filter_handler(request: Request, exc: InvalidFilter):
    log.warning("request.invalid_filter", error=str(exc), path=request.url.path)
    return _error(400, str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "query")
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    log.warning("request.validation_failed", error=message, path=request.url.path)
    return _error(400, message)


async def query_failed_handler(request: Request, exc: QueryFailed):
    if isinstance(exc, StoreUnavailable):
        status_code = 503
    else:
        status_code = 500
    log.error(
        "request.query_failed",
        store=exc.store,
        error=exc.message,
        timeout=isinstance(exc, TimeoutFailure),
        path=request.url.path,
    )
    return _error(status_code, exc.message)


async def unhandled_error_handler(request: Request, exc: Exception):
    log.error(
        "unhandled.exception",
        error=str(exc),
        error_type=exc.__class__.__name__,
        path=request.url.path,
        exc_info=exc,
    )
    return _error(500, "An unexpected error occurred")


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(InvalidFilter, invalid_filter_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(QueryFailed, query_failed_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
