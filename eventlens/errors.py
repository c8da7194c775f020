"""Domain exceptions raised by the query layer."""


class EventLensError(Exception):
    """Base class for all EventLens errors."""


class InvalidFilter(EventLensError, ValueError):
    """A query filter could not be built from the request parameters."""


class QueryFailed(EventLensError):
    """
    Normalized failure of a store query.

    Carries the store name and the underlying driver message so callers can
    render a single user-visible error.
    """

    def __init__(self, store: str, message: str):
        super().__init__(message)
        self.store = store
        self.message = message

    def __str__(self) -> str:
        return self.message


class TimeoutFailure(QueryFailed):
    """The store did not answer within the configured deadline."""


class StoreUnavailable(QueryFailed):
    """The requested store is not configured for this process."""
