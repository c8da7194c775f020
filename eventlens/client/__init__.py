"""Client-side helpers: HTTP events client and the pagination controller."""
from .events_client import EventsClient
from .paginator import EventPaginator, PageState

__all__ = ["EventsClient", "EventPaginator", "PageState"]
