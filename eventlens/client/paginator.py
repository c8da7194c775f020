"""
Incremental event loading for scrolling consumers.

``EventPaginator`` is a small state machine:

    IDLE --set_filter--> FETCHING_FIRST_PAGE --ok--> IDLE | EXHAUSTED
    IDLE --load_more---> FETCHING_NEXT_PAGE  --ok--> IDLE | EXHAUSTED
    FETCHING_*  --error--> FAILED

A short page (fewer rows than the limit the server applied) means the data
is exhausted. Every filter change starts a new epoch; a response that
resolves for an older epoch is dropped.
"""
from enum import Enum
from typing import Awaitable, Callable
import structlog
from ..event_models import Event, EventPage, QueryFilter

log = structlog.get_logger()

Fetcher = Callable[[QueryFilter], Awaitable[EventPage]]


class PageState(str, Enum):
    IDLE = "idle"
    FETCHING_FIRST_PAGE = "fetching_first_page"
    FETCHING_NEXT_PAGE = "fetching_next_page"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class EventPaginator:
    """Accumulates pages of events for the active filter."""

    def __init__(self, fetch: Fetcher, prefetch_distance: int = 10):
        """
        Initialize the paginator.

        Args:
            fetch: Coroutine function returning an ``EventPage`` for a filter
            prefetch_distance: How close to the end of the buffer the
                consumer must be for ``notify_position`` to load more
        """
        self._fetch = fetch
        self.prefetch_distance = prefetch_distance
        self.state = PageState.IDLE
        self.events: list[Event] = []
        self.error: str | None = None
        self.epoch = 0
        self._filter: QueryFilter | None = None
        self._offset = 0

    @property
    def is_fetching(self) -> bool:
        return self.state in (PageState.FETCHING_FIRST_PAGE, PageState.FETCHING_NEXT_PAGE)

    @property
    def filter(self) -> QueryFilter | None:
        return self._filter

    async def set_filter(self, query: QueryFilter):
        """Start over for a new filter and load its first page."""
        self.epoch += 1
        self._filter = query.model_copy(update={"offset": 0})
        self._offset = 0
        self.events = []
        self.error = None
        self.state = PageState.FETCHING_FIRST_PAGE
        log.debug("paginator.filter_changed", epoch=self.epoch)
        await self._load(self.epoch)

    async def load_more(self) -> bool:
        """
        Load the next page if the paginator is idle.

        Returns:
            True if a fetch was issued
        """
        if self._filter is None or self.state is not PageState.IDLE:
            return False
        self.state = PageState.FETCHING_NEXT_PAGE
        await self._load(self.epoch)
        return True

    async def notify_position(self, index: int) -> bool:
        """Proximity signal: the consumer is showing row ``index``."""
        if len(self.events) - index > self.prefetch_distance:
            return False
        return await self.load_more()

    async def _load(self, epoch: int):
        query = self._filter.model_copy(update={"offset": self._offset})
        try:
            page = await self._fetch(query)
        except Exception as e:
            if epoch != self.epoch:
                log.debug("paginator.stale_failure_discarded", epoch=epoch, current=self.epoch)
                return
            self.state = PageState.FAILED
            self.error = str(e) or type(e).__name__
            log.warning("paginator.fetch_failed", epoch=epoch, offset=query.offset, error=self.error)
            return

        if epoch != self.epoch:
            log.debug("paginator.stale_response_discarded", epoch=epoch, current=self.epoch)
            return

        self.events.extend(page.events)
        self._offset += len(page.events)
        self.state = PageState.EXHAUSTED if len(page.events) < page.limit else PageState.IDLE
        log.info(
            "paginator.page_loaded",
            epoch=epoch,
            offset=query.offset,
            rows=len(page.events),
            limit=page.limit,
            total=len(self.events),
            state=self.state.value,
        )
