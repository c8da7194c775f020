"""Tests for the pagination state machine."""
import asyncio
import pytest
from conftest import make_event
from eventlens.errors import QueryFailed
from eventlens.event_models import EventPage, QueryFilter
from eventlens.client.paginator import EventPaginator, PageState


class PagedSource:
    """Serves slices of a fixed event list, counting fetches."""

    def __init__(self, count: int):
        self.events = [make_event(ms, '{"n": %d}' % ms) for ms in range(count, 0, -1)]
        self.calls: list[QueryFilter] = []

    async def __call__(self, query: QueryFilter):
        self.calls.append(query)
        return EventPage(events=self.events[query.offset:query.offset + query.limit], limit=query.limit)


@pytest.mark.asyncio
async def test_first_page_on_filter_change():
    source = PagedSource(25)
    paginator = EventPaginator(source)
    assert paginator.state is PageState.IDLE

    await paginator.set_filter(QueryFilter(limit=10, offset=7))

    assert paginator.state is PageState.IDLE
    assert paginator.events == source.events[:10]
    # Offset always restarts at zero for a new filter
    assert source.calls[0].offset == 0


@pytest.mark.asyncio
async def test_load_more_until_exhausted():
    """Repeated load_more reaches EXHAUSTED and stops issuing requests."""
    source = PagedSource(25)
    paginator = EventPaginator(source)
    await paginator.set_filter(QueryFilter(limit=10))

    for _ in range(10):
        await paginator.load_more()

    assert paginator.state is PageState.EXHAUSTED
    assert paginator.events == source.events
    assert [q.offset for q in source.calls] == [0, 10, 20]


@pytest.mark.asyncio
async def test_exact_multiple_needs_one_empty_page():
    source = PagedSource(20)
    paginator = EventPaginator(source)
    await paginator.set_filter(QueryFilter(limit=10))
    await paginator.load_more()
    assert paginator.state is PageState.IDLE

    await paginator.load_more()
    assert paginator.state is PageState.EXHAUSTED
    assert len(paginator.events) == 20
    assert await paginator.load_more() is False
    assert len(source.calls) == 3


@pytest.mark.asyncio
async def test_load_more_before_any_filter_is_noop():
    source = PagedSource(5)
    paginator = EventPaginator(source)
    assert await paginator.load_more() is False
    assert source.calls == []


@pytest.mark.asyncio
async def test_concurrent_load_more_issues_one_fetch():
    gate = asyncio.Event()
    source = PagedSource(30)

    async def slow_fetch(query):
        if query.offset > 0:
            await gate.wait()
        return await source(query)

    paginator = EventPaginator(slow_fetch)
    await paginator.set_filter(QueryFilter(limit=10))

    pending = asyncio.create_task(paginator.load_more())
    await asyncio.sleep(0)
    assert paginator.state is PageState.FETCHING_NEXT_PAGE
    assert await paginator.load_more() is False

    gate.set()
    assert await pending is True
    assert len(source.calls) == 2
    assert len(paginator.events) == 20


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    """A page resolving after the filter changed never reaches the buffer."""
    gate = asyncio.Event()
    old = [make_event(1, '{"old": 1}', topic="old")] * 3
    new = [make_event(2, '{"new": 1}', topic="new")]

    async def fetch(query):
        if query.topic == "old":
            await gate.wait()
            return EventPage(events=old, limit=query.limit)
        return EventPage(events=new, limit=query.limit)

    paginator = EventPaginator(fetch)
    pending = asyncio.create_task(paginator.set_filter(QueryFilter(topic="old", limit=3)))
    await asyncio.sleep(0)

    await paginator.set_filter(QueryFilter(topic="new", limit=3))
    gate.set()
    await pending

    assert paginator.events == new
    assert paginator.state is PageState.EXHAUSTED
    assert paginator.epoch == 2


@pytest.mark.asyncio
async def test_failure_keeps_data_and_blocks_further_fetches():
    source = PagedSource(30)

    async def flaky(query):
        if query.offset == 10:
            raise QueryFailed("columnar", "connection reset")
        return await source(query)

    paginator = EventPaginator(flaky)
    await paginator.set_filter(QueryFilter(limit=10))
    await paginator.load_more()

    assert paginator.state is PageState.FAILED
    assert paginator.error == "connection reset"
    assert len(paginator.events) == 10
    assert await paginator.load_more() is False

    # Only a filter change leaves FAILED
    paginator._fetch = source
    await paginator.set_filter(QueryFilter(limit=10, topic="any"))
    assert paginator.state is PageState.IDLE
    assert paginator.error is None


@pytest.mark.asyncio
async def test_notify_position_uses_proximity():
    source = PagedSource(40)
    paginator = EventPaginator(source, prefetch_distance=3)
    await paginator.set_filter(QueryFilter(limit=10))

    assert await paginator.notify_position(2) is False
    assert len(source.calls) == 1

    assert await paginator.notify_position(8) is True
    assert len(paginator.events) == 20


@pytest.mark.asyncio
async def test_capped_page_is_not_mistaken_for_the_last():
    """Exhaustion is judged against the page size the server applied."""
    source = PagedSource(9)

    async def capped(query):
        return await source(query.model_copy(update={"limit": min(query.limit, 4)}))

    paginator = EventPaginator(capped)
    await paginator.set_filter(QueryFilter(limit=10))
    assert paginator.state is PageState.IDLE
    assert len(paginator.events) == 4

    while await paginator.load_more():
        pass

    assert paginator.state is PageState.EXHAUSTED
    assert paginator.events == source.events
    assert [q.offset for q in source.calls] == [0, 4, 8]
