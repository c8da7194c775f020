"""Query facade dispatching store-agnostic filters to store adapters."""
import asyncio
import time
from typing import Mapping
import structlog
from ..adapters.base import EventStoreAdapter
from ..errors import QueryFailed, StoreUnavailable, TimeoutFailure
from ..event_models import Event, QueryFilter, Store
from ..metrics import Metrics

log = structlog.get_logger()


class QueryService:
    """
    Resolves event queries against whichever store the filter names.

    Adapter errors of any kind come back as a single ``QueryFailed``; a
    failed query never yields partial results and is never retried.
    """

    def __init__(
        self,
        adapters: Mapping[Store, EventStoreAdapter],
        metrics: Metrics | None = None,
        max_limit: int = 1000,
    ):
        """
        Initialize the query service.

        Args:
            adapters: Configured adapters keyed by store
            metrics: Optional Prometheus metrics to record queries on
            max_limit: Largest page size a single query may request
        """
        self._adapters = dict(adapters)
        self._metrics = metrics
        self._max_limit = max_limit

    @property
    def stores(self) -> list[Store]:
        """Stores with a configured adapter."""
        return list(self._adapters)

    def apply_defaults(self, query: QueryFilter) -> QueryFilter:
        """Clamp the page size to the configured maximum."""
        if query.limit > self._max_limit:
            return query.model_copy(update={"limit": self._max_limit})
        return query

    async def resolve(self, query: QueryFilter) -> list[Event]:
        """
        Fetch the events matching a filter.

        Args:
            query: Store-agnostic filter

        Returns:
            Events ordered newest first

        Raises:
            StoreUnavailable: If no adapter is configured for the store
            TimeoutFailure: If the store did not answer in time
            QueryFailed: For any other adapter error
        """
        query = self.apply_defaults(query)
        store = query.store.value
        adapter = self._adapters.get(query.store)
        if adapter is None:
            log.warning("query.store_unavailable", store=store)
            raise StoreUnavailable(store, f"{store} store is not configured")

        log.info(
            "query.started",
            store=store,
            window=query.window,
            content=query.content,
            topic=query.topic,
            limit=query.limit,
            offset=query.offset,
        )
        start_time = time.time()
        try:
            events = await adapter.fetch(query)
        except asyncio.TimeoutError as e:
            self._record(store, "timeout", start_time)
            raise TimeoutFailure(store, f"{store} query timed out") from e
        except Exception as e:
            self._record(store, "error", start_time)
            log.error("query.failed", store=store, error=str(e), error_type=type(e).__name__)
            raise QueryFailed(store, str(e) or type(e).__name__) from e

        self._record(store, "ok", start_time, returned=len(events))
        return events

    async def health(self) -> dict[str, bool]:
        """Health of every configured store, keyed by store name."""
        return {
            store.value: await adapter.health_check()
            for store, adapter in self._adapters.items()
        }

    async def close(self) -> None:
        for adapter in self._adapters.values():
            await adapter.close()

    def _record(self, store: str, status: str, start_time: float, returned: int = 0):
        if self._metrics is None:
            return
        self._metrics.record_query(store, status, time.time() - start_time, returned)
