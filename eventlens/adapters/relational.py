"""PostgreSQL relational event store adapter."""
import asyncio
import time
import asyncpg
import structlog
from .base import EventStoreAdapter, row_to_event
from ..event_models import Event, QueryFilter, Store
from ..query.builder import CompiledQuery, NumberedQueryBuilder
from ..query.window import resolve_lower_bound

log = structlog.get_logger()


class RelationalStoreAdapter(EventStoreAdapter):
    """PostgreSQL implementation of the event store adapter.

    The payload column may be ``jsonb``; it is cast to text both for the
    substring search and in the returned rows.
    """

    store = Store.RELATIONAL

    def __init__(self, pool: asyncpg.Pool, table: str = "events", timeout: float = 30.0):
        """
        Initialize PostgreSQL adapter.

        Args:
            pool: asyncpg connection pool owned by the application
            table: Events table name
            timeout: Per-query deadline in seconds
        """
        self._pool = pool
        self._builder = NumberedQueryBuilder(table)
        self._timeout = timeout

    def compile(self, query: QueryFilter) -> CompiledQuery:
        """Compile a filter against the current wall clock."""
        return self._builder.build(query, resolve_lower_bound(query.window))

    async def fetch(self, query: QueryFilter) -> list[Event]:
        """
        Query events from PostgreSQL.

        Args:
            query: Filter to compile

        Returns:
            Events ordered newest first

        Raises:
            asyncpg.PostgresError: If the statement fails
            asyncio.TimeoutError: If the query exceeds the deadline
        """
        compiled = self.compile(query)
        log.debug("query.compiled", store=self.store.value, sql=compiled.sql)

        start_time = time.time()
        try:
            rows = await self._pool.fetch(compiled.sql, *compiled.params, timeout=self._timeout)
        except asyncio.TimeoutError:
            log.error("query.timeout", store=self.store.value, timeout_s=self._timeout)
            raise
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            log.error("query.failed", store=self.store.value, error=str(e))
            raise

        events = [
            row_to_event(row["timestamp"], row["tool"], row["topic"], row["structured"])
            for row in rows
        ]
        log.info(
            "query.executed",
            store=self.store.value,
            rows=len(events),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return events

    async def health_check(self) -> bool:
        """
        Check PostgreSQL connection health.

        Returns:
            True if PostgreSQL answers, False otherwise
        """
        try:
            return await self._pool.fetchval("SELECT 1", timeout=self._timeout) == 1
        except Exception as e:
            log.warning("postgres.health_check_failed", error=str(e))
            return False
