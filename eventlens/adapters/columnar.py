"""DuckDB columnar event store adapter."""
import asyncio
import time
from datetime import datetime, timezone
import duckdb
import structlog
from .base import EventStoreAdapter, row_to_event
from ..event_models import Event, QueryFilter, Store
from ..query.builder import CompiledQuery, PositionalQueryBuilder
from ..query.window import resolve_lower_bound

log = structlog.get_logger()


class ColumnarStoreAdapter(EventStoreAdapter):
    """DuckDB implementation of the event store adapter.

    Timestamps are stored as plain ``TIMESTAMP`` values holding UTC. Every
    query runs on its own cursor in a worker thread so the event loop stays
    free while DuckDB scans.
    """

    store = Store.COLUMNAR

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        table: str = "events",
        timeout: float = 30.0,
    ):
        """
        Initialize DuckDB adapter.

        Args:
            conn: Open DuckDB connection owned by the application
            table: Events table or view name
            timeout: Per-query deadline in seconds
        """
        self._conn = conn
        self._builder = PositionalQueryBuilder(table)
        self._timeout = timeout

    @staticmethod
    def _naive_utc(value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def compile(self, query: QueryFilter) -> CompiledQuery:
        """Compile a filter against the current wall clock."""
        lower_bound = self._naive_utc(resolve_lower_bound(query.window))
        return self._builder.build(query, lower_bound)

    @staticmethod
    def _execute(cursor: duckdb.DuckDBPyConnection, compiled: CompiledQuery) -> list[tuple]:
        try:
            return cursor.execute(compiled.sql, compiled.params or None).fetchall()
        finally:
            cursor.close()

    async def fetch(self, query: QueryFilter) -> list[Event]:
        """
        Query events from DuckDB.

        Args:
            query: Filter to compile

        Returns:
            Events ordered newest first

        Raises:
            duckdb.Error: If the statement fails
            asyncio.TimeoutError: If the query exceeds the deadline
        """
        compiled = self.compile(query)
        log.debug("query.compiled", store=self.store.value, sql=compiled.sql)

        start_time = time.time()
        cursor = self._conn.cursor()
        try:
            rows = await asyncio.wait_for(
                asyncio.to_thread(self._execute, cursor, compiled),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            # The worker thread closes the cursor once DuckDB stops
            cursor.interrupt()
            log.error("query.timeout", store=self.store.value, timeout_s=self._timeout)
            raise
        except duckdb.Error as e:
            log.error("query.failed", store=self.store.value, error=str(e))
            raise

        events = [row_to_event(*row) for row in rows]
        log.info(
            "query.executed",
            store=self.store.value,
            rows=len(events),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return events

    async def health_check(self) -> bool:
        """
        Check DuckDB connection health.

        Returns:
            True if DuckDB answers, False otherwise
        """
        try:
            cursor = self._conn.cursor()
            await asyncio.wait_for(
                asyncio.to_thread(self._execute, cursor, CompiledQuery("SELECT 1")),
                timeout=self._timeout,
            )
            return True
        except Exception as e:
            log.warning("duckdb.health_check_failed", error=str(e))
            return False
