"""Opening and closing the store connections owned by the process."""
import asyncio
import asyncpg
import duckdb
import structlog
from ..adapters.base import EventStoreAdapter
from ..adapters.columnar import ColumnarStoreAdapter
from ..adapters.relational import RelationalStoreAdapter
from ..config import Settings
from ..event_models import Store

log = structlog.get_logger()


class StoreConnections:
    """
    Connection handles for both stores.

    A store whose connection setting is empty, or whose connection fails,
    is left out; queries for it are rejected as unavailable.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.duckdb: duckdb.DuckDBPyConnection | None = None
        self.pg_pool: asyncpg.Pool | None = None

    async def open(self) -> dict[Store, EventStoreAdapter]:
        """Connect to every configured store and build its adapter."""
        settings = self.settings
        adapters: dict[Store, EventStoreAdapter] = {}

        if settings.DUCKDB_PATH:
            try:
                self.duckdb = await asyncio.to_thread(
                    duckdb.connect,
                    database=settings.DUCKDB_PATH,
                    read_only=settings.DUCKDB_READ_ONLY,
                )
                adapters[Store.COLUMNAR] = ColumnarStoreAdapter(
                    self.duckdb, table=settings.EVENTS_TABLE, timeout=settings.QUERY_TIMEOUT_SECONDS
                )
                log.info("store.connected", store=Store.COLUMNAR.value, path=settings.DUCKDB_PATH)
            except duckdb.Error as e:
                log.error("store.connect_failed", store=Store.COLUMNAR.value, error=str(e))
        else:
            log.warning("store.not_configured", store=Store.COLUMNAR.value, setting="DUCKDB_PATH")

        if settings.POSTGRES_DSN:
            try:
                self.pg_pool = await asyncpg.create_pool(
                    settings.POSTGRES_DSN,
                    min_size=settings.POSTGRES_POOL_MIN_SIZE,
                    max_size=settings.POSTGRES_POOL_MAX_SIZE,
                    timeout=settings.QUERY_TIMEOUT_SECONDS,
                )
                adapters[Store.RELATIONAL] = RelationalStoreAdapter(
                    self.pg_pool, table=settings.EVENTS_TABLE, timeout=settings.QUERY_TIMEOUT_SECONDS
                )
                log.info("store.connected", store=Store.RELATIONAL.value)
            except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
                log.error("store.connect_failed", store=Store.RELATIONAL.value, error=str(e))
        else:
            log.warning("store.not_configured", store=Store.RELATIONAL.value, setting="POSTGRES_DSN")

        return adapters

    async def close(self):
        if self.pg_pool is not None:
            await self.pg_pool.close()
            self.pg_pool = None
        if self.duckdb is not None:
            self.duckdb.close()
            self.duckdb = None
        log.info("store.connections_closed")
