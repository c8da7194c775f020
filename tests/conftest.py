"""Shared fixtures: a seeded DuckDB store and a pool double that runs on it."""
from datetime import datetime, timedelta, timezone
import duckdb
import pytest
from eventlens.event_models import Event

SCHEMA = 'CREATE TABLE events ("timestamp" TIMESTAMP, tool VARCHAR, topic VARCHAR, structured VARCHAR)'


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def seed_rows(now: datetime) -> list[tuple]:
    """Rows at distinct ages, newest first once ordered."""
    return [
        (now - timedelta(minutes=2), "probe", "cpu", '{"load": 0.5, "cores": [1, 2]}'),
        (now - timedelta(minutes=4), "probe", "mem", '{"used": "512", "free": 128}'),
        (now - timedelta(minutes=10), "agent", "cpu", '{"load": 0.9, "host": "db-1"}'),
        (now - timedelta(minutes=30), "agent", "cpu", '{"load": 1.5, "host": "db-2"}'),
        (now - timedelta(minutes=50), "probe", "disk", "not json at all"),
        (now - timedelta(hours=3), "probe", "cpu", '{"load": 2.0}'),
        (now - timedelta(days=2), "agent", "mem", '{"used": 900}'),
    ]


@pytest.fixture
def duckdb_conn():
    conn = duckdb.connect(database=":memory:")
    conn.execute(SCHEMA)
    conn.executemany("INSERT INTO events VALUES (?, ?, ?, ?)", seed_rows(utc_now_naive()))
    yield conn
    conn.close()


class DuckDBBackedPool:
    """
    Minimal stand-in for an asyncpg pool.

    Executes the numbered-placeholder statements on DuckDB, which accepts
    ``$n`` parameters as well, so both adapters can be compared on the same
    data.
    """

    def __init__(self, conn):
        self._conn = conn
        self.calls = []

    async def fetch(self, sql, *args, timeout=None):
        self.calls.append((sql, args, timeout))
        params = [
            a.astimezone(timezone.utc).replace(tzinfo=None)
            if isinstance(a, datetime) and a.tzinfo is not None
            else a
            for a in args
        ]
        cursor = self._conn.cursor()
        try:
            result = cursor.execute(sql, params or None)
            columns = [d[0] for d in result.description]
            return [dict(zip(columns, row)) for row in result.fetchall()]
        finally:
            cursor.close()

    async def fetchval(self, sql, *args, timeout=None):
        return 1


@pytest.fixture
def duckdb_pool(duckdb_conn):
    return DuckDBBackedPool(duckdb_conn)


def make_event(ms: int, structured: str, topic: str = "t") -> Event:
    """Event at ``ms`` milliseconds after the epoch."""
    return Event(
        timestamp=datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=ms),
        tool="test",
        topic=topic,
        structured=structured,
    )
