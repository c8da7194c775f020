"""
SQL builders for the event stores.

Both stores receive the same predicate sequence (time window, payload
substring, exact topic) and the same ordering. The variants differ only in
how placeholders are written and how the page clause is serialized:

- ``PositionalQueryBuilder``: ``?`` placeholders, LIMIT/OFFSET written into
  the statement text as validated integers.
- ``NumberedQueryBuilder``: ``$1, $2, ...`` placeholders numbered in the
  order predicates are appended, LIMIT/OFFSET bound as parameters.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from ..event_models import QueryFilter

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass(frozen=True)
class CompiledQuery:
    """A statement and the values bound to its placeholders, in order."""
    sql: str
    params: list[Any] = field(default_factory=list)


def _checked_int(name: str, value: Any) -> int:
    # bool is an int subclass and must not reach the statement text
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


class QueryBuilder(ABC):
    """Compiles a ``QueryFilter`` into a store-specific SELECT."""

    # Expression yielding the payload as text
    structured_expr = "structured"

    def __init__(self, table: str = "events"):
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self.table = table

    def build(self, query: QueryFilter, lower_bound: datetime | None = None) -> CompiledQuery:
        """
        Build the SELECT for a filter.

        Args:
            query: Filter to compile
            lower_bound: Oldest timestamp to include (None for no window)

        Returns:
            Compiled statement with its positional parameters
        """
        params: list[Any] = []
        clauses: list[str] = []

        if lower_bound is not None:
            clauses.append(f'"timestamp" >= {self._bind(params, lower_bound)}')
        if query.content:
            clauses.append(f"strpos({self.structured_expr}, {self._bind(params, query.content)}) > 0")
        if query.topic:
            clauses.append(f"topic = {self._bind(params, query.topic)}")

        sql = (
            f'SELECT "timestamp", tool, topic, {self.structured_expr} AS structured '
            f"FROM {self.table}"
        )
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += ' ORDER BY "timestamp" DESC'
        sql += self._page_clause(params, query.limit, query.offset)

        return CompiledQuery(sql=sql, params=params)

    def _bind(self, params: list[Any], value: Any) -> str:
        params.append(value)
        return self._placeholder(len(params))

    @abstractmethod
    def _placeholder(self, position: int) -> str:
        """Placeholder text for the parameter at 1-based ``position``."""

    @abstractmethod
    def _page_clause(self, params: list[Any], limit: int, offset: int) -> str:
        """LIMIT/OFFSET suffix; may append to ``params``."""


class PositionalQueryBuilder(QueryBuilder):
    """Builder for engines taking anonymous ``?`` placeholders (DuckDB)."""

    def _placeholder(self, position: int) -> str:
        return "?"

    def _page_clause(self, params: list[Any], limit: int, offset: int) -> str:
        # Only type-checked integers are ever interpolated here
        limit = _checked_int("limit", limit)
        offset = _checked_int("offset", offset)
        clause = f" LIMIT {limit}"
        if offset > 0:
            clause += f" OFFSET {offset}"
        return clause


class NumberedQueryBuilder(QueryBuilder):
    """Builder for engines taking numbered ``$n`` placeholders (PostgreSQL)."""

    structured_expr = "structured::text"

    def _placeholder(self, position: int) -> str:
        return f"${position}"

    def _page_clause(self, params: list[Any], limit: int, offset: int) -> str:
        clause = f" LIMIT {self._bind(params, limit)}"
        if offset > 0:
            clause += f" OFFSET {self._bind(params, offset)}"
        return clause
