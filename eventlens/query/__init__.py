"""Store-agnostic query resolution: time windows and SQL builders."""
from .window import WINDOW_DURATIONS, window_duration, resolve_lower_bound
from .builder import CompiledQuery, QueryBuilder, PositionalQueryBuilder, NumberedQueryBuilder

__all__ = [
    "WINDOW_DURATIONS",
    "window_duration",
    "resolve_lower_bound",
    "CompiledQuery",
    "QueryBuilder",
    "PositionalQueryBuilder",
    "NumberedQueryBuilder",
]
