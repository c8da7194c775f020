from .base import EventStoreAdapter
from .columnar import ColumnarStoreAdapter
from .relational import RelationalStoreAdapter

__all__ = ["EventStoreAdapter", "ColumnarStoreAdapter", "RelationalStoreAdapter"]
