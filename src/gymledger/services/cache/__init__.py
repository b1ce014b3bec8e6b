"""Cache package for the local fallback store."""

from .fallback_cache import FallbackCache, KeyValueStorage, MemoryStorage, SQLiteStorage

__all__ = ['FallbackCache', 'KeyValueStorage', 'MemoryStorage', 'SQLiteStorage']
