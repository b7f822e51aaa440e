"""
Caching Context

Responsibilities:
- Derives deterministic cache keys from normalized render requests
- Stores encoded outputs with least-recently-used eviction

Owns: cache keys, cache storage
Never: Compiles or encodes documents
"""

from typst_raster.contexts.caching.cache_key import derive_cache_key
from typst_raster.contexts.caching.lru_cache import LRUCache

__all__ = ["LRUCache", "derive_cache_key"]
