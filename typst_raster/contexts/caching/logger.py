"""
Caching context logger.

Provides logging interface for caching context with automatic [cache] prefix.
"""

from loguru import logger

CONTEXT_PREFIX = "[cache]"


def _log_debug(message: str) -> None:
    """Log debug message with [cache] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_cache_lookup(key: str, hit: bool) -> None:
    """Log a cache lookup (keys are shortened for readability)."""
    _log_debug(f"{'Hit' if hit else 'Miss'}: {key[:12]}")


def log_cache_eviction(key: str, capacity: int) -> None:
    """Log eviction of the least recently used entry."""
    _log_debug(f"Evicted {key[:12]} (capacity {capacity})")
