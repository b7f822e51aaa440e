"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """Current local time as a filesystem-safe string (e.g., "20251114_183402")."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")
