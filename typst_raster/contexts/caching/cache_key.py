"""
Cache key derivation for normalized render requests.

Only the fields that change the output bytes take part in the key. The
preamble and snippet directive are already folded into the effective source.
"""

import hashlib
import json

from typst_raster.contexts.rendering.options import NormalizedRequest


def cache_key_fields(request: NormalizedRequest) -> dict:
    """Return the output-affecting fields of a request as plain JSON values."""
    return {
        "source": request.source,
        "format": request.format.value,
        "quality": request.quality,
        "ppi": request.ppi,
        "scale": request.scale,
        "snippet": request.snippet,
        "variables": dict(request.variables),
        "background_color": request.background_color,
    }


def derive_cache_key(request: NormalizedRequest) -> str:
    """
    Derive a deterministic fingerprint for a normalized request.

    Keys are serialized with sorted keys so variable insertion order never
    affects the result.

    Args:
        request: Normalized render request

    Returns:
        SHA-256 hex digest
    """
    canonical = json.dumps(
        cache_key_fields(request),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
