"""
Shared utilities for typst_raster.

Common functionality used across contexts:
- Logger setup with provenance
- Renderer configuration loading
- Timestamps
"""

from typst_raster.utils.config import RendererConfig, load_renderer_config
from typst_raster.utils.timestamp import now

__all__ = ["RendererConfig", "load_renderer_config", "now"]
