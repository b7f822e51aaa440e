"""
Renderer configuration.

Defaults come from the environment (a .env file is honoured), and an optional
YAML file loaded with OmegaConf overrides them:

    typst_raster:
      font_path: assets/fonts
      cache: true
      cache_size: 500

Top-level keys (without the ``typst_raster`` section) are accepted as well.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

load_dotenv()

CONFIG_SECTION = "typst_raster"
TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class RendererConfig:
    """
    Configuration for a TypstRenderer.

    Attributes:
        font_path: Directory of font files handed to the Typst engine
        cache: Whether rendered outputs are memoized
        cache_size: Maximum number of cached outputs (0 disables retention)
        logs_path: Root directory for CLI session logs
    """

    font_path: Optional[str] = None
    cache: bool = True
    cache_size: int = 100
    logs_path: str = "outs/logs"

    def __post_init__(self) -> None:
        if isinstance(self.cache_size, bool) or not isinstance(self.cache_size, int):
            raise ValueError(f"cache_size must be an integer (got {self.cache_size!r})")
        if self.cache_size < 0:
            raise ValueError(f"cache_size must be >= 0 (got {self.cache_size})")


def _env_defaults() -> Dict[str, Any]:
    """Read configuration defaults from environment variables."""
    defaults: Dict[str, Any] = {}

    font_path = os.getenv("TYPST_RASTER_FONT_PATH")
    if font_path:
        defaults["font_path"] = font_path

    cache = os.getenv("TYPST_RASTER_CACHE")
    if cache is not None:
        defaults["cache"] = cache.strip().lower() in TRUTHY

    cache_size = os.getenv("TYPST_RASTER_CACHE_SIZE")
    if cache_size is not None:
        try:
            defaults["cache_size"] = int(cache_size)
        except ValueError as e:
            raise ValueError(f"TYPST_RASTER_CACHE_SIZE must be an integer (got {cache_size!r})") from e

    logs_path = os.getenv("LOGS_PATH")
    if logs_path:
        defaults["logs_path"] = logs_path

    return defaults


def load_renderer_config(config_path: Optional[Path] = None) -> RendererConfig:
    """
    Load renderer configuration from environment and an optional YAML file.

    Args:
        config_path: Optional YAML file whose values override the environment

    Returns:
        RendererConfig instance

    Raises:
        FileNotFoundError: If config_path is given but doesn't exist
        ValueError: If a key is unknown or a value is invalid
    """
    values = _env_defaults()

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        data = OmegaConf.to_container(OmegaConf.load(config_path), resolve=True) or {}
        if CONFIG_SECTION in data:
            data = data[CONFIG_SECTION] or {}

        known = {f.name for f in fields(RendererConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown renderer config keys in {config_path}: {unknown}")

        values.update(data)

    return RendererConfig(**values)
