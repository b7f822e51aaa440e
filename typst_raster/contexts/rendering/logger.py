"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from typst_raster.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, font_path: Optional[str] = None) -> Path:
    """
    Setup logger for rendering context.

    Configures loguru with provenance tracking and rendering-specific context.

    Args:
        log_dir: Directory for this rendering session
        font_path: Font directory passed to the renderer, recorded in the header

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Font path": font_path or "(bundled/system)"},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_render_start(request) -> None:
    """Log start of a render with its effective options."""
    _log_debug(
        f"Rendering {request.format.value}: {len(request.source)} chars, "
        f"ppi={request.ppi}, scale={request.scale}, quality={request.quality}, "
        f"snippet={request.snippet}, variables={len(request.variables)}"
    )


def log_render_result(request, output_size: int, elapsed_time: float) -> None:
    """Log a completed render."""
    _log_debug(f"Rendered {request.format.value}: {output_size} bytes ({elapsed_time:.3f}s)")


def log_render_failure(request, error: BaseException, elapsed_time: float) -> None:
    """
    Log a failed render with the engine diagnostic.

    Multi-line diagnostics are written raw so loguru does not prefix every line.
    """
    _log_error(f"Render of {request.format.value} failed ({elapsed_time:.3f}s)")
    logger.opt(raw=True).debug(f"\n{'=' * 80}\nTYPST DIAGNOSTIC:\n{'=' * 80}\n{error}\n")
