"""Font directory resolution for the Typst engine."""

from pathlib import Path
from typing import List, Optional

from typst_raster.contexts.rendering.logger import _log_debug, _log_warning

BUNDLED_FONT_PATH = Path(__file__).resolve().parents[2] / "assets" / "fonts"


def resolve_font_paths(
    user_font_path: Optional[str] = None,
    bundled_font_path: Path = BUNDLED_FONT_PATH,
) -> List[str]:
    """
    Resolve the font directories handed to the engine.

    A caller-supplied directory is used as-is. Otherwise the bundled font
    directory is used when it exists. With neither, rendering continues with
    no extra font paths (the engine's embedded and system fonts only) and a
    warning is logged.

    Args:
        user_font_path: Caller-supplied font directory
        bundled_font_path: Directory probed when no user path is given

    Returns:
        List of font directories (possibly empty)
    """
    if user_font_path:
        _log_debug(f"Using font path: {user_font_path}")
        return [str(user_font_path)]

    if Path(bundled_font_path).exists():
        _log_debug(f"Using bundled fonts: {bundled_font_path}")
        return [str(bundled_font_path)]

    _log_warning("No fonts found. Typst might fail to render text.")
    return []
