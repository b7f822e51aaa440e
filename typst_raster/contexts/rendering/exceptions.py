"""Exceptions raised by the rendering context."""

from typing import List, Optional


class TypstRasterError(Exception):
    """Base class for all typst_raster errors."""


class InvalidOptionError(TypstRasterError, ValueError):
    """
    Exception raised when a render request carries an unusable option.

    Raised during normalization, before any compiler work is queued.

    Attributes:
        option: Name of the offending option (e.g., 'scale')
        value: The rejected value
    """

    def __init__(self, message: str, option: Optional[str] = None, value: object = None):
        self.option = option
        self.value = value
        super().__init__(message)


class TypstRenderError(TypstRasterError):
    """
    Exception raised when a render fails after it has been admitted.

    Attributes:
        message: Error description
        original_error: The underlying engine or codec error
    """

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class CompileError(TypstRenderError):
    """
    Exception raised when the Typst engine rejects the source.

    The engine's diagnostic text is kept in the message so markup mistakes
    can be debugged from the caller's side.

    Attributes:
        hints: Hints reported by the engine alongside the error
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[BaseException] = None,
        hints: Optional[List[str]] = None,
    ):
        self.hints = list(hints or [])

        parts = [message]
        for hint in self.hints:
            parts.append(f"hint: {hint}")

        super().__init__("\n".join(parts), original_error)


class CodecError(TypstRenderError):
    """Exception raised when rasterization, encoding or metadata extraction fails."""


class UnsupportedStreamFormatError(TypstRasterError, ValueError):
    """Exception raised when a non-raster format is requested from render_stream()."""

    def __init__(self, format_name: str):
        self.format = format_name
        super().__init__(
            f"Stream output only supports raster formats (png, jpeg, webp), got '{format_name}'"
        )
