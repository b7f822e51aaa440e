"""
Render option normalization.

Turns a caller-supplied RenderRequest into a NormalizedRequest where every
option has a concrete value and the effective Typst source is assembled:

    preamble + "\\n" + snippet directive + "\\n" + code

Validation failures raise InvalidOptionError before any compiler work starts.
"""

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from numbers import Real
from typing import Any, Dict, Mapping, Optional, Union

from typst_raster.contexts.rendering.exceptions import InvalidOptionError


class OutputFormat(str, Enum):
    """Supported output formats."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    SVG = "svg"
    PDF = "pdf"

    @property
    def is_raster(self) -> bool:
        return self in RASTER_FORMATS


RASTER_FORMATS = frozenset({OutputFormat.PNG, OutputFormat.JPEG, OutputFormat.WEBP})

DEFAULT_FORMAT = OutputFormat.PNG
DEFAULT_QUALITY = 100
DEFAULT_PPI = 192.0
DEFAULT_SCALE = 1.0
MIN_QUALITY = 1
MAX_QUALITY = 100

# Crops the page to the content's bounding box
SNIPPET_DIRECTIVE = "#set page(width: auto, height: auto, margin: 1cm)"

VariableValue = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class RenderRequest:
    """
    A render request as supplied by the caller.

    Attributes:
        code: Typst markup to render
        format: Output format (png, jpeg, webp, svg, pdf); defaults to png
        quality: Encoder quality for lossy formats (clamped into 1-100)
        ppi: Pixels per inch of raster output
        scale: Multiplier applied on top of ppi (must be positive and finite)
        snippet: Crop the page to the rendered content
        variables: Values exposed to the document as sys.inputs
        preamble: Typst code prepended to the main source
        background_color: Color transparent areas are flattened onto
    """

    code: str
    format: Union[OutputFormat, str, None] = None
    quality: Any = None
    ppi: Optional[float] = None
    scale: Optional[float] = None
    snippet: bool = False
    variables: Optional[Mapping[str, VariableValue]] = None
    preamble: Optional[str] = None
    background_color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderRequest":
        """
        Build a request from a plain mapping (e.g., an entry of a YAML manifest).

        Raises:
            InvalidOptionError: If the mapping has unknown keys or no 'code'
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidOptionError(f"Unknown render options: {unknown}", option=unknown[0])
        if "code" not in data:
            raise InvalidOptionError("Render request is missing 'code'", option="code")
        return cls(**dict(data))


@dataclass(frozen=True)
class NormalizedRequest:
    """
    A fully-resolved render request.

    Attributes:
        source: Effective Typst source submitted to the compiler
        format: Output format
        quality: Encoder quality in [1, 100]
        ppi: Pixels per inch
        scale: Positive, finite scale multiplier
        snippet: Whether the snippet directive was applied
        variables: Text-valued compiler inputs
        background_color: Flatten color, or None
    """

    source: str
    format: OutputFormat
    quality: int
    ppi: float
    scale: float
    snippet: bool
    variables: Dict[str, str] = field(default_factory=dict)
    background_color: Optional[str] = None

    @property
    def density(self) -> float:
        """Effective rasterization resolution (ppi x scale)."""
        return self.ppi * self.scale


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def normalize_format(value: Union[OutputFormat, str, None]) -> OutputFormat:
    """Resolve a format name, defaulting to PNG."""
    if value is None:
        return DEFAULT_FORMAT
    if isinstance(value, OutputFormat):
        return value
    if isinstance(value, str):
        try:
            return OutputFormat(value.strip().lower())
        except ValueError:
            pass
    valid = ", ".join(f.value for f in OutputFormat)
    raise InvalidOptionError(f"Unsupported format: {value!r}. Valid: {valid}", "format", value)


def normalize_scale(value: Any) -> float:
    """
    Validate the scale multiplier.

    Raises:
        InvalidOptionError: If scale is not a positive, finite number
    """
    if value is None:
        return DEFAULT_SCALE
    if not _is_number(value) or not math.isfinite(value) or value <= 0:
        raise InvalidOptionError(
            f"Scale must be a positive finite number (got {value!r})", "scale", value
        )
    return float(value)


def clamp_quality(value: Any) -> int:
    """
    Clamp quality into [1, 100].

    Out-of-range values saturate; missing, non-numeric and NaN values fall back
    to the default.
    """
    if not _is_number(value) or math.isnan(value):
        return DEFAULT_QUALITY
    clamped = min(max(float(value), MIN_QUALITY), MAX_QUALITY)
    return int(round(clamped))


def normalize_ppi(value: Any) -> float:
    """Use the caller's ppi verbatim, defaulting when absent."""
    if value is None:
        return DEFAULT_PPI
    if not _is_number(value):
        raise InvalidOptionError(f"ppi must be a number (got {value!r})", "ppi", value)
    return float(value)


def coerce_variable(name: str, value: VariableValue) -> str:
    """
    Convert a single variable value to the text the compiler accepts.

    Booleans become "true"/"false" (Typst spelling), None becomes "".

    Raises:
        InvalidOptionError: For nested structures and arbitrary objects
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if _is_number(value):
        return str(value)
    raise InvalidOptionError(
        f"Variable '{name}' must be text, a number, a boolean or None "
        f"(got {type(value).__name__})",
        f"variables.{name}",
        value,
    )


def coerce_variables(variables: Optional[Mapping[str, VariableValue]]) -> Dict[str, str]:
    """Coerce every variable value to text."""
    if variables is None:
        return {}
    if not isinstance(variables, Mapping):
        raise InvalidOptionError(
            f"variables must be a mapping (got {type(variables).__name__})", "variables", variables
        )

    coerced = {}
    for name, value in variables.items():
        if not isinstance(name, str):
            raise InvalidOptionError(f"Variable names must be text (got {name!r})", "variables", name)
        coerced[name] = coerce_variable(name, value)
    return coerced


def build_source(code: str, preamble: Optional[str] = None, snippet: bool = False) -> str:
    """Assemble the effective source: preamble, then snippet directive, then code."""
    parts = []
    if preamble:
        parts.append(preamble)
    if snippet:
        parts.append(SNIPPET_DIRECTIVE)
    parts.append(code)
    return "\n".join(parts)


def normalize_request(request: Union[RenderRequest, Mapping[str, Any]]) -> NormalizedRequest:
    """
    Validate and default a render request.

    Args:
        request: RenderRequest or a mapping with the same keys

    Returns:
        NormalizedRequest ready for cache lookup and compilation

    Raises:
        InvalidOptionError: If any option is unusable
    """
    if isinstance(request, Mapping):
        request = RenderRequest.from_dict(request)
    if not isinstance(request, RenderRequest):
        raise InvalidOptionError(
            f"Expected a RenderRequest or mapping (got {type(request).__name__})"
        )

    if not isinstance(request.code, str):
        raise InvalidOptionError(
            f"code must be text (got {type(request.code).__name__})", "code", request.code
        )
    if request.preamble is not None and not isinstance(request.preamble, str):
        raise InvalidOptionError("preamble must be text", "preamble", request.preamble)

    background = request.background_color
    if background is not None and not isinstance(background, str):
        raise InvalidOptionError("background_color must be text", "background_color", background)

    snippet = bool(request.snippet)

    return NormalizedRequest(
        source=build_source(request.code, request.preamble, snippet),
        format=normalize_format(request.format),
        quality=clamp_quality(request.quality),
        ppi=normalize_ppi(request.ppi),
        scale=normalize_scale(request.scale),
        snippet=snippet,
        variables=coerce_variables(request.variables),
        background_color=background or None,
    )
