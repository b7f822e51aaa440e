#!/usr/bin/env python3
"""
Typst Rendering CLI

Renders Typst markup to images and documents using the rendering context.

Commands:
    render   - Render Typst code (or a .typ file) to a single output file
    batch    - Render every request of a YAML manifest, stopping at the first error
    metadata - Show metadata of a rendered file

Examples:\n

    render_typst.py render '$ E = m c^2 $' -o emc2.png --snippet          # Inline code

    render_typst.py render paper.typ -o paper.pdf --format pdf             # From a file

    render_typst.py render '#sys.inputs.name' -o hi.png --var name=World   # Variables

    render_typst.py batch manifest.yaml --output-dir outs/results          # Batch

    render_typst.py metadata emc2.png                                      # Metadata
"""

import asyncio
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer
from omegaconf import OmegaConf
from typing_extensions import Annotated

from typst_raster.contexts.rendering import (
    RenderRequest,
    TypstRasterError,
    TypstRenderer,
    get_metadata,
)
from typst_raster.contexts.rendering.logger import setup_rendering_logger
from typst_raster.utils.config import RendererConfig, load_renderer_config
from typst_raster.utils.timestamp import now

app = typer.Typer(
    help="Render Typst markup to PNG, JPEG, WebP, SVG or PDF",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _load_config(config_path: Optional[Path], font_path: Optional[str]) -> RendererConfig:
    try:
        config = load_renderer_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if font_path:
        config.font_path = font_path
    return config


def _parse_variables(pairs: Optional[List[str]]) -> dict:
    variables = {}
    for pair in pairs or []:
        if "=" not in pair:
            typer.secho(f"Error: --var expects key=value (got '{pair}')\n", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


def _read_code(code_or_file: str) -> str:
    """Treat the argument as a path when it names an existing .typ file."""
    candidate = Path(code_or_file)
    if candidate.suffix == ".typ" and candidate.is_file():
        return candidate.read_text(encoding="utf-8")
    return code_or_file


def _start_session_log(config: RendererConfig) -> Path:
    log_dir = Path(config.logs_path) / f"render_{now()}"
    return setup_rendering_logger(log_dir, font_path=config.font_path)


async def _render_one(config: RendererConfig, request: RenderRequest) -> bytes:
    async with TypstRenderer.from_config(config) as renderer:
        return await renderer.render(request)


async def _render_many(config: RendererConfig, requests: List[RenderRequest]) -> List[bytes]:
    async with TypstRenderer.from_config(config) as renderer:
        return await renderer.render_batch(requests)


@app.command("render")
def render_command(
    code_or_file: Annotated[
        str,
        typer.Argument(help="Typst code, or path to a .typ file"),
    ],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file"),
    ],
    output_format: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help="png, jpeg, webp, svg or pdf (default: output suffix, else png)"),
    ] = None,
    ppi: Annotated[
        Optional[float],
        typer.Option("--ppi", help="Pixels per inch (default: 192)"),
    ] = None,
    scale: Annotated[
        Optional[float],
        typer.Option("--scale", "-s", help="Scale multiplier (default: 1)"),
    ] = None,
    quality: Annotated[
        Optional[int],
        typer.Option("--quality", "-q", help="Quality for jpeg/webp, 1-100 (default: 100)"),
    ] = None,
    snippet: Annotated[
        bool,
        typer.Option("--snippet", help="Crop the page to the rendered content"),
    ] = False,
    background: Annotated[
        Optional[str],
        typer.Option("--background", "-b", help="Background color (e.g., white, '#2b2d31')"),
    ] = None,
    preamble_file: Annotated[
        Optional[Path],
        typer.Option("--preamble", help="File with Typst code prepended to the source"),
    ] = None,
    variables: Annotated[
        Optional[List[str]],
        typer.Option("--var", help="Input variable as key=value (repeatable)"),
    ] = None,
    font_path: Annotated[
        Optional[str],
        typer.Option("--font-path", help="Directory of fonts"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Renderer config YAML"),
    ] = None,
):
    """
    Render Typst code to a single file.

    Examples:\n

        $ render_typst.py render '$ x^2 $' -o x2.png --snippet --scale 2

        $ render_typst.py render doc.typ -o doc.pdf
    """
    config = _load_config(config_path, font_path)

    if output_format is None and output.suffix.lstrip(".").lower() in {"png", "jpeg", "jpg", "webp", "svg", "pdf"}:
        output_format = output.suffix.lstrip(".").lower().replace("jpg", "jpeg")

    preamble = preamble_file.read_text(encoding="utf-8") if preamble_file else None

    request = RenderRequest(
        code=_read_code(code_or_file),
        format=output_format,
        quality=quality,
        ppi=ppi,
        scale=scale,
        snippet=snippet,
        variables=_parse_variables(variables),
        preamble=preamble,
        background_color=background,
    )

    log_file = _start_session_log(config)
    typer.secho(f"\nRendering: {output}", fg=typer.colors.BLUE, bold=True)

    try:
        data = asyncio.run(_render_one(config, request))
    except TypstRasterError as e:
        typer.secho(f"✗ Render failed: {e}", fg=typer.colors.RED, bold=True)
        typer.echo(f"  Log: {log_file}\n")
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)

    typer.secho("✓ Render succeeded", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Output: {output} ({len(data)} bytes)")
    typer.echo(f"  Log: {log_file}\n")


@app.command("batch")
def batch_command(
    manifest: Annotated[
        Path,
        typer.Argument(help="YAML manifest with a 'renders' list of requests, each with an 'output'"),
    ],
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", "-d", help="Directory relative outputs are written to"),
    ] = Path("."),
    font_path: Annotated[
        Optional[str],
        typer.Option("--font-path", help="Directory of fonts"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Renderer config YAML"),
    ] = None,
):
    """
    Render every request in a manifest, in order, stopping at the first error.

    Manifest format:\n

        renders:
          - output: a.png
            code: "$ a $"
            snippet: true
          - output: b.pdf
            code: "= Title"
            format: pdf
    """
    config = _load_config(config_path, font_path)

    if not manifest.exists():
        typer.secho(f"Error: Manifest not found: {manifest}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    entries = OmegaConf.to_container(OmegaConf.load(manifest), resolve=True) or {}
    entries = entries.get("renders", []) if isinstance(entries, dict) else entries

    outputs = []
    requests = []
    try:
        for entry in entries:
            entry = dict(entry)
            outputs.append(output_dir / entry.pop("output"))
            requests.append(RenderRequest.from_dict(entry))
    except (KeyError, TypeError) as e:
        typer.secho(f"Error: Every manifest entry needs an 'output' ({e})\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except TypstRasterError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    log_file = _start_session_log(config)
    typer.secho(f"\nRendering {len(requests)} items from {manifest}", fg=typer.colors.BLUE, bold=True)

    try:
        results = asyncio.run(_render_many(config, requests))
    except TypstRasterError as e:
        typer.secho(f"✗ Batch failed: {e}", fg=typer.colors.RED, bold=True)
        typer.echo(f"  Log: {log_file}\n")
        raise typer.Exit(code=1)

    for path, data in zip(outputs, results):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        typer.echo(f"  {path} ({len(data)} bytes)")

    typer.secho(f"✓ Rendered {len(results)} items", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Log: {log_file}\n")


@app.command("metadata")
def metadata_command(
    path: Annotated[
        Path,
        typer.Argument(help="Rendered file (png, jpeg, webp, svg or pdf)"),
    ],
):
    """Show width, height, format and density of a rendered file."""
    if not path.exists():
        typer.secho(f"Error: File not found: {path}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        metadata = get_metadata(path.read_bytes())
    except TypstRasterError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"\n{path}", fg=typer.colors.BLUE, bold=True)
    for key, value in asdict(metadata).items():
        if value is not None:
            typer.echo(f"  {key}: {value}")
    typer.echo("")


if __name__ == "__main__":
    app()
