"""Stencil CLI

Usage:
    stencil render page.tpl                    # Render to stdout
    stencil render page.tpl -d data.yaml       # Render with data
    stencil render page.tpl -o out.html        # Render to file
    stencil render page --views ./views        # Look up in views roots
    stencil check page.tpl                     # Compile only
    stencil --version
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler

from stencil._version import __version__
from stencil.config import RenderConfig, load_config, override_items, resolve
from stencil.exceptions import StencilError
from stencil.file_utils import get_path
from stencil.files import load_file, render_file

log = logging.getLogger(__name__)

console = Console(stderr=True)

typer_app = typer.Typer(help="Compile, cache and render text templates.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the stencil CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (STENCIL_DEBUG=1): DEBUG level - cache hits, compiles, path lookups
    """
    debug = bool(os.environ.get("STENCIL_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("stencil")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def load_data(path: Path | None) -> dict[str, Any]:
    """Load template data from a YAML (or JSON) file."""
    if path is None:
        return {}
    if not path.exists():
        raise StencilError(f"Data file not found: {path}")

    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise StencilError(f"Invalid YAML in data file {path}:\n\n{e}") from e

    if not isinstance(data, dict):
        raise StencilError(f"Data file must contain a mapping: {path}")
    return data


def _build_options(
    config_file: Path | None, views: list[Path] | None, cache: bool, use_async: bool
) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if config_file is not None:
        options.update(override_items(load_config(config_file)))
    if views:
        options["views"] = [str(v.resolve()) for v in views]
    if cache:
        options["cache"] = True
    if use_async:
        options["async_"] = True
    return options


def _template_path(template: str) -> str:
    # Paths that exist from the working directory win over views lookups
    candidate = Path(template)
    if candidate.exists():
        return str(candidate.resolve())
    return template


def _fail(exc: Exception) -> None:
    typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"stencil {__version__}")
        raise typer.Exit()


@typer_app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Compile, cache and render text templates."""


@typer_app.command("render")
def render_command(
    template: str = typer.Argument(..., help="Template file (absolute, relative, or in --views)."),
    data_file: Optional[Path] = typer.Option(
        None, "-d", "--data", help="YAML or JSON file with template data."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="YAML file with render options."
    ),
    views: Optional[List[Path]] = typer.Option(
        None, "--views", help="Views root to search (repeatable)."
    ),
    cache: bool = typer.Option(False, "--cache", help="Enable the template cache."),
    use_async: bool = typer.Option(False, "--async", help="Render asynchronously."),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write output to file instead of stdout."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Render a template file."""
    setup_logging(verbose)

    try:
        data = load_data(data_file)
        options = _build_options(config_file, views, cache, use_async)
        result = render_file(_template_path(template), data, options)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
    except (StencilError, FileNotFoundError) as exc:
        _fail(exc)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result, encoding="utf-8")
        log.info("Wrote %s", output)
    else:
        typer.echo(result, nl=False)


@typer_app.command("check")
def check_command(
    template: str = typer.Argument(..., help="Template file to compile."),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="YAML file with render options."
    ),
    views: Optional[List[Path]] = typer.Option(
        None, "--views", help="Views root to search (repeatable)."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Compile a template file and report syntax errors."""
    setup_logging(verbose)

    try:
        config: RenderConfig = resolve(_build_options(config_file, views, False, False))
        filename = get_path(_template_path(template), config)
        load_file(filename, config.with_filename(filename), skip_cache=True)
    except (StencilError, FileNotFoundError) as exc:
        _fail(exc)

    typer.secho(f"OK: {filename}", fg=typer.colors.GREEN)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
