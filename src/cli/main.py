"""CLI de logo-test (Typer + Rich).

Comandos:
- `serve`: levanta la app web (uvicorn).
- `preview`: genera el HTML de una wiki con el logo candidato.
- `diff`: genera la vista de parpadeo entre dos logos.
- `skins`: muestra el registro de skins.
- `doctor`: diagnósticos de entorno.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.page_renderer import render_diff
from cli import doctor
from cli.ui_components import build_skins_table, print_banner, print_error
from core.config import AppSettings
from core.errors import LogoTestError
from core.services.preview_pipeline import PreviewRequest, build_diff, run_preview

app = typer.Typer(no_args_is_help=True, help="Preview candidate logos on live wiki pages.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging through Rich; safe to call more than once."""

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)


def _write_output(html: str, output: Path | None) -> None:
    if output is None:
        typer.echo(html)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    _err_console.print(f"[green]Wrote[/green] {output}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, help="Bind port (default from settings)."),
) -> None:
    """Run the web interface."""

    import uvicorn  # noqa: PLC0415

    from web.app import create_app  # noqa: PLC0415

    settings = AppSettings()
    print_banner(_err_console)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command()
def preview(
    wiki: str = typer.Argument(..., help="Wiki domain, e.g. en.wikipedia.org"),
    logo: str = typer.Argument(..., help="'File:Name.svg' or an image URL"),
    skin: str = typer.Option("vector", "--skin", "-s", help="Skin to render."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write HTML here instead of stdout."),
    no_verify: bool = typer.Option(False, "--no-verify", help="Skip the image check of the logo URL."),
) -> None:
    """Fetch a wiki page and print it with the candidate logo in place."""

    settings = AppSettings()
    if no_verify:
        settings = settings.model_copy(update={"verify_logo": False})

    try:
        result = asyncio.run(
            run_preview(
                settings=settings,
                request=PreviewRequest(wiki=wiki, logo=logo, useskin=skin),
            )
        )
    except LogoTestError as exc:
        print_error(_err_console, exc)
        raise typer.Exit(code=1) from None

    _write_output(result.html, output)


@app.command()
def diff(
    logo1: str = typer.Argument(..., help="First logo"),
    logo2: str = typer.Argument(..., help="Second logo"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write HTML here instead of stdout."),
) -> None:
    """Render the flip comparison page for two logos."""

    try:
        view = build_diff(settings=AppSettings(), logo1=logo1, logo2=logo2)
    except LogoTestError as exc:
        print_error(_err_console, exc)
        raise typer.Exit(code=1) from None

    _write_output(render_diff(view=view, logo1=logo1, logo2=logo2), output)


@app.command()
def skins() -> None:
    """List supported skins and how their logo slot is located."""

    _console.print(build_skins_table())


def run() -> None:
    app()


if __name__ == "__main__":
    run()
