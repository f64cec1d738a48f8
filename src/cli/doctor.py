"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.page_renderer import render_error
from core.config import AppSettings, get_user_env_file
from core.domain.skins import known_skins

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_templates() -> tuple[bool, str]:
    """Render the error page to detect missing or broken templates."""

    try:
        render_error(kind="doctor", message="ok", status_code=200)
        return True, "OK"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run(
    wiki: str = typer.Option("en.wikipedia.org", help="Wiki used for the connectivity check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="logo-test Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    env_file = get_user_env_file()
    table.add_row("User config", "OK" if env_file.exists() else "OPTIONAL", str(env_file))
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row("Size cap", "OK", f"{settings.max_response_bytes} bytes")
    table.add_row("Skins", "OK", ", ".join(s.value for s in known_skins()))
    if settings.allowed_wiki_suffixes:
        table.add_row("Wiki allowlist", "OK", ", ".join(settings.allowed_wiki_suffixes))
    else:
        table.add_row("Wiki allowlist", "OPTIONAL", "Any syntactically valid host is accepted")

    # Connectivity (best-effort)
    ok_wiki, detail_wiki = asyncio.run(_check_http(f"{settings.wiki_scheme}://{wiki}/", settings))
    table.add_row("Wiki connectivity", "OK" if ok_wiki else "FAIL", detail_wiki)
    ok_commons, detail_commons = asyncio.run(_check_http(settings.commons_upload_base, settings))
    table.add_row("Commons uploads", "OK" if ok_commons else "FAIL", detail_commons)

    ok_tpl, detail_tpl = _check_templates()
    table.add_row("Templates", "OK" if ok_tpl else "FAIL", detail_tpl)

    _console.print(table)

    if not ok_commons:
        _console.print(
            "\n[yellow]Note:[/yellow] Without Commons access, `File:` logos cannot be verified; "
            "use `preview --no-verify` or set LOGO_TEST_VERIFY_LOGO=false."
        )
