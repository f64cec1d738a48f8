"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.skins import SKIN_REGISTRY
from core.errors import LogoTestError


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("logo-test", style="bold cyan")
    subtitle = Text("Preview logos on live wikis • Flip-compare candidates", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_skins_table() -> Table:
    table = Table(title="Skins")
    table.add_column("Skin", style="cyan", no_wrap=True)
    table.add_column("Selector", style="white")
    table.add_column("Method", style="green")
    table.add_column("Target", style="magenta")
    table.add_column("Description", style="dim")
    for skin, strategy in SKIN_REGISTRY.items():
        table.add_row(
            skin.value,
            strategy.selector,
            strategy.method.value,
            strategy.attribute or strategy.css_property or "",
            strategy.description,
        )
    return table


def print_error(console: Console, exc: LogoTestError) -> None:
    """Panel rojo con el tipo de error y el mensaje público (sin trazas)."""

    body = Text()
    body.append(exc.public_message)
    body.append(f"\n\nHTTP equivalent: {exc.status_code}", style="dim")
    console.print(Panel(body, title=Text(exc.kind, style="bold red"), border_style="red"))
