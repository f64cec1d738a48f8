"""Render de la interfaz (formularios, diff, errores).

Por qué está en adapters:
- HTML es un detalle de infraestructura (Jinja2).
- El Core solo entrega contextos (`IndexContext`, `DiffView`) y errores tipados.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from core.domain.models import DiffView
from core.domain.skins import known_skins
from core.services.preview_pipeline import IndexContext

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@lru_cache(maxsize=1)
def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_index(*, context: IndexContext) -> str:
    template = _get_env().get_template("main.html")
    return template.render(
        wiki=context.wiki,
        logo=context.logo,
        links=context.links,
        skins=known_skins(),
    )


def render_diff(*, view: DiffView | None, logo1: str | None = None, logo2: str | None = None) -> str:
    """Render the flip view; `view` literals are already script-safe."""

    template = _get_env().get_template("diff.html")
    return template.render(
        logo1=logo1 or "",
        logo2=logo2 or "",
        first_literal=Markup(view.first) if view else None,
        second_literal=Markup(view.second) if view else None,
        interval_ms=view.interval_ms if view else None,
    )


def render_error(*, kind: str, message: str, status_code: int) -> str:
    template = _get_env().get_template("error.html")
    return template.render(kind=kind, error=message, status_code=status_code)

