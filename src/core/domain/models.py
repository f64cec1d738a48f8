"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta y documentación autocontenida (Field) sin acoplar el
  Core a librerías de I/O.
- Todos los modelos son inmutables: viven lo que dura una petición y nunca se
  modifican in situ (el motor produce una copia reescrita).

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.skins import SkinId

FLIP_INTERVAL_MS = 1000


class WikiTarget(BaseModel):
    """Wiki host plus the skin forced on the fetched page."""

    model_config = ConfigDict(frozen=True)

    domain: str = Field(
        ...,
        min_length=3,
        max_length=253,
        description="Host-form wiki domain, e.g. 'en.wikipedia.org'.",
    )
    skin: SkinId


class LogoReference(BaseModel):
    """Candidate logo, already resolved to an http(s) URL."""

    model_config = ConfigDict(frozen=True)

    original: str = Field(
        ...,
        min_length=1,
        description="Value as submitted by the user (URL or 'File:Name.svg').",
    )
    url: str = Field(
        ...,
        min_length=8,
        description="Resolved image URL used for the 1x logo.",
    )
    url_1_5x: str | None = Field(
        default=None,
        description="1.5x thumbnail URL (File: references only).",
    )
    url_2x: str | None = Field(
        default=None,
        description="2x thumbnail URL (File: references only).",
    )
    is_file_page: bool = Field(
        default=False,
        description="True when the reference was a wiki file page name.",
    )

    def variants(self) -> list[tuple[str, str]]:
        """(url, density) pairs, 1x first; only the 1x entry for plain URLs."""

        pairs = [(self.url, "1x")]
        if self.url_1_5x:
            pairs.append((self.url_1_5x, "1.5x"))
        if self.url_2x:
            pairs.append((self.url_2x, "2x"))
        return pairs

    def srcset(self) -> str | None:
        """`srcset` value for responsive variants, if any are known."""

        parts = [f"{url} {density}" for url, density in self.variants()[1:]]
        return ", ".join(parts) or None


class RenderedPage(BaseModel):
    """Fetched page content with the metadata the engine needs."""

    model_config = ConfigDict(frozen=True)

    content: str
    content_type: str = Field(default="text/html; charset=utf-8")
    final_url: str = Field(..., description="URL after redirects.")
    status_code: int = Field(default=200, ge=100, le=599)


class ValidatedRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: WikiTarget
    logo: LogoReference


class ComparisonPair(BaseModel):
    """Two logos compared by flipping between them."""

    model_config = ConfigDict(frozen=True)

    first: LogoReference
    second: LogoReference
    interval_ms: int = Field(default=FLIP_INTERVAL_MS, gt=0)


class DiffView(BaseModel):
    """Data handed to the diff template.

    `first` and `second` are JavaScript string literals (quotes included),
    safe to interpolate directly inside a `<script>` element.
    """

    model_config = ConfigDict(frozen=True)

    first: str
    second: str
    interval_ms: int = Field(default=FLIP_INTERVAL_MS, gt=0)


class PreviewResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    html: str
    content_type: str
    final_url: str
    skin: SkinId
    logo: LogoReference
