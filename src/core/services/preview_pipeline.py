"""Preview and diff orchestration.

The web and CLI entry points both go through these helpers, which keeps the
control flow (validate -> verify logo -> fetch -> substitute) in one place
and free of HTTP framework or console concerns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

from core.config import AppSettings
from core.domain.models import DiffView, PreviewResult
from core.domain.skins import SkinId, known_skins
from core.interfaces.fetcher import LogoVerifier, PageFetcher
from core.services import diff_presentation
from core.services.logo_substitution import substitute
from core.services.markup import insert_base_href
from core.services.request_validator import RequestValidator

logger = logging.getLogger(__name__)


@dataclass
class PreviewRequest:
    """Raw `/test` parameters as received."""

    wiki: str | None
    logo: str | None
    useskin: str | None


@dataclass
class SkinLink:
    skin: SkinId
    label: str
    href: str


@dataclass
class IndexContext:
    """Values for the landing form."""

    wiki: str | None = None
    logo: str | None = None
    links: list[SkinLink] = field(default_factory=list)


def preview_link(*, wiki: str, logo: str, skin: SkinId) -> str:
    return "/test?" + urlencode({"wiki": wiki, "logo": logo, "useskin": skin.value})


def build_index(*, settings: AppSettings, wiki: str | None, logo: str | None) -> IndexContext:
    """Validate whatever was submitted and list one preview link per skin."""

    validator = RequestValidator(settings)
    wiki = (wiki or "").strip() or None
    logo = (logo or "").strip() or None
    if wiki:
        wiki = validator.validate_domain(wiki)
    if logo:
        validator.validate_logo(logo)

    context = IndexContext(wiki=wiki, logo=logo)
    if wiki and logo:
        context.links = [
            SkinLink(skin=skin, label=skin.label(), href=preview_link(wiki=wiki, logo=logo, skin=skin))
            for skin in known_skins()
        ]
    return context


async def run_preview(
    *,
    settings: AppSettings,
    request: PreviewRequest,
    fetcher: PageFetcher | None = None,
    verifier: LogoVerifier | None = None,
) -> PreviewResult:
    validated = RequestValidator(settings).validate(
        wiki=request.wiki,
        logo=request.logo,
        skin=request.useskin,
    )

    if fetcher is None:
        from adapters.page_fetcher import RemotePageFetcher  # noqa: PLC0415

        fetcher = RemotePageFetcher(settings)
    if verifier is None and settings.verify_logo:
        from adapters.commons_resolver import CommonsLogoResolver  # noqa: PLC0415

        verifier = CommonsLogoResolver(settings)

    if verifier is not None:
        await verifier.verify(validated.logo)

    page = await fetcher.fetch(validated.target)
    html = substitute(page, validated.target.skin, validated.logo)
    if settings.inject_base_href:
        html = insert_base_href(html, page.final_url)

    logger.info(
        "Rendered %s preview of %s with %s",
        validated.target.skin.value,
        validated.target.domain,
        validated.logo.url,
    )
    return PreviewResult(
        html=html,
        content_type=page.content_type,
        final_url=page.final_url,
        skin=validated.target.skin,
        logo=validated.logo,
    )


def build_diff(*, settings: AppSettings, logo1: str | None, logo2: str | None) -> DiffView | None:
    """Diff view data, or None when the form is incomplete."""

    if not (logo1 or "").strip() or not (logo2 or "").strip():
        return None
    pair = RequestValidator(settings).validate_pair(logo1=logo1, logo2=logo2)
    return diff_presentation.build(pair)
