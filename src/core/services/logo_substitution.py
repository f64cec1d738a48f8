"""Logo substitution engine.

Locates the skin's logo slot in a fetched page and writes the candidate logo
into it. Location always goes through the parsed document tree; the original
logo URL is never searched for as text, since the same string routinely shows
up elsewhere (preload links, tracking pixels, cached script payloads).

Only the located node changes. Any failure is raised as a typed error and no
partially rewritten page is ever returned.

High-DPI screens get the 1.5x/2x thumbnails of `File:` logos: through
`srcset` for `<img>` slots, through `image-set()` for style slots.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from bs4.element import Tag

from core.domain.models import LogoReference, RenderedPage
from core.domain.skins import SkinId, SkinStrategy, SubstitutionMethod, get_strategy
from core.errors import LogoSlotNotFoundError, SerializationInvariantError
from core.services.markup import (
    SourceIndex,
    StartTag,
    css_image_set,
    css_url,
    find_declarations,
    parse_html,
    parse_start_tag,
    raw_text_end,
    render_attribute,
    replace_declaration_values,
    set_attributes,
    set_inline_declarations,
    splice,
)

logger = logging.getLogger(__name__)


def find_logo_slots(soup: BeautifulSoup, strategy: SkinStrategy) -> list[Tag]:
    """All logo slot candidates for `strategy`, in document order."""

    candidates = soup.select(strategy.selector)
    if strategy.method is SubstitutionMethod.CSS_VARIABLE:
        prop = strategy.css_property or ""
        candidates = [
            tag
            for tag in candidates
            if find_declarations("".join(str(child) for child in tag.children), prop)
        ]
    return candidates


def substitute(page: RenderedPage, skin: SkinId, logo: LogoReference) -> str:
    """Return a copy of `page.content` with the skin's logo slot pointing at `logo`."""

    return apply_strategy(page, get_strategy(skin), logo)


def apply_strategy(page: RenderedPage, strategy: SkinStrategy, logo: LogoReference) -> str:
    source = page.content
    soup = parse_html(source)

    slots = find_logo_slots(soup, strategy)
    if not slots:
        raise LogoSlotNotFoundError(
            f"Skin {strategy.skin.value} has no recognizable logo slot on this page "
            f"(looked for {strategy.description or strategy.selector})"
        )
    if len(slots) > 1:
        logger.debug(
            "%d logo slots for %s; using the first in document order", len(slots), strategy.skin.value
        )

    index = SourceIndex(source)
    tag = index.start_tag(slots[0])

    if strategy.method is SubstitutionMethod.ATTRIBUTE:
        return _rewrite_attribute(source, tag, strategy, logo)
    if strategy.method is SubstitutionMethod.INLINE_STYLE:
        return _rewrite_inline_style(source, tag, strategy, logo)
    return _rewrite_stylesheet(source, tag, strategy, logo)


def css_logo_values(logo: LogoReference) -> list[str]:
    """Declaration values for a style slot: plain `url()` first, `image-set()` after."""

    values = [css_url(logo.url)]
    variants = logo.variants()
    if len(variants) > 1:
        values.append(css_image_set(variants))
    return values


def _rewrite_attribute(source: str, tag: StartTag, strategy: SkinStrategy, logo: LogoReference) -> str:
    attribute = strategy.attribute or "src"
    values = {attribute: logo.url}

    srcset = logo.srcset()
    if strategy.srcset_attribute and tag.get(strategy.srcset_attribute) is not None:
        # A stale srcset would make high-DPI screens keep showing the old logo.
        values[strategy.srcset_attribute] = srcset or logo.url

    rewritten = splice(source, tag.start, tag.end, set_attributes(source, tag, values))
    _check_attributes(rewritten, tag.start, values)
    return rewritten


def _rewrite_inline_style(source: str, tag: StartTag, strategy: SkinStrategy, logo: LogoReference) -> str:
    prop = strategy.css_property or "background-image"
    style = set_inline_declarations(tag.get("style") or "", prop, css_logo_values(logo))
    values = {"style": style}

    rewritten = splice(source, tag.start, tag.end, set_attributes(source, tag, values))
    _check_attributes(rewritten, tag.start, values)
    return rewritten


def _rewrite_stylesheet(source: str, tag: StartTag, strategy: SkinStrategy, logo: LogoReference) -> str:
    prop = strategy.css_property or ""
    body_end = raw_text_end(source, tag)
    css = source[tag.end:body_end]
    # A custom property keeps only its last value, so no plain url() fallback here.
    new_css = replace_declaration_values(css, prop, css_logo_values(logo)[-1])
    if new_css == css and not find_declarations(css, prop):
        raise SerializationInvariantError(f"Located <{tag.name}> lost its {prop} declaration")
    return splice(source, tag.end, body_end, new_css)


def _check_attributes(rewritten: str, start: int, values: dict[str, str]) -> None:
    written = parse_start_tag(rewritten, start)
    for name, value in values.items():
        if written.get(name) != value:
            raise SerializationInvariantError(
                f"Rewritten tag does not round-trip {render_attribute(name, value)}"
            )
