"""Skin registry.

Each supported skin maps to one `SkinStrategy`: a data record describing how
to find the logo slot in that skin's rendered HTML and which kind of rewrite
applies to it. Adding a skin means adding an enum member and a registry
entry; there is no per-skin class hierarchy.

The registry is built once at import time and exposed read-only, so it can be
shared across concurrent requests without locking.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class SkinId(str, Enum):
    """Skins that can be forced with `?useskin=`."""

    VECTOR = "vector"
    VECTOR_2022 = "vector-2022"
    TIMELESS = "timeless"
    MONOBOOK = "monobook"

    @classmethod
    def default(cls) -> "SkinId":
        return cls.VECTOR

    def label(self) -> str:
        """Human readable label for links and tables."""

        return self.value.replace("-", " ").capitalize()


class SubstitutionMethod(str, Enum):
    """How the logo value is written into the located node."""

    ATTRIBUTE = "attribute"
    INLINE_STYLE = "inline_style"
    # For themes that expose the logo as a custom property in an inline
    # <style>; none of the built-in skins do.
    CSS_VARIABLE = "css_variable"


class SkinStrategy(BaseModel):
    """Locate-and-replace rule set for one skin."""

    model_config = ConfigDict(frozen=True)

    skin: SkinId
    selector: str = Field(
        ...,
        min_length=1,
        description="CSS selector for logo slot candidates (document order).",
    )
    method: SubstitutionMethod
    attribute: str | None = Field(
        default=None,
        description="Attribute rewritten by the attribute method (e.g. 'src').",
    )
    srcset_attribute: str | None = Field(
        default=None,
        description="Responsive attribute rewritten when present on the slot.",
    )
    css_property: str | None = Field(
        default=None,
        description="Declaration rewritten by the style methods.",
    )
    description: str = ""


# Legacy skins all render `<div id="p-logo"><a class="mw-wiki-logo">` and
# draw the logo as that link's background image.
_WIKI_LOGO_SELECTOR = "#p-logo a.mw-wiki-logo"

_STRATEGIES: dict[SkinId, SkinStrategy] = {
    SkinId.VECTOR: SkinStrategy(
        skin=SkinId.VECTOR,
        selector=_WIKI_LOGO_SELECTOR,
        method=SubstitutionMethod.INLINE_STYLE,
        css_property="background-image",
        description="background-image of #p-logo .mw-wiki-logo (legacy Vector)",
    ),
    SkinId.VECTOR_2022: SkinStrategy(
        skin=SkinId.VECTOR_2022,
        selector="a.mw-logo img.mw-logo-icon",
        method=SubstitutionMethod.ATTRIBUTE,
        attribute="src",
        srcset_attribute="srcset",
        description="<img class=mw-logo-icon> inside the header logo link",
    ),
    SkinId.TIMELESS: SkinStrategy(
        skin=SkinId.TIMELESS,
        selector=_WIKI_LOGO_SELECTOR,
        method=SubstitutionMethod.INLINE_STYLE,
        css_property="background-image",
        description="background-image of #p-logo .mw-wiki-logo (Timeless)",
    ),
    SkinId.MONOBOOK: SkinStrategy(
        skin=SkinId.MONOBOOK,
        selector=_WIKI_LOGO_SELECTOR,
        method=SubstitutionMethod.INLINE_STYLE,
        css_property="background-image",
        description="background-image of #p-logo .mw-wiki-logo (MonoBook)",
    ),
}


SKIN_REGISTRY: Mapping[SkinId, SkinStrategy] = MappingProxyType(_STRATEGIES)


def get_strategy(skin: SkinId) -> SkinStrategy:
    return SKIN_REGISTRY[skin]


def known_skins() -> list[SkinId]:
    """Registered skins in declaration order."""

    return list(SKIN_REGISTRY)
