"""
Logo Substitution Tests
=======================
Per-skin rewriting on fixture pages: exactly one node changes, the result is
stable under a second pass, and missing or duplicated slots are handled
deterministically.
"""

from __future__ import annotations

import html

import pytest
from bs4 import BeautifulSoup

from conftest import TEST_SVG_THUMB, load_fixture, make_page
from core.domain.models import LogoReference
from core.domain.skins import SkinId, SkinStrategy, SubstitutionMethod
from core.errors import LogoSlotNotFoundError, SerializationInvariantError
from core.services.logo_substitution import apply_strategy, css_logo_values, substitute
from core.services.markup import SourceIndex, parse_html

TEST_SVG_THUMB_1_5X = TEST_SVG_THUMB.replace("/135px-", "/203px-")
TEST_SVG_THUMB_2X = TEST_SVG_THUMB.replace("/135px-", "/270px-")

LOGO_STYLE = (
    f'background-image: url("{TEST_SVG_THUMB}"); '
    f'background-image: image-set(url("{TEST_SVG_THUMB}") 1x, '
    f'url("{TEST_SVG_THUMB_1_5X}") 1.5x, url("{TEST_SVG_THUMB_2X}") 2x)'
)

VECTOR_SLOT = '<a class="mw-wiki-logo" href="/wiki/Main_Page" title="Visit the main page">'
VECTOR_2022_SLOT = (
    '<img class="mw-logo-icon" src="/static/images/icons/wikipedia.png" '
    'alt="" aria-hidden="true" height="50" width="50">'
)
TIMELESS_SLOT = '<a class="mw-wiki-logo fallback" href="/wiki/Main_Page" title="Visit the main page">'
MONOBOOK_SLOT = '<a href="/wiki/Main_Page" class="mw-wiki-logo" title="Visit the main page">'


def styled(start_tag: str) -> str:
    return start_tag[:-1] + f' style="{html.escape(LOGO_STYLE)}">'


EXPECTED = {
    SkinId.VECTOR: (VECTOR_SLOT, styled(VECTOR_SLOT)),
    SkinId.VECTOR_2022: (
        VECTOR_2022_SLOT,
        f'<img class="mw-logo-icon" src="{TEST_SVG_THUMB}" '
        'alt="" aria-hidden="true" height="50" width="50">',
    ),
    SkinId.TIMELESS: (TIMELESS_SLOT, styled(TIMELESS_SLOT)),
    SkinId.MONOBOOK: (MONOBOOK_SLOT, styled(MONOBOOK_SLOT)),
}


def url_logo(url: str) -> LogoReference:
    return LogoReference(original=url, url=url)


# ============================================================================
# ONE CHANGE PER SKIN
# ============================================================================

class TestSingleChange:
    """Only the logo slot differs between input and output."""

    @pytest.mark.parametrize("skin", list(SkinId))
    def test_only_slot_changes(self, skin, skin_pages, file_logo):
        source = skin_pages[skin]
        old, new = EXPECTED[skin]
        assert source.count(old) == 1

        out = substitute(make_page(source), skin, file_logo)

        assert out == source.replace(old, new)

    @pytest.mark.parametrize("skin", [SkinId.VECTOR, SkinId.TIMELESS, SkinId.MONOBOOK])
    def test_wiki_logo_link_gets_background(self, skin, skin_pages, file_logo):
        out = substitute(make_page(skin_pages[skin]), skin, file_logo)

        link = BeautifulSoup(out, "html.parser").select_one("#p-logo a.mw-wiki-logo")
        assert link["style"] == LOGO_STYLE
        assert link["href"] == "/wiki/Main_Page"

    def test_vector_2022_leaves_other_copies_of_logo_url(self, skin_pages, file_logo):
        source = skin_pages[SkinId.VECTOR_2022]
        old_url = "/static/images/icons/wikipedia.png"

        out = substitute(make_page(source), SkinId.VECTOR_2022, file_logo)

        # preload link, og:image, tracking pixel and RLCONF keep the old URL
        assert out.count(old_url) == source.count(old_url) - 1
        assert '"wgLogo":"/static/images/icons/wikipedia.png"' in out

    def test_vector_2022_slot_points_at_logo(self, skin_pages, file_logo):
        out = substitute(make_page(skin_pages[SkinId.VECTOR_2022]), SkinId.VECTOR_2022, file_logo)

        soup = BeautifulSoup(out, "html.parser")
        assert soup.select_one("a.mw-logo img.mw-logo-icon")["src"] == TEST_SVG_THUMB
        assert soup.select_one("img.mw-logo-wordmark")["src"].endswith("wikipedia-wordmark-en.svg")

    def test_wiki_logo_outside_p_logo_untouched(self, file_logo):
        source = (
            '<div id="footer"><a class="mw-wiki-logo" href="/"></a></div>'
            '<div id="p-logo"><a class="mw-wiki-logo" href="/"></a></div>'
        )
        out = substitute(make_page(source), SkinId.MONOBOOK, file_logo)

        soup = BeautifulSoup(out, "html.parser")
        assert soup.select_one("#footer a.mw-wiki-logo").get("style") is None
        assert soup.select_one("#p-logo a.mw-wiki-logo")["style"] == LOGO_STYLE


# ============================================================================
# HIGH-DPI VARIANTS IN STYLES
# ============================================================================

class TestImageSet:

    def test_file_logo_style_carries_every_density(self, skin_pages, file_logo):
        out = substitute(make_page(skin_pages[SkinId.MONOBOOK]), SkinId.MONOBOOK, file_logo)

        style = BeautifulSoup(out, "html.parser").select_one("#p-logo a")["style"]
        assert style.startswith(f'background-image: url("{TEST_SVG_THUMB}");')
        assert f'url("{TEST_SVG_THUMB_1_5X}") 1.5x' in style
        assert f'url("{TEST_SVG_THUMB_2X}") 2x)' in style

    def test_plain_url_logo_has_single_declaration(self, skin_pages):
        logo = url_logo("https://example.org/logo.png")

        out = substitute(make_page(skin_pages[SkinId.VECTOR]), SkinId.VECTOR, logo)

        style = BeautifulSoup(out, "html.parser").select_one("#p-logo a")["style"]
        assert style == 'background-image: url("https://example.org/logo.png")'
        assert "image-set" not in out

    def test_css_logo_values(self, file_logo):
        plain, image_set = css_logo_values(file_logo)

        assert plain == f'url("{TEST_SVG_THUMB}")'
        assert image_set.startswith("image-set(") and image_set.endswith(" 2x)")
        assert css_logo_values(url_logo("https://example.org/a.png")) == ['url("https://example.org/a.png")']


# ============================================================================
# IDEMPOTENCE
# ============================================================================

class TestIdempotence:

    @pytest.mark.parametrize("skin", list(SkinId))
    def test_second_pass_is_identity(self, skin, skin_pages, file_logo):
        once = substitute(make_page(skin_pages[skin]), skin, file_logo)
        twice = substitute(make_page(once), skin, file_logo)
        assert twice == once

    def test_existing_inline_style_is_extended_once(self, file_logo):
        source = (
            '<div id="p-logo"><a class="mw-wiki-logo" style="color: red;"></a></div>'
        )
        once = substitute(make_page(source), SkinId.MONOBOOK, file_logo)
        twice = substitute(make_page(once), SkinId.MONOBOOK, file_logo)

        soup = BeautifulSoup(twice, "html.parser")
        assert soup.a["style"] == f"color: red; {LOGO_STYLE}"
        assert twice == once

    def test_resubstituting_a_different_logo_replaces_it(self, skin_pages, file_logo):
        other = url_logo("https://example.org/other.png")
        once = substitute(make_page(skin_pages[SkinId.MONOBOOK]), SkinId.MONOBOOK, file_logo)
        again = substitute(make_page(once), SkinId.MONOBOOK, other)

        assert TEST_SVG_THUMB not in again
        assert "image-set" not in again
        assert again.count("background-image: url(&quot;https://example.org/other.png&quot;)") == 1


# ============================================================================
# SLOT SELECTION
# ============================================================================

TWO_SLOTS = """<html><body>
<a class="mw-logo" href="/"><img class="mw-logo-icon" src="/one.png"></a>
<a class="mw-logo" href="/"><img class="mw-logo-icon" src="/two.png"></a>
</body></html>"""


class TestSlotSelection:

    @pytest.mark.parametrize("skin", list(SkinId))
    def test_no_slot_raises(self, skin, file_logo):
        page = make_page(load_fixture("no_logo.html"))
        with pytest.raises(LogoSlotNotFoundError) as excinfo:
            substitute(page, skin, file_logo)
        assert skin.value in excinfo.value.public_message

    def test_first_slot_in_document_order(self, file_logo):
        results = {
            substitute(make_page(TWO_SLOTS), SkinId.VECTOR_2022, file_logo) for _ in range(5)
        }

        assert len(results) == 1
        out = results.pop()
        assert 'src="/two.png"' in out
        assert 'src="/one.png"' not in out
        assert out.index(TEST_SVG_THUMB) < out.index("/two.png")

    @pytest.mark.parametrize(
        "page_skin, forced_skin",
        [
            (SkinId.VECTOR_2022, SkinId.MONOBOOK),
            (SkinId.VECTOR, SkinId.VECTOR_2022),
        ],
    )
    def test_page_under_wrong_skin_has_no_slot(self, page_skin, forced_skin, skin_pages, file_logo):
        with pytest.raises(LogoSlotNotFoundError):
            substitute(make_page(skin_pages[page_skin]), forced_skin, file_logo)


# ============================================================================
# CUSTOM PROPERTY THEMES
# ============================================================================

THEME_STRATEGY = SkinStrategy(
    skin=SkinId.TIMELESS,
    selector="style",
    method=SubstitutionMethod.CSS_VARIABLE,
    css_property="--site-logo",
    description="--site-logo in an inline <style>",
)

THEMED_PAGE = """<html><head>
<style>body { margin: 0; }</style>
<style>:root { /* --site-logo: url(/old.png); */ --site-accent: #36c; --site-logo: url(/logo.png); }</style>
</head><body><a class="logo" style="background-image: var(--site-logo);"></a></body></html>"""


class TestCustomProperty:

    def test_rewrites_only_the_declaration(self, file_logo):
        out = apply_strategy(make_page(THEMED_PAGE), THEME_STRATEGY, file_logo)

        new_value = css_logo_values(file_logo)[-1]
        assert out == THEMED_PAGE.replace("--site-logo: url(/logo.png);", f"--site-logo: {new_value};")
        assert "/* --site-logo: url(/old.png); */" in out
        assert "<style>body { margin: 0; }</style>" in out

    def test_commented_out_property_is_not_a_slot(self, file_logo):
        page = make_page("<style>:root { /* --site-logo: url(/old.png); */ }</style>")

        with pytest.raises(LogoSlotNotFoundError):
            apply_strategy(page, THEME_STRATEGY, file_logo)

    def test_property_name_inside_string_is_not_a_slot(self, file_logo):
        page = make_page("<style>a::after { content: '--site-logo: x'; }</style>")

        with pytest.raises(LogoSlotNotFoundError):
            apply_strategy(page, THEME_STRATEGY, file_logo)


# ============================================================================
# ATTRIBUTE DETAILS
# ============================================================================

class TestAttributeRewrite:

    def test_srcset_gets_responsive_variants(self, file_logo):
        source = (
            '<a class="mw-logo"><img class="mw-logo-icon" src="/a.png" '
            'srcset="/a-15.png 1.5x, /a-2.png 2x"></a>'
        )
        out = substitute(make_page(source), SkinId.VECTOR_2022, file_logo)

        img = BeautifulSoup(out, "html.parser").img
        assert img["srcset"] == f"{TEST_SVG_THUMB_1_5X} 1.5x, {TEST_SVG_THUMB_2X} 2x"

    def test_srcset_falls_back_to_plain_url(self):
        logo = url_logo("https://example.org/logo.png")
        source = '<a class="mw-logo"><img class="mw-logo-icon" src="/a.png" srcset="/a-2.png 2x"></a>'

        out = substitute(make_page(source), SkinId.VECTOR_2022, logo)

        assert BeautifulSoup(out, "html.parser").img["srcset"] == "https://example.org/logo.png"

    def test_uppercase_and_self_closing_markup(self, file_logo):
        source = "<A CLASS=\"mw-logo\" HREF=\"/\"><IMG CLASS=\"mw-logo-icon\" SRC='/a.png'/></A>"

        out = substitute(make_page(source), SkinId.VECTOR_2022, file_logo)

        assert out == f'<A CLASS="mw-logo" HREF="/"><IMG CLASS="mw-logo-icon" src="{TEST_SVG_THUMB}"/></A>'

    @pytest.mark.parametrize("skin", [SkinId.VECTOR, SkinId.VECTOR_2022])
    def test_crlf_line_endings(self, skin, skin_pages, file_logo):
        source = skin_pages[skin].replace("\n", "\r\n")
        old, new = EXPECTED[skin]

        out = substitute(make_page(source), skin, file_logo)

        assert out == source.replace(old, new)

    def test_quotes_in_logo_url_cannot_add_attributes(self):
        logo = url_logo('https://example.org/a.png" onerror="alert(1)')
        source = '<a class="mw-logo"><img class="mw-logo-icon" src="/a.png" alt=""></a>'

        out = substitute(make_page(source), SkinId.VECTOR_2022, logo)

        img = BeautifulSoup(out, "html.parser").img
        assert set(img.attrs) == {"class", "src", "alt"}
        assert img["src"] == logo.url

    def test_quotes_in_logo_url_stay_inside_style(self):
        logo = url_logo('https://example.org/a.png") , url("https://evil.example/x.png')
        source = '<div id="p-logo"><a class="mw-wiki-logo" href="/"></a></div>'

        out = substitute(make_page(source), SkinId.VECTOR, logo)

        link = BeautifulSoup(out, "html.parser").a
        assert set(link.attrs) == {"class", "href", "style"}
        assert link["style"].count('url("') == 1


class TestSourceIndex:

    def test_mismatched_source_is_an_internal_error(self):
        soup = parse_html("<p>intro</p>\n<img class=\"x\" src=\"/a.png\">")
        shifted = SourceIndex("<p>intro</p>\n<p>other</p>")

        with pytest.raises(SerializationInvariantError):
            shifted.start_tag(soup.img)
