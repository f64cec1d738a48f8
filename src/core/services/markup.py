"""Source-preserving edits on HTML located through a BeautifulSoup tree.

Nodes are found with BeautifulSoup (`html.parser` records the line/column of
every start tag). Edits are then applied to the original text at that exact
offset, so bytes outside the edited node are copied through untouched, which
a full `soup.decode()` round trip would not guarantee.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from itertools import accumulate

from bs4 import BeautifulSoup
from bs4.element import Tag

from core.errors import SerializationInvariantError

_TAG_NAME_RE = re.compile(r"<([a-zA-Z][^\s/>]*)")
# Same tolerance rules as the stdlib tokenizer behind html.parser.
_ATTR_RE = re.compile(
    r"(?P<name>[^\s/>][^\s/=>]*)"
    r"(?:\s*=+\s*(?P<value>'[^']*'|\"[^\"]*\"|(?!['\"])[^>\s]*))?"
)
_SKIP_RE = re.compile(r"(?:\s|/(?!>))*")


@dataclass(frozen=True)
class AttrSpan:
    name: str
    start: int
    end: int
    value: str | None


@dataclass(frozen=True)
class StartTag:
    name: str
    start: int
    end: int
    name_end: int
    attrs: tuple[AttrSpan, ...]

    def get(self, name: str) -> str | None:
        for attr in self.attrs:
            if attr.name == name:
                return attr.value
        return None


def parse_html(source: str) -> BeautifulSoup:
    return BeautifulSoup(source, "html.parser", store_line_numbers=True)


class SourceIndex:
    """Maps BeautifulSoup (line, column) positions back to string offsets."""

    def __init__(self, source: str) -> None:
        self.source = source
        lengths = (len(line) + 1 for line in source.split("\n"))
        self._line_starts = [0, *accumulate(lengths)]

    def offset_of(self, tag: Tag) -> int:
        line, column = tag.sourceline, tag.sourcepos
        if line is None or column is None or line < 1 or line > len(self._line_starts) - 1:
            raise SerializationInvariantError(f"No source position recorded for <{tag.name}>")
        return self._line_starts[line - 1] + column

    def start_tag(self, tag: Tag) -> StartTag:
        """Tokenize the start tag of `tag` in the original source."""

        start = self.offset_of(tag)
        parsed = parse_start_tag(self.source, start)
        if parsed.name != tag.name.lower():
            raise SerializationInvariantError(
                f"Source offset {start} holds <{parsed.name}>, expected <{tag.name}>"
            )
        return parsed


def parse_start_tag(source: str, start: int) -> StartTag:
    match = _TAG_NAME_RE.match(source, start)
    if match is None:
        raise SerializationInvariantError(f"No start tag at offset {start}")

    pos = match.end()
    attrs: list[AttrSpan] = []
    while True:
        pos = _SKIP_RE.match(source, pos).end()
        if pos >= len(source):
            raise SerializationInvariantError(f"Unterminated start tag at offset {start}")
        if source.startswith("/>", pos):
            pos += 2
            break
        if source[pos] == ">":
            pos += 1
            break
        attr = _ATTR_RE.match(source, pos)
        if attr is None or attr.end() == pos:
            raise SerializationInvariantError(f"Malformed attribute at offset {pos}")
        raw = attr.group("value")
        value = None
        if raw is not None:
            if raw[:1] == raw[-1:] and raw[:1] in ("'", '"') and len(raw) >= 2:
                raw = raw[1:-1]
            value = html.unescape(raw)
        attrs.append(AttrSpan(attr.group("name").lower(), attr.start(), attr.end(), value))
        pos = attr.end()

    return StartTag(
        name=match.group(1).lower(),
        start=start,
        end=pos,
        name_end=match.end(),
        attrs=tuple(attrs),
    )


def render_attribute(name: str, value: str) -> str:
    return f'{name}="{html.escape(value, quote=True)}"'


def set_attributes(source: str, tag: StartTag, values: dict[str, str]) -> str:
    """Return the start tag text with `values` written in.

    Existing occurrences are rewritten in place (every duplicate, so browsers
    that read the first one and parsers that keep the last one agree); missing
    attributes are appended after the last existing attribute.
    """

    out: list[str] = []
    cursor = tag.start
    for attr in tag.attrs:
        if attr.name in values:
            out.append(source[cursor:attr.start])
            out.append(render_attribute(attr.name, values[attr.name]))
            cursor = attr.end
    present = {a.name for a in tag.attrs}
    insert_at = tag.attrs[-1].end if tag.attrs else tag.name_end
    missing = [render_attribute(n, v) for n, v in values.items() if n not in present]

    if missing:
        out.append(source[cursor:insert_at])
        out.append("".join(" " + item for item in missing))
        cursor = insert_at
    out.append(source[cursor:tag.end])
    return "".join(out)


def splice(source: str, start: int, end: int, replacement: str) -> str:
    return source[:start] + replacement + source[end:]


def raw_text_end(source: str, tag: StartTag) -> int:
    """End offset of the raw text content of <style>/<script> `tag`."""

    closing = re.compile(rf"</{re.escape(tag.name)}\s*>", re.IGNORECASE)
    match = closing.search(source, tag.end)
    if match is None:
        return len(source)
    return match.start()


# ---------------------------------------------------------------- CSS helpers

# Comments and quoted strings; declaration names inside them are not real.
_CSS_OPAQUE_RE = re.compile(
    r"/\*.*?(?:\*/|\Z)|\"(?:\\.|[^\"\\])*\"?|'(?:\\.|[^'\\])*'?",
    re.DOTALL,
)


def css_url(url: str) -> str:
    escaped = (
        url.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\a ")
        .replace("\r", "")
    )
    return f'url("{escaped}")'


def css_image_set(variants: list[tuple[str, str]]) -> str:
    """`image-set()` over (url, density) pairs, e.g. [("a.png", "1x"), ("b.png", "2x")]."""

    return "image-set(" + ", ".join(f"{css_url(url)} {density}" for url, density in variants) + ")"


def _mask_opaque(css: str) -> str:
    """Blank out comments and strings, keeping every offset in place."""

    return _CSS_OPAQUE_RE.sub(lambda m: " " * len(m.group()), css)


def _value_end(css: str, pos: int, *, stop: str) -> int:
    """Scan a declaration value, honoring quotes and parentheses."""

    depth = 0
    quote: str | None = None
    while pos < len(css):
        ch = css[pos]
        if quote:
            if ch == "\\":
                pos += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif depth == 0 and ch in stop:
            return pos
        pos += 1
    return len(css)


def find_declarations(css: str, prop: str) -> list[tuple[int, int]]:
    """Spans of the values of every `prop:` declaration in a stylesheet.

    Names that only appear inside comments or quoted strings do not count.
    """

    flags = 0 if prop.startswith("--") else re.IGNORECASE
    pattern = re.compile(rf"(?<![\w-]){re.escape(prop)}\s*:", flags)
    masked = _mask_opaque(css)
    spans = []
    for match in pattern.finditer(masked):
        start = match.end()
        spans.append((start, _value_end(css, start, stop=";}")))
    return spans


def replace_declaration_values(css: str, prop: str, value: str) -> str:
    """Set every `prop` declaration in a stylesheet, keeping surrounding whitespace."""

    out: list[str] = []
    cursor = 0
    for start, end in find_declarations(css, prop):
        current = css[start:end]
        lead = current[: len(current) - len(current.lstrip())]
        trail = current[len(current.rstrip()):]
        out.append(css[cursor:start])
        out.append(f"{lead or ' '}{value}{trail}")
        cursor = end
    out.append(css[cursor:])
    return "".join(out)


def set_inline_declarations(style: str, prop: str, values: list[str]) -> str:
    """Set `prop` inside a `style` attribute value to `values`, in order.

    Several values become repeated declarations (`a: x; a: y`), so browsers
    that reject a later value keep the earlier one. Existing `prop`
    declarations collapse into the new ones at the position of the first;
    when there is none they are appended.
    """

    segments: list[str] = []
    pos = 0
    while pos <= len(style):
        end = _value_end(style, pos, stop=";")
        segments.append(style[pos:end])
        pos = end + 1

    declarations = "; ".join(f"{prop}: {value}" for value in values)
    out: list[str] = []
    placed = False
    for segment in segments:
        name = segment.split(":", 1)[0].strip().lower()
        if ":" in segment and name == prop.lower():
            if not placed:
                lead = segment[: len(segment) - len(segment.lstrip())]
                out.append(lead + declarations)
                placed = True
            continue
        out.append(segment)
    if placed:
        return ";".join(out)

    base = style.rstrip()
    if base and not base.endswith(";"):
        base += ";"
    if base:
        base += " "
    return base + declarations


def insert_base_href(source: str, url: str) -> str:
    """Insert `<base href=url>` right after `<head>` so relative links resolve upstream.

    Pages that already declare a `<base href>`, or have no `<head>` element,
    are returned unchanged.
    """

    soup = parse_html(source)
    if soup.find("base", href=True) is not None:
        return source
    head = soup.find("head")
    if head is None:
        return source
    tag = SourceIndex(source).start_tag(head)
    return splice(source, tag.end, tag.end, f"<base {render_attribute('href', url)}>")
