"""Diff presentation builder.

The flip view interpolates both logo URLs into client-side JavaScript, so
they are encoded as script string literals (JSON with `<`, `>`, `&` and `'`
turned into `\\uXXXX` escapes). HTML attribute escaping would leave the
values breakable from inside a `<script>` element and is not used here.
"""

from __future__ import annotations

from jinja2.utils import htmlsafe_json_dumps

from core.domain.models import ComparisonPair, DiffView


def script_literal(value: str) -> str:
    """Encode `value` as an inert JavaScript string literal, quotes included."""

    return str(htmlsafe_json_dumps(value))


def build(pair: ComparisonPair) -> DiffView:
    return DiffView(
        first=script_literal(pair.first.url),
        second=script_literal(pair.second.url),
        interval_ms=pair.interval_ms,
    )
