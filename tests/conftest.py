"""
Shared fixtures: settings isolated from the environment, fixture pages per
skin, and an `httpx.MockTransport` that plays both the wiki and Commons.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from core.config import AppSettings
from core.domain.models import LogoReference, RenderedPage
from core.domain.skins import SkinId
from core.services.request_validator import RequestValidator

FIXTURES = Path(__file__).parent / "fixtures"

TEST_SVG_THUMB = (
    "https://upload.wikimedia.org/wikipedia/commons/thumb/b/bd/Test.svg/135px-Test.svg.png"
)


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def make_page(content: str, url: str = "https://xx.wikipedia.org/wiki/Main_Page") -> RenderedPage:
    return RenderedPage(content=content, content_type="text/html; charset=UTF-8", final_url=url)


@pytest.fixture
def settings() -> AppSettings:
    """Settings that ignore .env files and LOGO_TEST_* variables of the host."""

    return AppSettings(_env_file=None, http_timeout_seconds=2.0)


@pytest.fixture
def validator(settings) -> RequestValidator:
    return RequestValidator(settings)


@pytest.fixture
def file_logo(validator) -> LogoReference:
    return validator.validate_logo("File:Test.svg")


@pytest.fixture
def skin_pages() -> dict[SkinId, str]:
    return {skin: load_fixture(f"{skin.value}.html") for skin in SkinId}


class FakeWikimedia:
    """Routes requests by host; records every request it sees."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        # Hosts serving a fixed page; xx.wikipedia.org serves the page of ?useskin=.
        self.pages: dict[str, str] = {"plain.wikipedia.org": "no_logo.html"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host.endswith(".invalid"):
            raise httpx.ConnectError("Name or service not known", request=request)

        if host == "upload.wikimedia.org":
            return httpx.Response(200, headers={"content-type": "image/png"}, content=b"\x89PNG")

        if host == "html.example.org":
            return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<p>nope</p>")

        name = None
        if host == "xx.wikipedia.org":
            name = f"{request.url.params.get('useskin', 'vector')}.html"
        elif host in self.pages:
            name = self.pages[host]
        if name is not None:
            return httpx.Response(
                200,
                headers={"content-type": "text/html; charset=UTF-8"},
                content=load_fixture(name).encode("utf-8"),
            )

        return httpx.Response(404, headers={"content-type": "text/html"}, content=b"not found")


@pytest.fixture
def fake_wikimedia() -> FakeWikimedia:
    return FakeWikimedia()


@pytest.fixture
def transport(fake_wikimedia) -> httpx.MockTransport:
    return httpx.MockTransport(fake_wikimedia)


def run(coro):
    """Drive a coroutine from a plain (sync) test."""

    return asyncio.run(coro)
