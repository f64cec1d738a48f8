"""Remote page fetcher.

Descarga el HTML renderizado de la portada de una wiki forzando la skin con
`?useskin=`. Una sola petición por llamada, sin reintentos: el usuario
reintenta recargando la página.

Límites:
- `http_timeout_seconds` acota la petición completa (no solo cada lectura),
  así un servidor que gotea bytes no retiene la petición entrante.
- `max_redirects` y `max_response_bytes` acotan redirecciones y memoria.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from adapters.http_client import build_async_client, decode_body, media_type, read_capped
from core.config import AppSettings
from core.domain.models import RenderedPage, WikiTarget
from core.errors import (
    FetchTimeoutError,
    NonHtmlResponseError,
    TooManyRedirectsError,
    UndecodableResponseError,
    UnreachableHostError,
    UpstreamStatusError,
)
from core.interfaces.fetcher import PageFetcher

logger = logging.getLogger(__name__)

_HTML_TYPES = ("text/html",)


class RemotePageFetcher(PageFetcher):
    """Fetches `{scheme}://{domain}/?useskin={skin}`."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    def page_url(self, target: WikiTarget) -> str:
        return f"{self._settings.wiki_scheme}://{target.domain}/"

    async def fetch(self, target: WikiTarget) -> RenderedPage:
        url = self.page_url(target)
        logger.info("Fetching %s (useskin=%s)", url, target.skin.value)
        try:
            page = await asyncio.wait_for(
                self._fetch(url, target),
                timeout=self._settings.http_timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise FetchTimeoutError(
                f"{target.domain} did not answer within {self._settings.http_timeout_seconds:g}s"
            ) from None
        except httpx.TooManyRedirects:
            raise TooManyRedirectsError(
                f"{target.domain} redirected more than {self._settings.max_redirects} times"
            ) from None
        except httpx.DecodingError as exc:
            logger.info("Undecodable response from %s: %s", target.domain, exc)
            raise UndecodableResponseError(
                f"{target.domain} sent a body that could not be decoded"
            ) from None
        except httpx.RequestError as exc:
            logger.info("Could not reach %s: %s", target.domain, exc)
            raise UnreachableHostError(f"Could not reach {target.domain}") from None

        logger.info("Fetched %s -> %s (%d chars)", url, page.final_url, len(page.content))
        return page

    async def _fetch(self, url: str, target: WikiTarget) -> RenderedPage:
        async with build_async_client(self._settings, transport=self._transport) as client:
            async with client.stream("GET", url, params={"useskin": target.skin.value}) as response:
                if response.status_code >= 400:
                    raise UpstreamStatusError(
                        f"{target.domain} answered HTTP {response.status_code}",
                        upstream_status=response.status_code,
                    )

                content_type = response.headers.get("content-type", "")
                if media_type(content_type) not in _HTML_TYPES:
                    raise NonHtmlResponseError(
                        f"{target.domain} returned '{media_type(content_type) or 'unknown'}', not text/html"
                    )

                body = await read_capped(response, self._settings.max_response_bytes)
                return RenderedPage(
                    content=decode_body(body, response),
                    content_type=content_type,
                    final_url=str(response.url),
                    status_code=response.status_code,
                )
