"""Verificación del logo candidato.

Los nombres `File:` ya se expanden de forma determinista en el validador
(ruta con hash de Commons). Aquí solo confirmamos, con una petición, que la
URL resuelta sirve realmente un recurso `image/*`. Si no, el preview falla
antes de descargar la wiki (`LogoNotImageError`).
"""

from __future__ import annotations

import logging

import httpx

from adapters.http_client import build_async_client, media_type
from core.config import AppSettings
from core.domain.models import LogoReference
from core.errors import FetchTimeoutError, LogoNotImageError, UnreachableHostError
from core.interfaces.fetcher import LogoVerifier

logger = logging.getLogger(__name__)


class CommonsLogoResolver(LogoVerifier):
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    async def verify(self, logo: LogoReference) -> None:
        headers = {"Accept": "image/*"}
        try:
            async with build_async_client(
                self._settings, extra_headers=headers, transport=self._transport
            ) as client:
                # Only the headers are needed; the body is never read.
                async with client.stream("GET", logo.url) as response:
                    status = response.status_code
                    content_type = media_type(response.headers.get("content-type"))
        except httpx.TimeoutException:
            raise FetchTimeoutError(f"Logo host did not answer in time: {logo.url}") from None
        except httpx.HTTPError as exc:
            logger.info("Could not fetch logo %s: %s", logo.url, exc)
            raise UnreachableHostError(f"Could not reach logo URL {logo.url}") from None

        if status >= 400:
            what = "File not found on Commons" if logo.is_file_page else f"HTTP {status}"
            raise LogoNotImageError(f"Logo {logo.original} is not usable: {what}")
        if not content_type.startswith("image/"):
            raise LogoNotImageError(
                f"Logo {logo.original} is served as '{content_type or 'unknown'}', not an image"
            )
        logger.debug("Logo %s verified as %s", logo.url, content_type)
