"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, redirects y límites de tamaño en un solo sitio.
- Facilita testeo: los tests inyectan un `httpx.MockTransport`.
- Cada salto de redirección se valida con las mismas reglas de host que la
  entrada del usuario, así una wiki no puede mandarnos a la red interna.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings
from core.errors import ForbiddenRedirectError, InvalidDomainError, TooLargeError
from core.services.request_validator import check_public_host

_REDIRECT_SCHEMES = ("http", "https")


async def guard_redirect(response: httpx.Response) -> None:
    """Response hook: refuse redirects to non-public hosts before they are followed."""

    if not response.has_redirect_location:
        return
    target = response.request.url.join(response.headers["location"])
    if target.scheme not in _REDIRECT_SCHEMES:
        raise ForbiddenRedirectError(f"Redirect to a '{target.scheme}' URL was blocked")
    try:
        check_public_host(target.host, target.port)
    except InvalidDomainError as exc:
        raise ForbiddenRedirectError(
            f"Redirect to {target.host} was blocked: {exc.public_message}"
        ) from None


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que fetcher y resolver se comporten igual.
    - `max_redirects` acota la cadena de redirecciones; httpx lanza
      `TooManyRedirects` al superarla.
    - `guard_redirect` corre sobre cada respuesta, antes de seguir el `Location`.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        max_redirects=settings.max_redirects,
        headers=headers,
        transport=transport,
        event_hooks={"response": [guard_redirect]},
    )


async def read_capped(response: httpx.Response, limit: int) -> bytes:
    """Lee el body de una respuesta en streaming sin superar `limit` bytes.

    Se comprueba primero `Content-Length` (si el servidor lo declara) y luego
    el volumen real recibido, porque el header puede faltar o mentir.
    """

    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise TooLargeError(f"Response declares {declared} bytes (limit {limit})")

    chunks: list[bytes] = []
    received = 0
    async for chunk in response.aiter_bytes():
        received += len(chunk)
        if received > limit:
            raise TooLargeError(f"Response exceeded {limit} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def media_type(content_type: str | None) -> str:
    """'text/html; charset=UTF-8' -> 'text/html'."""

    return (content_type or "").split(";", 1)[0].strip().lower()


def decode_body(body: bytes, response: httpx.Response) -> str:
    encoding = response.charset_encoding or "utf-8"
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
