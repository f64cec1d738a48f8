"""Contratos de I/O que consume el pipeline de preview.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite sustituir el fetcher/resolver real por stubs en tests sin acoplar
  el Core a httpx.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import LogoReference, RenderedPage, WikiTarget


@runtime_checkable
class PageFetcher(Protocol):
    """Retrieves the rendered HTML of a wiki page for one skin.

    Rules:
    - exactly one outbound request per call, no retries;
    - failures are raised as `core.errors.FetchError` subclasses.
    """

    async def fetch(self, target: WikiTarget) -> RenderedPage:
        ...


@runtime_checkable
class LogoVerifier(Protocol):
    """Confirms that a resolved logo URL serves an image."""

    async def verify(self, logo: LogoReference) -> None:
        ...
