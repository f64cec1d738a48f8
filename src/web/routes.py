"""
Routes
======
`/` (form + per-skin links), `/test` (live preview), `/diff` (flip view)
and `/health`.

Typed errors raised by the Core bubble up to the handler installed in
`web.app`, which turns them into an error page with the right status.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response

from adapters.http_client import media_type
from adapters.page_renderer import render_diff, render_index
from core.services.preview_pipeline import PreviewRequest, build_diff, build_index, run_preview

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "0.1.0"

T = TypeVar("T")

_DISCONNECT_POLL_SECONDS = 0.5
# nginx's "client closed request" status.
CLIENT_CLOSED_REQUEST = 499


async def _run_unless_disconnected(request: Request, work: Awaitable[T]) -> T | None:
    """Await `work`; cancel it and return None if the client goes away first (best-effort)."""

    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("Client disconnected; abandoning %s", request.url.path)
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
                return None
    finally:
        if not task.done():
            task.cancel()


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, wiki: str | None = None, logo: str | None = None):
    context = build_index(settings=request.app.state.settings, wiki=wiki, logo=logo)
    return HTMLResponse(render_index(context=context))


@router.get("/test")
async def test_logo(
    request: Request,
    wiki: str | None = None,
    logo: str | None = None,
    useskin: str | None = None,
):
    """Fetch the wiki with the requested skin and swap in the candidate logo."""

    state = request.app.state
    result = await _run_unless_disconnected(
        request,
        run_preview(
            settings=state.settings,
            request=PreviewRequest(wiki=wiki, logo=logo, useskin=useskin),
            fetcher=state.fetcher,
            verifier=state.verifier,
        ),
    )
    if result is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    return Response(
        content=result.html,
        status_code=200,
        # The body was decoded to str and is re-encoded as UTF-8.
        media_type=f"{media_type(result.content_type) or 'text/html'}; charset=utf-8",
    )


@router.get("/diff", response_class=HTMLResponse)
async def diff(request: Request, logo1: str | None = None, logo2: str | None = None):
    view = build_diff(settings=request.app.state.settings, logo1=logo1, logo2=logo2)
    return HTMLResponse(render_diff(view=view, logo1=logo1, logo2=logo2))


@router.get("/health")
async def health_check():
    """Returns OK if the service is running."""
    return {"status": "ok", "version": API_VERSION}
