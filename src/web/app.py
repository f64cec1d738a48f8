"""
FastAPI Application
===================
HTTP surface of logo-test.

Run with:
    logo-test serve
or:
    uvicorn web.app:app --reload
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from adapters.page_renderer import render_error
from core.config import AppSettings
from core.errors import InternalError, LogoTestError
from core.interfaces.fetcher import LogoVerifier, PageFetcher
from web import routes

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    fetcher: PageFetcher | None = None,
    verifier: LogoVerifier | None = None,
) -> FastAPI:
    """Build the application.

    `fetcher`/`verifier` default to the httpx adapters; tests pass stubs or
    adapters wired to an `httpx.MockTransport`.
    """

    settings = settings or AppSettings()
    app = FastAPI(
        title="logo-test",
        description="Preview candidate logos on live wiki pages",
        version=routes.API_VERSION,
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.fetcher = fetcher
    app.state.verifier = verifier

    app.add_exception_handler(LogoTestError, _handle_logo_test_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
    app.include_router(routes.router)
    return app


async def _handle_logo_test_error(request: Request, exc: LogoTestError) -> HTMLResponse:
    if isinstance(exc, InternalError):
        logger.error("Internal error on %s: %s", request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s on %s: %s", exc.kind, request.url.path, exc.public_message)
    return HTMLResponse(
        render_error(kind=exc.kind, message=exc.public_message, status_code=exc.status_code),
        status_code=exc.status_code,
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> HTMLResponse:
    logger.exception("Unhandled error on %s", request.url.path, exc_info=exc)
    return HTMLResponse(
        render_error(
            kind=InternalError.kind,
            message="An internal error occurred.",
            status_code=500,
        ),
        status_code=500,
    )


app = create_app()
