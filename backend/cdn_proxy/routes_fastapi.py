"""
CDN Proxy API Routes

Provides:
- GET /                  - Usage page
- GET /?url=<CDN_URL>    - Proxied (and cached) CDN asset

Any path is accepted: when `url` is present the path is ignored.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse

from .dispatcher import RequestDispatcher
from .exceptions import ProxyError

logger = logging.getLogger(__name__)


def build_router(dispatcher: RequestDispatcher) -> APIRouter:
    """Create the catch-all proxy router bound to one dispatcher."""
    router = APIRouter(tags=["CDN Proxy"])

    @router.get("/{path:path}")
    async def proxy(
        request: Request,
        url: Optional[str] = Query(None, description="Absolute CDN URL to fetch"),
    ):
        """
        Proxy a CDN asset.

        Example:
            GET /?url=https://cdn.jsdelivr.net/npm/jquery@3.6.0/dist/jquery.min.js
        """
        request_line = request.url.path
        if request.url.query:
            request_line += f"?{request.url.query}"
        logger.info(f"[CdnProxy] Request received: {request_line}")

        return await dispatcher.dispatch(request.url.path, url)

    return router


async def proxy_error_handler(request: Request, exc: ProxyError) -> PlainTextResponse:
    """Translate a ProxyError into its plain-text HTTP response."""
    if exc.status_code >= 500:
        logger.error(f"[CdnProxy] {exc.status_code} for {request.url.path}: {exc.message}")
    else:
        logger.info(f"[CdnProxy] {exc.status_code} for {request.url.path}")
    return PlainTextResponse(content=exc.message, status_code=exc.status_code)
