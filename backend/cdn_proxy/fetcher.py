"""
Upstream Fetcher

Performs a single outbound GET against a CDN and buffers the whole body.

Handles:
- Choosing https or plain http from the URL scheme (ports 443 / 80 by default)
- Content-Type fallback from the file extension
- Reporting network failures as a result instead of raising
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlsplit

import httpx

from .config import DEFAULT_USER_AGENT
from .content_types import get_content_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchSuccess:
    """The upstream answered, with any status code."""
    status_code: int
    content_type: str
    body: bytes


@dataclass(frozen=True)
class FetchTransportError:
    """The exchange with the upstream host could not be completed."""
    message: str


FetchResult = Union[FetchSuccess, FetchTransportError]


class UpstreamFetcher:
    """
    Fetches assets from CDN hosts.

    Usage:
        fetcher = UpstreamFetcher()
        result = await fetcher.fetch("https://unpkg.com/react/index.js")
        await fetcher.close()

    No retries: the first transport failure ends the fetch.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.http_client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
            headers={
                "User-Agent": user_agent,
                # Keep the buffered body byte-identical to what the CDN serves
                "Accept-Encoding": "identity",
            },
        )

    async def close(self):
        """Close HTTP client."""
        await self.http_client.aclose()

    async def fetch(self, target_url: str) -> FetchResult:
        """
        Fetch a single resource.

        Args:
            target_url: Absolute URL of the asset (non-https schemes go over http)

        Returns:
            FetchSuccess for any HTTP response, FetchTransportError when the
            request/response cycle fails (DNS, refused connection, timeout,
            broken stream, unusable URL).
        """
        parsed = urlsplit(target_url)

        logger.info(f"[Fetcher] Fetching from CDN: {target_url}")

        try:
            request_url = self._transport_url(target_url)
            logger.debug(f"[Fetcher] GET {request_url}")
            async with self.http_client.stream("GET", request_url) as response:
                chunks = []
                async for chunk in response.aiter_raw():
                    chunks.append(chunk)
                body = b"".join(chunks)
                status_code = response.status_code
                header_type = response.headers.get("content-type")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            message = str(e) or type(e).__name__
            logger.error(f"[Fetcher] Error fetching from CDN: {message}")
            return FetchTransportError(message=message)

        return FetchSuccess(
            status_code=status_code,
            content_type=header_type or get_content_type(parsed.path),
            body=body,
        )

    @staticmethod
    def _transport_url(target_url: str) -> httpx.URL:
        """
        Map the target onto https or plain http.

        Anything that is not https goes over plain http; the port defaults
        to 443 or 80 unless the URL names one.
        """
        url = httpx.URL(target_url)
        if url.scheme != "https":
            url = url.copy_with(scheme="http")
        return url
