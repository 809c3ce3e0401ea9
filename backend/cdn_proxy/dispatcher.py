"""
Request Dispatcher

Per-request controller for the proxy:

    usage page -> parse target -> allow-list -> cache -> upstream fetch

Every branch is terminal. Errors are raised as ProxyError subclasses and
turned into plain-text responses by the HTTP layer.
"""

import html
import logging
from typing import Optional
from urllib.parse import urlsplit

from fastapi.responses import HTMLResponse, Response

from .cache_manager import CacheEntry, ProxyCacheStore
from .config import ProxyConfig
from .domain_validator import DomainValidator
from .exceptions import (
    DomainNotAllowedError,
    MalformedURLError,
    MissingParameterError,
    UpstreamTransportError,
)
from .fetcher import FetchTransportError, UpstreamFetcher

logger = logging.getLogger(__name__)

CACHE_HIT = "HIT"
CACHE_MISS = "MISS"

USAGE_EXAMPLES = (
    (
        "https://cdn.jsdelivr.net/npm/jquery@3.6.0/dist/jquery.min.js",
        "jQuery from jsDelivr",
    ),
    (
        "https://cdnjs.cloudflare.com/ajax/libs/lodash.js/4.17.21/lodash.min.js",
        "Lodash from Cloudflare",
    ),
)


class RequestDispatcher:
    """
    Routes a single proxy request to the usage page, an error, the cache
    or the upstream CDN.

    Collaborators are injected so that each app (and each test) owns its
    own cache.
    """

    def __init__(
        self,
        config: ProxyConfig,
        cache: ProxyCacheStore,
        validator: DomainValidator,
        fetcher: UpstreamFetcher,
    ):
        self.config = config
        self.cache = cache
        self.validator = validator
        self.fetcher = fetcher

    async def dispatch(self, path: str, target_url: Optional[str]) -> Response:
        """
        Handle one request.

        Args:
            path: Request path, e.g. "/"
            target_url: Value of the `url` query parameter (None or "" if absent)

        Raises:
            MissingParameterError, MalformedURLError, DomainNotAllowedError,
            UpstreamTransportError
        """
        if path == "/" and not target_url:
            return self.usage_page()

        if not target_url:
            raise MissingParameterError()

        hostname = self._parse_hostname(target_url)

        if not self.validator.is_allowed(hostname):
            logger.warning(f"[CdnProxy] Blocked domain: {hostname}")
            raise DomainNotAllowedError(hostname, self.validator.allowed_domains)

        cached = self.cache.get(target_url)
        if cached is not None:
            return self._serve_cached(target_url, cached)

        # get() leaves expired entries in place
        self.cache.delete(target_url)

        return await self._fetch_and_cache(target_url)

    @staticmethod
    def _parse_hostname(target_url: str) -> str:
        try:
            parsed = urlsplit(target_url)
            hostname = parsed.hostname
        except ValueError:
            raise MalformedURLError() from None
        if not parsed.scheme or not hostname:
            raise MalformedURLError()
        return hostname

    def _serve_cached(self, target_url: str, entry: CacheEntry) -> Response:
        age = entry.age(self.cache.now())
        logger.debug(f"[CdnProxy] Serving from cache: {target_url}")
        return self._proxied_response(
            status_code=200,
            body=entry.payload,
            content_type=entry.content_type,
            cache_status=CACHE_HIT,
            extra_headers={"X-Cache-Age": f"{max(int(age), 0)}s"},
        )

    async def _fetch_and_cache(self, target_url: str) -> Response:
        result = await self.fetcher.fetch(target_url)

        if isinstance(result, FetchTransportError):
            raise UpstreamTransportError(result.message)

        if result.status_code == 200:
            self.cache.put(
                target_url,
                CacheEntry(
                    payload=result.body,
                    content_type=result.content_type,
                    created_at=self.cache.now(),
                ),
            )
            logger.info(f"[CdnProxy] Cached: {target_url}")
        else:
            logger.info(
                f"[CdnProxy] Upstream returned {result.status_code}, not cached: {target_url}"
            )

        return self._proxied_response(
            status_code=result.status_code,
            body=result.body,
            content_type=result.content_type,
            cache_status=CACHE_MISS,
        )

    @staticmethod
    def _proxied_response(
        status_code: int,
        body: bytes,
        content_type: str,
        cache_status: str,
        extra_headers: Optional[dict] = None,
    ) -> Response:
        # Content-Type passed as a header so it is forwarded verbatim
        headers = {
            "Content-Type": content_type,
            "Content-Length": str(len(body)),
            "X-Proxy-Cache": cache_status,
            "Access-Control-Allow-Origin": "*",
        }
        if extra_headers:
            headers.update(extra_headers)
        return Response(content=body, status_code=status_code, headers=headers)

    def usage_page(self) -> HTMLResponse:
        """Render the HTML usage page with allowed domains and cache statistics."""
        base = f"http://{self.config.host}:{self.config.port}"
        examples = "".join(
            f'<li><a href="/?url={html.escape(url)}">{html.escape(label)}</a></li>'
            for url, label in USAGE_EXAMPLES
        )
        stats = self.cache.stats()
        domains = "".join(
            f"<li>{html.escape(domain)}</li>"
            for domain in self.validator.allowed_domains
        )
        page = (
            "<html>"
            "<head><title>CDN Proxy Server</title></head>"
            "<body>"
            "<h1>CDN Proxy Server</h1>"
            f"<p>Usage: <code>{base}/?url=CDN_URL</code></p>"
            "<h2>Examples:</h2>"
            f"<ul>{examples}</ul>"
            "<h2>Allowed CDN Domains:</h2>"
            f"<ul>{domains}</ul>"
            f"<p>Cache entries: {stats['total_entries']}</p>"
            f"<p>Cache size: {stats['total_size_bytes']} bytes "
            f"(TTL {stats['cache_ttl_seconds']:g}s)</p>"
            "</body>"
            "</html>"
        )
        return HTMLResponse(content=page, status_code=200)
