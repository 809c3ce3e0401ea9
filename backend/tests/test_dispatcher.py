"""
RequestDispatcher state machine tests.

Drives dispatch() directly; error branches surface as ProxyError subclasses.
"""

import httpx
import pytest

from cdn_proxy.cache_manager import CacheEntry
from cdn_proxy.dispatcher import RequestDispatcher
from cdn_proxy.domain_validator import DomainValidator
from cdn_proxy.exceptions import (
    DomainNotAllowedError,
    MalformedURLError,
    MissingParameterError,
    UpstreamTransportError,
)

from conftest import JQUERY_BODY, JQUERY_URL


@pytest.fixture
def dispatcher(config, cache, fetcher):
    return RequestDispatcher(config, cache, DomainValidator(config.allowed_domains), fetcher)


class TestUsageAndParameters:

    @pytest.mark.asyncio
    async def test_root_without_url_is_usage_page(self, dispatcher):
        response = await dispatcher.dispatch("/", None)

        assert response.status_code == 200
        assert response.media_type == "text/html"
        assert b"CDN Proxy Server" in response.body

    @pytest.mark.asyncio
    async def test_root_with_empty_url_is_usage_page(self, dispatcher):
        response = await dispatcher.dispatch("/", "")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_other_path_without_url_is_missing_parameter(self, dispatcher):
        with pytest.raises(MissingParameterError) as exc_info:
            await dispatcher.dispatch("/assets/app.js", None)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", [
        "not a url",
        "cdn.jsdelivr.net/npm/jquery",
        "https://",
        "http://[::1",
    ])
    async def test_malformed_url(self, dispatcher, target):
        with pytest.raises(MalformedURLError) as exc_info:
            await dispatcher.dispatch("/", target)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Bad Request: Invalid URL format"


class TestAllowList:

    @pytest.mark.asyncio
    async def test_disallowed_domain(self, dispatcher, upstream):
        with pytest.raises(DomainNotAllowedError) as exc_info:
            await dispatcher.dispatch("/", "https://evil.example/script.js")

        error = exc_info.value
        assert error.status_code == 403
        assert error.hostname == "evil.example"
        assert "cdn.jsdelivr.net, cdnjs.cloudflare.com" in error.message
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_path_is_ignored_when_url_present(self, dispatcher):
        response = await dispatcher.dispatch("/anything/here", JQUERY_URL)
        assert response.status_code == 200


class TestCacheFlow:

    @pytest.mark.asyncio
    async def test_miss_populates_cache(self, dispatcher, cache, clock):
        response = await dispatcher.dispatch("/", JQUERY_URL)

        assert response.status_code == 200
        assert response.headers["X-Proxy-Cache"] == "MISS"
        assert "X-Cache-Age" not in response.headers
        assert response.body == JQUERY_BODY

        entry = cache.get(JQUERY_URL)
        assert entry.payload == JQUERY_BODY
        assert entry.created_at == clock()

    @pytest.mark.asyncio
    async def test_hit_reports_age_in_whole_seconds(self, dispatcher, clock, upstream):
        await dispatcher.dispatch("/", JQUERY_URL)
        clock.advance(42.9)

        response = await dispatcher.dispatch("/", JQUERY_URL)

        assert response.headers["X-Proxy-Cache"] == "HIT"
        assert response.headers["X-Cache-Age"] == "42s"
        assert upstream.hits(JQUERY_URL) == 1

    @pytest.mark.asyncio
    async def test_expired_entry_is_deleted_and_refetched(self, dispatcher, cache, clock, upstream):
        await dispatcher.dispatch("/", JQUERY_URL)
        first_created = cache.get(JQUERY_URL).created_at
        clock.advance(3600)

        response = await dispatcher.dispatch("/", JQUERY_URL)

        assert response.headers["X-Proxy-Cache"] == "MISS"
        assert upstream.hits(JQUERY_URL) == 2
        assert cache.get(JQUERY_URL).created_at == first_created + 3600

    @pytest.mark.asyncio
    async def test_expired_entry_removed_even_when_refetch_fails(
        self, dispatcher, cache, clock, upstream
    ):
        cache.put(JQUERY_URL, CacheEntry(b"stale", "text/plain", clock()))
        clock.advance(4000)
        upstream.fail_with(httpx.ConnectError("Connection refused"))

        with pytest.raises(UpstreamTransportError):
            await dispatcher.dispatch("/", JQUERY_URL)

        assert JQUERY_URL not in cache

    @pytest.mark.asyncio
    async def test_non_200_passes_through_uncached(self, dispatcher, cache):
        url = "https://unpkg.com/does-not-exist.js"

        response = await dispatcher.dispatch("/", url)

        assert response.status_code == 404
        assert response.body == b"Not Found"
        assert response.headers["X-Proxy-Cache"] == "MISS"
        assert url not in cache

    @pytest.mark.asyncio
    async def test_transport_error_is_not_cached(self, dispatcher, cache, upstream):
        upstream.fail_with(httpx.ConnectError("Connection refused"))

        with pytest.raises(UpstreamTransportError) as exc_info:
            await dispatcher.dispatch("/", JQUERY_URL)

        assert exc_info.value.status_code == 502
        assert "Connection refused" in exc_info.value.message
        assert len(cache) == 0
