"""
CDN Proxy test configuration.

Fixtures:
- clock: controllable time source (no sleeping in TTL tests)
- cache: ProxyCacheStore bound to the fake clock
- upstream: fake CDN built on httpx.MockTransport
- app / client: in-process ASGI app and HTTP client
"""

import sys
from pathlib import Path

import httpx
import pytest

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from cdn_proxy.cache_manager import ProxyCacheStore
from cdn_proxy.config import ProxyConfig
from cdn_proxy.fetcher import UpstreamFetcher
from cdn_proxy.main import create_app


JQUERY_URL = "https://cdn.jsdelivr.net/npm/jquery@3.6.0/dist/jquery.min.js"
JQUERY_BODY = b"/*! jQuery v3.6.0 | (c) OpenJS Foundation */!function(e,t){}(this);"


# ============================================
# Time
# ============================================

class FakeClock:
    """Manually advanced clock returning Unix-style seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return ProxyConfig(cache_ttl_seconds=3600, sweep_interval_seconds=600)


@pytest.fixture
def cache(clock, config):
    return ProxyCacheStore(ttl_seconds=config.cache_ttl_seconds, clock=clock)


# ============================================
# Fake upstream CDN
# ============================================

class FakeCDN:
    """
    Routes requests to canned responses and records what it received.

    Usage:
        upstream.add(url, body, status=200, headers={...})
        upstream.fail_with(httpx.ConnectError("refused"))
    """

    def __init__(self):
        self.responses = {}
        self.requests = []
        self.error = None

    def add(self, url, body=b"", status=200, headers=None):
        self.responses[url] = (status, body, headers or {})

    def fail_with(self, error):
        self.error = error

    def hits(self, url):
        return sum(1 for r in self.requests if str(r.url) == url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        status, body, headers = self.responses.get(
            str(request.url), (404, b"Not Found", {"Content-Type": "text/plain"})
        )
        return httpx.Response(status, headers=headers, stream=httpx.ByteStream(body))


@pytest.fixture
def upstream():
    cdn = FakeCDN()
    cdn.add(
        JQUERY_URL,
        JQUERY_BODY,
        headers={"Content-Type": "application/javascript; charset=utf-8"},
    )
    return cdn


@pytest.fixture
def fetcher(upstream):
    return UpstreamFetcher(transport=httpx.MockTransport(upstream.handler))


# ============================================
# Application
# ============================================

@pytest.fixture
def app(config, cache, fetcher):
    return create_app(config, store=cache, fetcher=fetcher)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
