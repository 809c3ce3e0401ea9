"""
CDN Proxy Module

Forwards requests for static assets (scripts, stylesheets, fonts, images)
to a fixed allow-list of CDN hosts and caches successful responses.

Features:
- Exact-match domain allow-list
- In-memory cache with TTL and lazy expiry
- Periodic background eviction of expired entries
"""

from .config import ProxyConfig
from .cache_manager import CacheEntry, ProxyCacheStore
from .domain_validator import DomainValidator
from .fetcher import FetchSuccess, FetchTransportError, UpstreamFetcher
from .dispatcher import RequestDispatcher
from .sweeper import EvictionSweeper
from .main import create_app

__all__ = [
    "ProxyConfig",
    "CacheEntry",
    "ProxyCacheStore",
    "DomainValidator",
    "FetchSuccess",
    "FetchTransportError",
    "UpstreamFetcher",
    "RequestDispatcher",
    "EvictionSweeper",
    "create_app",
]
