"""
CDN Proxy Configuration

Static, process-wide settings. Built once at startup, never mutated.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_ALLOWED_DOMAINS: Tuple[str, ...] = (
    "cdn.jsdelivr.net",
    "cdnjs.cloudflare.com",
    "unpkg.com",
    "code.jquery.com",
    "stackpath.bootstrapcdn.com",
    "maxcdn.bootstrapcdn.com",
    "fonts.googleapis.com",
    "fonts.gstatic.com",
)

DEFAULT_USER_AGENT = "CDN-Proxy-Server/1.0"


@dataclass(frozen=True)
class ProxyConfig:
    """Configuration for the CDN proxy server."""
    # Listener settings
    host: str = "127.0.0.1"
    port: int = 3000

    # Cache settings
    cache_ttl_seconds: float = 3600.0       # 1 hour
    sweep_interval_seconds: float = 600.0   # 10 minutes

    # Upstream settings
    allowed_domains: Tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout_seconds: Optional[float] = None  # None = no timeout

    def __post_init__(self):
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be positive")
        # Accept any iterable of hostnames but always store a tuple
        object.__setattr__(self, "allowed_domains", tuple(self.allowed_domains))

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        """
        Build configuration from CDN_PROXY_* environment variables.

        Unset variables fall back to the defaults above.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out of range.
        """
        domains_env = os.getenv("CDN_PROXY_ALLOWED_DOMAINS")
        if domains_env:
            allowed_domains = tuple(
                d.strip() for d in domains_env.split(",") if d.strip()
            )
        else:
            allowed_domains = DEFAULT_ALLOWED_DOMAINS

        timeout_env = os.getenv("CDN_PROXY_FETCH_TIMEOUT_SECONDS")

        return cls(
            host=os.getenv("CDN_PROXY_HOST", "127.0.0.1"),
            port=int(os.getenv("CDN_PROXY_PORT", "3000")),
            cache_ttl_seconds=float(os.getenv("CDN_PROXY_CACHE_TTL_SECONDS", "3600")),
            sweep_interval_seconds=float(os.getenv("CDN_PROXY_SWEEP_INTERVAL_SECONDS", "600")),
            allowed_domains=allowed_domains,
            user_agent=os.getenv("CDN_PROXY_USER_AGENT", DEFAULT_USER_AGENT),
            fetch_timeout_seconds=float(timeout_env) if timeout_env else None,
        )
