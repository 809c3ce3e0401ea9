"""
CDN Proxy application factory and entry point.

Run with:
    python -m cdn_proxy
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .cache_manager import Clock, ProxyCacheStore
from .config import ProxyConfig
from .dispatcher import USAGE_EXAMPLES, RequestDispatcher
from .domain_validator import DomainValidator
from .exceptions import ProxyError
from .fetcher import UpstreamFetcher
from .routes_fastapi import build_router, proxy_error_handler
from .sweeper import EvictionSweeper

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[ProxyConfig] = None,
    store: Optional[ProxyCacheStore] = None,
    fetcher: Optional[UpstreamFetcher] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build a proxy app that owns its own cache, fetcher and sweeper.

    Args:
        config: Proxy settings (defaults to ProxyConfig())
        store: Cache store to use (a new one is created from config if omitted)
        fetcher: Upstream fetcher (a new httpx-backed one if omitted)
        clock: Time source for a newly created store
    """
    if config is None:
        config = ProxyConfig()
    # An empty store is falsy (it defines __len__)
    if store is None:
        store = ProxyCacheStore(ttl_seconds=config.cache_ttl_seconds, clock=clock)
    if fetcher is None:
        fetcher = UpstreamFetcher(
            user_agent=config.user_agent,
            timeout=config.fetch_timeout_seconds,
        )
    validator = DomainValidator(config.allowed_domains)
    dispatcher = RequestDispatcher(config, store, validator, fetcher)
    sweeper = EvictionSweeper(store, interval_seconds=config.sweep_interval_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await sweeper.start()
        try:
            yield
        finally:
            logger.info("[CdnProxy] Shutting down server...")
            await sweeper.stop()
            await fetcher.close()
            logger.info("[CdnProxy] Server closed")

    app = FastAPI(
        title="CDN Proxy Server",
        description="Caching proxy for allow-listed CDN assets",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.include_router(build_router(dispatcher))

    app.state.config = config
    app.state.cache = store
    app.state.fetcher = fetcher
    app.state.dispatcher = dispatcher
    app.state.sweeper = sweeper

    return app


def log_startup_banner(config: ProxyConfig) -> None:
    base = f"http://{config.host}:{config.port}"
    logger.info("=================================")
    logger.info("CDN Proxy Server is running!")
    logger.info(f"Server URL: {base}")
    logger.info("=================================")
    logger.info(f"Usage: {base}/?url=CDN_URL")
    logger.info(f"Example: {base}/?url={USAGE_EXAMPLES[0][0]}")
    logger.info("=================================")
    logger.info("Allowed CDN domains:")
    for domain in config.allowed_domains:
        logger.info(f"  - {domain}")
    logger.info("=================================")


def main():
    """Start the proxy with settings from the environment."""
    import uvicorn

    logging.basicConfig(
        level=os.getenv("CDN_PROXY_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = ProxyConfig.from_env()
    app = create_app(config)
    log_startup_banner(config)

    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
