import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog.core.config import settings
from catalog.db.session import close_db, init_db
from catalog.services.klara_client import KlaraClient
from catalog.utils.caching import TTLCache, run_periodic_sweep
from catalog.utils.logging import get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger().bind(startup=True)
    # Startup
    await init_db()
    cache = TTLCache(default_ttl=settings.KLARA_CACHE_TTL_SECONDS)
    app.state.klara_cache = cache
    app.state.klara_client = KlaraClient.from_settings(settings, cache)
    sweeper = asyncio.create_task(
        run_periodic_sweep(cache, settings.KLARA_CACHE_SWEEP_INTERVAL_SECONDS)
    )
    logger.info(
        f"Startup: {app.title} v{app.version} starting "
        f"(mock={settings.USE_MOCK_KLARA}, api_key_valid={settings.klara_api_key_valid})"
    )
    if not settings.USE_MOCK_KLARA and not settings.klara_api_key_valid:
        logger.warning("KLARA_API_KEY not configured, the catalog will be empty")
    yield
    # Shutdown
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await close_db()
    logger.info("Shutdown: App shutting down...")
