"""FastAPI app serving the content cache and refresh status."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from apps.refresher.cache import ensure_cache_dir
from apps.refresher.cycle import RefreshCycle
from apps.refresher.scheduler import RefreshScheduler, create_client
from apps.refresher.state import LastUpdate
from utils.config import Settings, settings as default_settings
from utils.schemas import StatusResponse

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    state: Optional[LastUpdate] = None,
    start_refresher: bool = True,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings, defaults to the global instance
        state: LastUpdate cell shared with the refresh cycle
        start_refresher: If False, the lifespan does not schedule refreshes

    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings
    state = state or LastUpdate()
    cache_dir = ensure_cache_dir(settings.CACHE_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not start_refresher:
            yield
            return

        async with create_client(settings) as client:
            cycle = RefreshCycle(client, state, settings)
            scheduler = RefreshScheduler(cycle, settings)
            scheduler.start()
            app.state.scheduler = scheduler
            try:
                yield
            finally:
                scheduler.shutdown()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.last_update = state

    @app.get("/status", response_model=StatusResponse)
    async def status() -> StatusResponse:
        """Time of the last refresh cycle attempt."""
        return StatusResponse(lastUpdate=state.render())

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.mount("/cache", StaticFiles(directory=str(cache_dir)), name="cache")

    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        # Mounted last so it does not shadow the routes above
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.warning("Static directory not found, front-end not served: %s", str(static_dir))

    return app
