"""Dev server application - static files, SPA fallback and live reload."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .broadcaster import ReloadBroadcaster
from .config import ServeConfig, get_settings
from .metrics import RELOAD_TICKS, SERVICE_INFO
from .routes import build_reload_router, files_router, internal_router
from .watcher import ChangeWatcher, Debouncer, WatcherSubscriptionError

logger = logging.getLogger(__name__)


async def start_live_reload(app: FastAPI) -> Optional[asyncio.Task]:
    """Start the watcher and debouncer; returns the feeding task."""
    config: ServeConfig = app.state.config
    broadcaster: ReloadBroadcaster = app.state.broadcaster

    async def on_tick():
        RELOAD_TICKS.inc()
        delivered = await broadcaster.broadcast()
        logger.info(f"Change detected, reloading {delivered} browser(s)")

    watcher = ChangeWatcher(config.root)
    try:
        watcher.start()
    except WatcherSubscriptionError as e:
        # Static serving carries on without live reload
        logger.error(f"Live reload disabled: {e}")
        return None

    app.state.watcher = watcher
    app.state.debouncer = Debouncer(config.debounce_seconds, on_tick)
    return asyncio.create_task(watcher.run(app.state.debouncer))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config: ServeConfig = app.state.config

    SERVICE_INFO.info({
        'name': 'webserve',
        'version': __version__,
        'spa': str(config.spa).lower(),
        'watch': str(config.watch).lower(),
    })

    watch_task = None
    if config.watch:
        watch_task = await start_live_reload(app)

    logger.info(f"Serving {config.root} on http://{config.host}:{config.port}")

    yield

    # Cleanup
    if app.state.debouncer is not None:
        app.state.debouncer.cancel()
    if app.state.watcher is not None:
        await app.state.watcher.stop()
    if watch_task is not None:
        watch_task.cancel()
        await asyncio.gather(watch_task, return_exceptions=True)
    await app.state.broadcaster.close_all()
    logger.info("Server stopped")


def create_app(config: Optional[ServeConfig] = None) -> FastAPI:
    """Build the application for ``config`` (environment settings by default)."""
    config = config or get_settings()

    app = FastAPI(
        title="webserve",
        description="Static file server with SPA fallback and live reload",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.broadcaster = ReloadBroadcaster(config.channel_queue_size)
    app.state.watcher = None
    app.state.debouncer = None

    # The catch-all file route goes last
    app.include_router(internal_router)
    app.include_router(build_reload_router(config.reload_path))
    app.include_router(files_router)
    return app
