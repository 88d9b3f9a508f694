"""Static file routes: files, directory listings and SPA fallback."""
import logging
import mimetypes
import os
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import FileResponse, HTMLResponse
from starlette.concurrency import run_in_threadpool

from ..config import ServeConfig
from ..injector import inject
from ..listing import render_listing
from ..metrics import HTTP_REQUESTS
from ..resolver import resolve
from ..schemas import ListDirectory, ServeFile, SpaFallback

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Files"])

# Entries that disappear between resolving and reading are a 404
_GONE = (FileNotFoundError, NotADirectoryError, IsADirectoryError)


def is_html(path: Path) -> bool:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type == "text/html"


def _html(body: bytes, config: ServeConfig) -> HTMLResponse:
    if config.watch:
        body = inject(body, config.reload_path)
    return HTMLResponse(content=body)


async def _send_listing(decision: ListDirectory, url_path: str, config: ServeConfig) -> Response:
    try:
        listing = await run_in_threadpool(render_listing, decision.path, url_path)
    except _GONE:
        raise HTTPException(status_code=404, detail="Not Found")
    except OSError as e:
        logger.error(f"Cannot list {decision.path}: {e}")
        raise HTTPException(status_code=500, detail="Cannot read directory")
    return _html(listing.encode("utf-8"), config)


async def _send_file(path: Path, config: ServeConfig) -> Response:
    try:
        if config.watch and is_html(path):
            body = await run_in_threadpool(path.read_bytes)
            return _html(body, config)
        stat_result = await run_in_threadpool(os.stat, path)
    except _GONE:
        raise HTTPException(status_code=404, detail="Not Found")
    except OSError as e:
        logger.error(f"Cannot read {path}: {e}")
        raise HTTPException(status_code=500, detail="Cannot read file")
    return FileResponse(path, stat_result=stat_result)


@router.api_route("/{path:path}", methods=["GET", "HEAD"], include_in_schema=False)
async def serve_path(path: str, request: Request):
    """Serve whatever the resolver decides for this path."""
    config: ServeConfig = request.app.state.config
    url_path = "/" + path
    decision = resolve(url_path, config)
    HTTP_REQUESTS.labels(decision=decision.kind).inc()

    if isinstance(decision, ServeFile):
        return await _send_file(decision.path, config)
    if isinstance(decision, SpaFallback):
        logger.debug(f"SPA fallback for {url_path}")
        return await _send_file(decision.index_path, config)
    if isinstance(decision, ListDirectory):
        return await _send_listing(decision, url_path, config)

    raise HTTPException(status_code=404, detail="Not Found")
