"""WebSocket endpoint that pushes reload signals to browsers."""
import logging

import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..broadcaster import ReloadBroadcaster, ReloadChannel

logger = logging.getLogger(__name__)

# Errors a send can hit once the browser is gone
_SEND_ERRORS = (WebSocketDisconnect, OSError, RuntimeError)


async def _send_loop(websocket: WebSocket, channel: ReloadChannel, send_timeout: float):
    """Forward queued messages until the channel closes or a send fails."""
    while True:
        message = await channel.next_message()
        if message is None:
            return
        with anyio.fail_after(send_timeout):
            await websocket.send_text(message)


async def _receive_loop(websocket: WebSocket):
    """Drain client messages; returns when the browser disconnects."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def pump(websocket: WebSocket, channel: ReloadChannel, send_timeout: float) -> bool:
    """Run one channel until either direction finishes.

    Returns True when the server side ended it (channel closed, send
    timed out or failed), False when the browser went away.
    """
    server_side_close = False

    async with anyio.create_task_group() as tg:
        async def send():
            nonlocal server_side_close
            try:
                await _send_loop(websocket, channel, send_timeout)
            except TimeoutError:
                logger.warning(f"Reload channel {channel.id[:8]} timed out on send")
            except _SEND_ERRORS as e:
                logger.warning(f"Reload channel {channel.id[:8]} failed: {e}")
            server_side_close = True
            tg.cancel_scope.cancel()

        async def receive():
            await _receive_loop(websocket)
            tg.cancel_scope.cancel()

        tg.start_soon(send)
        tg.start_soon(receive)

    return server_side_close


async def reload_endpoint(websocket: WebSocket):
    """Live-reload channel; the server only ever sends ``reload``."""
    config = websocket.app.state.config
    broadcaster: ReloadBroadcaster = websocket.app.state.broadcaster

    await websocket.accept()
    if not config.watch:
        await websocket.close(code=1000)
        return

    channel = await broadcaster.join()
    try:
        server_side_close = await pump(websocket, channel, config.send_timeout)
    finally:
        # Runs on cancellation too, so membership never outlives the socket
        with anyio.CancelScope(shield=True):
            await broadcaster.leave(channel.id)

    if server_side_close:
        try:
            await websocket.close(code=1001)
        except _SEND_ERRORS:
            # Socket already gone
            pass


def build_router(reload_path: str) -> APIRouter:
    """Router with the reload endpoint mounted at ``reload_path``."""
    reload_router = APIRouter(tags=["Live Reload"])
    reload_router.add_api_websocket_route(reload_path, reload_endpoint)
    return reload_router
