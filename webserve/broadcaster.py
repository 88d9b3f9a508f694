"""Fan-out of reload signals to connected browsers."""
import asyncio
import logging
import uuid
from typing import Dict, List, Optional

from .metrics import ACTIVE_RELOAD_CHANNELS, RELOAD_DELIVERIES

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"


class ReloadChannel:
    """Outbound side of one browser's live-reload connection."""

    def __init__(self, queue_size: int = 8):
        self.id = uuid.uuid4().hex
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, message: str) -> bool:
        """Queue a message without waiting. False means delivery failed."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def next_message(self) -> Optional[str]:
        """Wait for the next message; None once the channel is closed."""
        if self._closed and self._queue.empty():
            return None
        message = await self._queue.get()
        return message

    def close(self):
        if self._closed:
            return
        self._closed = True
        # Wake a pump blocked in next_message
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ReloadChannel {self.id[:8]} {state}>"


class ReloadBroadcaster:
    """Registry of open reload channels behind a single lock."""

    def __init__(self, queue_size: int = 8):
        self.queue_size = queue_size
        self._channels: Dict[str, ReloadChannel] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._channels)

    async def join(self) -> ReloadChannel:
        """Register a new channel for one browser connection."""
        channel = ReloadChannel(self.queue_size)
        async with self._lock:
            self._channels[channel.id] = channel
            ACTIVE_RELOAD_CHANNELS.set(len(self._channels))
        logger.info(f"Reload channel {channel.id[:8]} joined. Active: {len(self._channels)}")
        return channel

    async def leave(self, channel_id: str) -> bool:
        """Deregister a channel. Safe to call more than once."""
        async with self._lock:
            channel = self._channels.pop(channel_id, None)
            ACTIVE_RELOAD_CHANNELS.set(len(self._channels))
        if channel is None:
            return False
        channel.close()
        logger.info(f"Reload channel {channel_id[:8]} left. Active: {len(self._channels)}")
        return True

    async def broadcast(self, message: str = RELOAD_MESSAGE) -> int:
        """Deliver ``message`` to every registered channel.

        Returns the number of channels that accepted it. Channels that
        cannot take the message are removed afterwards.
        """
        async with self._lock:
            snapshot: List[ReloadChannel] = list(self._channels.values())

        delivered = 0
        failed = []
        for channel in snapshot:
            if channel.offer(message):
                delivered += 1
            else:
                failed.append(channel.id)

        RELOAD_DELIVERIES.labels(status="success").inc(delivered)
        if failed:
            RELOAD_DELIVERIES.labels(status="failed").inc(len(failed))
            logger.warning(f"Dropping {len(failed)} unresponsive reload channel(s)")
            for channel_id in failed:
                await self.leave(channel_id)

        logger.debug(f"Broadcast {message!r} to {delivered} channel(s)")
        return delivered

    async def close_all(self):
        """Close every channel, used on shutdown."""
        async with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()
            ACTIVE_RELOAD_CHANNELS.set(0)
        for channel in channels:
            channel.close()
        if channels:
            logger.info(f"Closed {len(channels)} reload channel(s)")
