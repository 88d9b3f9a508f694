"""Filesystem watching and debounced reload ticks."""
import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
)
from watchdog.observers import Observer

from .metrics import FS_EVENTS
from .schemas import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

# Opened / closed-without-write events are ignored: serving a file must not
# look like a change to it.
_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFIED,
    EVENT_TYPE_CLOSED: ChangeKind.MODIFIED,
    EVENT_TYPE_DELETED: ChangeKind.REMOVED,
    EVENT_TYPE_MOVED: ChangeKind.RENAMED,
}


class WatcherSubscriptionError(RuntimeError):
    """The filesystem subscription could not be established."""


class Debouncer:
    """Collapses bursts of events into a single tick.

    One pending timer per instance: every ``push`` restarts it, and
    ``on_tick`` runs once the timer expires without being pushed again.
    """

    def __init__(self, delay: float, on_tick: Callable[[], Awaitable[None]]):
        self.delay = delay
        self.on_tick = on_tick
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, event: Optional[ChangeEvent] = None):
        """Open or extend the debounce window. Must run on the event loop."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self._handle = None
        task = asyncio.ensure_future(self._run_tick())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_tick(self):
        try:
            await self.on_tick()
        except Exception as e:
            logger.error(f"Reload tick failed: {e}")


class _QueueingHandler(FileSystemEventHandler):
    """Hands watchdog events from the observer thread to the event loop."""

    def __init__(self, watcher: "ChangeWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent):
        change = self.watcher.normalize(event)
        if change is not None:
            self.watcher.submit(change)


class ChangeWatcher:
    """Recursive filesystem subscription rooted at the served directory.

    Subdirectories created after ``start`` are picked up automatically by
    the recursive watchdog observer.
    """

    def __init__(self, root: Path):
        self.root = Path(os.path.realpath(root))
        self._observer: Optional[Observer] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._consumed = False

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self):
        """Subscribe to changes under the root. Call from the event loop."""
        if self._observer is not None:
            raise RuntimeError("Watcher already started")
        self._loop = asyncio.get_running_loop()

        observer = Observer()
        try:
            observer.schedule(_QueueingHandler(self), str(self.root), recursive=True)
            observer.start()
        except OSError as e:
            raise WatcherSubscriptionError(f"Cannot watch {self.root}: {e}") from e

        self._observer = observer
        logger.info(f"Watching directory: {self.root}")

    async def stop(self):
        """Stop the subscription and end the event stream."""
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            await asyncio.to_thread(observer.join, 5)
            logger.info("Watcher stopped")
        self._queue.put_nowait(None)

    def normalize(self, event: FileSystemEvent) -> Optional[ChangeEvent]:
        """Convert a watchdog event, or None for events we ignore."""
        kind = _KIND_BY_EVENT_TYPE.get(event.event_type)
        if kind is None:
            return None

        path = Path(os.fsdecode(event.src_path))
        dest = getattr(event, "dest_path", "")
        if kind is ChangeKind.RENAMED and dest and self._contains(Path(os.fsdecode(dest))):
            path = Path(os.fsdecode(dest))
        if not self._contains(path):
            return None
        return ChangeEvent(path=path, kind=kind)

    def submit(self, change: ChangeEvent):
        """Thread-safe enqueue used by the observer thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, change)
        except RuntimeError:
            # Loop shut down between the check and the call
            pass

    async def events(self) -> AsyncIterator[ChangeEvent]:
        """Yield change events until the watcher is stopped.

        The stream can only be consumed once.
        """
        if self._consumed:
            raise RuntimeError("Change events can only be consumed once")
        self._consumed = True

        while True:
            change = await self._queue.get()
            if change is None:
                return
            FS_EVENTS.labels(kind=change.kind.value).inc()
            yield change

    async def run(self, debouncer: Debouncer):
        """Feed every change event into ``debouncer``."""
        async for change in self.events():
            logger.debug(f"{change.kind.value}: {change.path}")
            debouncer.push(change)

    def _contains(self, path: Path) -> bool:
        return path == self.root or self.root in path.parents
