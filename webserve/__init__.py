"""Static file dev server with SPA fallback and live reload."""
__version__ = "1.0.0"

from .config import get_settings, ServeConfig
from .schemas import (
    ChangeEvent,
    ChangeKind,
    RouteDecision,
    ServeFile,
    ListDirectory,
    SpaFallback,
    NotFound,
)
from .resolver import resolve
from .injector import inject
from .broadcaster import ReloadBroadcaster, ReloadChannel
from .watcher import ChangeWatcher, Debouncer, WatcherSubscriptionError

__all__ = [
    "__version__",
    "get_settings",
    "ServeConfig",
    "ChangeEvent",
    "ChangeKind",
    "RouteDecision",
    "ServeFile",
    "ListDirectory",
    "SpaFallback",
    "NotFound",
    "resolve",
    "inject",
    "ReloadBroadcaster",
    "ReloadChannel",
    "ChangeWatcher",
    "Debouncer",
    "WatcherSubscriptionError",
]
