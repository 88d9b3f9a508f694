"""Routes package."""
from .files import router as files_router
from .internal import router as internal_router
from .reload import build_router as build_reload_router

__all__ = [
    "files_router",
    "internal_router",
    "build_reload_router",
]
