"""Maps request paths onto the served directory tree.

``resolve`` is the only entry point. It inspects filesystem metadata but
never reads file contents, so it can be tested without an HTTP layer.
"""
import logging
import os
import re
from pathlib import Path

from .config import ServeConfig
from .schemas import RouteDecision, ServeFile, ListDirectory, SpaFallback, NotFound

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[/\\]+")


def _split_segments(request_path: str):
    """Split a URL path into filesystem segments.

    Returns None when any segment could climb out of the root.
    """
    segments = []
    for segment in _SEPARATORS.split(request_path):
        if segment in ("", "."):
            continue
        if segment == ".." or "\x00" in segment:
            return None
        segments.append(segment)
    return segments


def _is_within(path: Path, root: Path) -> bool:
    # realpath follows symlinks, so a link pointing outside the tree is rejected too
    real = Path(os.path.realpath(path))
    return real == root or root in real.parents


def _spa_fallback(requested: Path, config: ServeConfig) -> RouteDecision:
    if requested.suffix.lower() in config.spa_asset_extensions:
        return NotFound(reason="missing asset")

    index_path = config.root / config.index_file
    if not index_path.is_file():
        return NotFound(reason="missing entry document")
    return SpaFallback(index_path=index_path)


def resolve(request_path: str, config: ServeConfig) -> RouteDecision:
    """Decide how a request path should be served."""
    segments = _split_segments(request_path)
    if segments is None:
        logger.debug(f"Rejected traversal attempt: {request_path!r}")
        return NotFound(reason="path escape")

    target = config.root.joinpath(*segments)
    try:
        if target.exists() and not _is_within(target, config.root):
            logger.debug(f"Rejected path outside root: {request_path!r}")
            return NotFound(reason="path escape")

        if target.is_file():
            return ServeFile(path=target)

        if target.is_dir():
            index_path = target / config.index_file
            if index_path.is_file() and _is_within(index_path, config.root):
                return ServeFile(path=index_path)
            if not config.spa:
                return ListDirectory(path=target)
    except (OSError, ValueError) as e:
        # Over-long names, permission errors and the like
        logger.debug(f"Could not stat {request_path!r}: {e}")
        return NotFound(reason="unreadable")

    if config.spa:
        return _spa_fallback(target, config)
    return NotFound()
