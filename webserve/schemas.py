"""Pydantic schemas shared across the server."""
from enum import Enum
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, Field


class ChangeKind(str, Enum):
    """Kinds of filesystem mutation."""
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"


class ChangeEvent(BaseModel):
    """A single filesystem notification under the served root."""
    path: Path = Field(..., description="Absolute path of the affected entry")
    kind: ChangeKind

    class Config:
        frozen = True


# ============================================
# Route decisions
# ============================================

class ServeFile(BaseModel):
    kind: Literal["file"] = "file"
    path: Path


class ListDirectory(BaseModel):
    kind: Literal["listing"] = "listing"
    path: Path


class SpaFallback(BaseModel):
    kind: Literal["spa"] = "spa"
    index_path: Path


class NotFound(BaseModel):
    kind: Literal["not_found"] = "not_found"
    reason: str = "missing"


RouteDecision = Union[ServeFile, ListDirectory, SpaFallback, NotFound]


class HealthResponse(BaseModel):
    status: str = "healthy"
    root: str
    spa: bool
    watch: bool
    watching: bool
    reload_channels: int
    timestamp: str
