"""Configuration management for the dev server."""
import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


DEFAULT_ASSET_EXTENSIONS = [
    ".js", ".mjs", ".cjs", ".map", ".css",
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico", ".webp", ".avif", ".bmp",
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
    ".json", ".wasm", ".txt", ".xml",
    ".mp3", ".mp4", ".webm", ".ogg", ".wav",
]

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ServeConfig(BaseSettings):
    """Process-wide server settings. Immutable once built."""
    root: Path = Path(".")
    host: str = "127.0.0.1"
    port: int = 8080
    spa: bool = False
    watch: bool = False

    index_file: str = "index.html"
    reload_path: str = "/reload"
    debounce_ms: int = 200
    send_timeout: float = 5.0  # seconds
    channel_queue_size: int = 8

    # Missing paths with these extensions are 404s even in SPA mode
    spa_asset_extensions: List[str] = DEFAULT_ASSET_EXTENSIONS

    log_level: str = "INFO"

    class Config:
        env_prefix = "WEBSERVE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True

    @field_validator("root")
    @classmethod
    def canonicalize_root(cls, value: Path) -> Path:
        root = Path(os.path.realpath(value.expanduser()))
        if not root.is_dir():
            raise ValueError(f"Not a directory: {value}")
        return root

    @field_validator("spa_asset_extensions")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @field_validator("port")
    @classmethod
    def check_port(cls, value: int) -> int:
        if not 0 <= value <= 65535:
            raise ValueError(f"Port out of range: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


@lru_cache()
def get_settings() -> ServeConfig:
    """Get cached settings instance (environment only)."""
    return ServeConfig()
