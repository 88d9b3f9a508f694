import os
from pathlib import Path

import pytest

from webserve.config import ServeConfig


@pytest.fixture
def make_config(tmp_path):
    """Build a ServeConfig rooted at tmp_path unless told otherwise."""
    def _make(root=None, **overrides):
        return ServeConfig(root=root or tmp_path, **overrides)
    return _make


@pytest.fixture
def site(tmp_path):
    """A small served tree, returned as its canonical path."""
    tmp_path = Path(os.path.realpath(tmp_path))
    (tmp_path / "index.html").write_text("<html><body><h1>Home</h1></body></html>")
    (tmp_path / "hello.txt").write_text("Hello, World!\n")
    (tmp_path / "app.css").write_text("body { color: red; }")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<html><body>Docs</body></html>")
    images = tmp_path / "images"
    images.mkdir()
    (images / "cat.png").write_bytes(b"\x89PNG\r\n")
    (images / "dog.png").write_bytes(b"\x89PNG\r\n")
    return tmp_path
