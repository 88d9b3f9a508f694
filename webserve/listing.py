"""HTML directory listings."""
import html
import logging
import os
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)


def _entry_names(path: Path):
    """Directory entries sorted with folders first, then by name."""
    entries = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir()
            except OSError:
                is_dir = False
            entries.append((not is_dir, entry.name.lower(), entry.name, is_dir))
    entries.sort()
    return [(name, is_dir) for _, _, name, is_dir in entries]


def render_listing(path: Path, url_path: str) -> str:
    """Render a listing of ``path`` as it appears at ``url_path``."""
    base = url_path if url_path.endswith("/") else url_path + "/"
    title = html.escape(base)

    # url_path arrives decoded; hrefs are absolute so a missing trailing slash is harmless
    quoted_base = quote(base)
    items = []
    if base != "/":
        parent = quoted_base.rstrip("/").rsplit("/", 1)[0] + "/"
        items.append(f'<li><a href="{html.escape(parent, quote=True)}">../</a></li>')
    for name, is_dir in _entry_names(path):
        label = name + "/" if is_dir else name
        href = quoted_base + quote(name, safe="") + ("/" if is_dir else "")
        items.append(
            f'<li><a href="{html.escape(href, quote=True)}">{html.escape(label)}</a></li>'
        )

    body = "\n".join(items)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Index of {title}</title>
    <style>
        body {{ font-family: 'Segoe UI', Arial, sans-serif; padding: 20px; }}
        ul {{ list-style: none; padding: 0; }}
        li a {{ text-decoration: none; font-size: 1.1em; display: block; padding: 2px 0; }}
    </style>
</head>
<body>
<h1>Index of {title}</h1>
<ul>
{body}
</ul>
</body>
</html>
"""
