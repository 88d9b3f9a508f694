"""Live-reload client script injection for HTML documents."""
import logging

logger = logging.getLogger(__name__)

SENTINEL = b"data-webserve-livereload"

RELOAD_SCRIPT_TEMPLATE = """<script data-webserve-livereload>
(function () {{
  var scheme = location.protocol === "https:" ? "wss://" : "ws://";
  var url = scheme + location.host + "{reload_path}";
  var delay = 500;
  function connect() {{
    var socket = new WebSocket(url);
    socket.onopen = function () {{ delay = 500; }};
    socket.onmessage = function () {{ location.reload(); }};
    socket.onclose = function () {{
      setTimeout(connect, delay);
      delay = Math.min(delay * 2, 5000);
    }};
  }}
  connect();
}})();
</script>
"""


def reload_script(reload_path: str = "/reload") -> bytes:
    """Render the client script for the given reload endpoint."""
    return RELOAD_SCRIPT_TEMPLATE.format(reload_path=reload_path).encode("utf-8")


def inject(document: bytes, reload_path: str = "/reload") -> bytes:
    """Insert the reload script before ``</body>``, or at the end.

    Documents that already carry the sentinel are returned untouched.
    """
    if SENTINEL in document:
        return document

    script = reload_script(reload_path)
    position = document.lower().rfind(b"</body>")
    if position == -1:
        logger.debug("No closing body tag, appending reload script")
        return document + script
    return document[:position] + script + document[position:]
