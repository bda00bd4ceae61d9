"""Local preview HTTP server.

The document root is swapped between complete build generations, and each
request snapshots the root once, so a response never mixes two builds.
"""

from __future__ import annotations

import json
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from src.common.logging import setup_logging

logger = setup_logging(module_name="sitegen.server")

LIVERELOAD_PATH = "/__livereload"
LIVERELOAD_INTERVAL_MS = 1000
LIVERELOAD_SNIPPET = """<script>
(function () {
  var current = null;
  function poll() {
    fetch("%(path)s", {cache: "no-store"})
      .then(function (r) { return r.json(); })
      .then(function (data) {
        if (current === null) { current = data.generation; }
        else if (data.generation !== current) { location.reload(); }
      })
      .catch(function () {})
      .then(function () { setTimeout(poll, %(interval)d); });
  }
  poll();
})();
</script>
""" % {"path": LIVERELOAD_PATH, "interval": LIVERELOAD_INTERVAL_MS}


def inject_livereload(html: bytes) -> bytes:
    """Insert the polling script before ``</body>`` (or append it)."""
    snippet = LIVERELOAD_SNIPPET.encode("utf-8")
    marker = html.lower().rfind(b"</body>")
    if marker == -1:
        return html + snippet
    return html[:marker] + snippet + html[marker:]


class PreviewRequestHandler(SimpleHTTPRequestHandler):
    """Serves files from the server's current build generation."""

    server: "PreviewServer"

    def __init__(self, request, client_address, server):
        super().__init__(request, client_address, server, directory=str(server.document_root))

    def do_GET(self):
        path = urlsplit(self.path).path
        if path == LIVERELOAD_PATH:
            return self._send_bytes(
                json.dumps({"generation": self.server.generation}).encode("utf-8"),
                "application/json",
            )
        if self.server.livereload:
            html = self._html_file(path)
            if html is not None:
                return self._send_bytes(inject_livereload(html.read_bytes()), "text/html; charset=utf-8")
        return super().do_GET()

    def _html_file(self, url_path: str) -> Optional[Path]:
        target = Path(self.translate_path(url_path))
        if target.is_dir():
            if not url_path.endswith("/"):
                # Let the base class issue the trailing-slash redirect
                return None
            target = target / "index.html"
        if target.suffix.lower() in (".html", ".htm") and target.is_file():
            return target
        return None

    def _send_bytes(self, body: bytes, content_type: str) -> None:
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class PreviewServer(ThreadingHTTPServer):
    """Threaded static server whose document root can be swapped atomically.

    Usage:
        server = PreviewServer(("127.0.0.1", 4000), root)
        server.start()
        server.set_root(new_root)
        server.stop()
    """

    daemon_threads = True

    def __init__(self, address: tuple[str, int], root: Path, livereload: bool = False):
        self._root_lock = threading.Lock()
        self._root = Path(root)
        self.generation = 1
        self.livereload = livereload
        self._thread: Optional[threading.Thread] = None
        super().__init__(address, PreviewRequestHandler)

    @property
    def document_root(self) -> Path:
        with self._root_lock:
            return self._root

    def set_root(self, root: Path) -> None:
        """Point subsequent requests at a freshly built generation."""
        with self._root_lock:
            self._root = Path(root)
            self.generation += 1
        logger.debug("Serving generation %d from %s", self.generation, root)

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        if host in ("0.0.0.0", "::"):
            host = "localhost"
        return f"http://{host}:{port}/"

    def start(self) -> None:
        self._thread = threading.Thread(target=self.serve_forever, name="preview-server", daemon=True)
        self._thread.start()
        logger.info("Serving at %s", self.url)

    def stop(self) -> None:
        self.shutdown()
        self.server_close()
        if self._thread is not None:
            self._thread.join()
