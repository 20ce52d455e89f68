"""HTTP hosting for the parsed episode catalog.

The catalog is built once before the server starts and is only ever read by
request handler threads, so handlers share it without locking.

Routes:
- ``GET /``: episode index
- ``GET /<id>``: episode detail page (answers with "No podcast found" for unknown ids)
"""

from __future__ import annotations

import http.server
import logging
import threading
from typing import Optional, Tuple
from urllib.parse import urlparse

from . import render
from .models import EpisodeCatalog

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class CatalogHTTPServer(http.server.ThreadingHTTPServer):
    """Threaded HTTP server that carries the published catalog."""

    daemon_threads = True

    def __init__(
        self,
        server_address: Tuple[str, int],
        catalog: EpisodeCatalog,
        site_title: str,
    ) -> None:
        self.catalog = catalog
        self.site_title = site_title
        super().__init__(server_address, FeedRequestHandler)


class FeedRequestHandler(http.server.BaseHTTPRequestHandler):
    """Serves the index and detail pages from the server's catalog."""

    server: CatalogHTTPServer

    def do_GET(self):
        path = urlparse(self.path).path
        if path == "/":
            self._send_html(render.render_index(self.server.catalog, self.server.site_title))
            return

        episode_id = _parse_episode_id(path)
        if episode_id is None:
            self.send_error(404, "Not found")
            return

        episode = self.server.catalog.get(episode_id)
        if episode is None:
            logger.debug("Request for unknown episode id %s", episode_id)
            self._send_html(render.render_not_found())
        else:
            self._send_html(render.render_episode(episode, self.server.site_title))

    def _send_html(self, body: str, status: int = 200) -> None:
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", HTML_CONTENT_TYPE)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        try:
            self.wfile.write(payload)
        except BrokenPipeError:
            # Client disconnected before the response was written
            logger.debug("Client disconnected while serving %s", self.path)

    def log_message(self, format, *args):
        """Route access log lines through the module logger."""
        logger.debug("%s - %s", self.address_string(), format % args)


def _parse_episode_id(path: str) -> Optional[int]:
    segment = path.strip("/")
    if not segment or "/" in segment or not segment.isdecimal():
        return None
    return int(segment)


class FeedServer:
    """Owns the HTTP server that publishes a catalog.

    Example:
        >>> server = FeedServer(catalog, host="127.0.0.1", port=0)
        >>> server.start()
        >>> print(server.base_url)
        >>> server.stop()
    """

    def __init__(
        self,
        catalog: EpisodeCatalog,
        host: str,
        port: int,
        site_title: str = "Podcast feed",
    ) -> None:
        self.catalog = catalog
        self.host = host
        self.port = port
        self.site_title = site_title
        self.httpd: Optional[CatalogHTTPServer] = None
        self.thread: Optional[threading.Thread] = None
        self._serving = False

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def _bind(self) -> CatalogHTTPServer:
        if self.httpd is None:
            self.httpd = CatalogHTTPServer((self.host, self.port), self.catalog, self.site_title)
            # Port 0 binds to a free port; report the real one
            self.port = self.httpd.server_address[1]
            logger.info("Serving %d episodes on %s", len(self.catalog), self.base_url)
        return self.httpd

    def start(self) -> None:
        """Serve in a background thread."""
        httpd = self._bind()
        self._serving = True
        self.thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        self.thread.start()

    def serve_forever(self) -> None:
        """Serve in the calling thread until interrupted or stopped."""
        httpd = self._bind()
        self._serving = True
        httpd.serve_forever()

    def stop(self) -> None:
        if self.httpd is None:
            return
        # shutdown() blocks until a serve loop acknowledges it
        if self._serving:
            self.httpd.shutdown()
        self.httpd.server_close()
        if self.thread is not None:
            self.thread.join(timeout=1.0)
        self.httpd = None
        self.thread = None
        self._serving = False
