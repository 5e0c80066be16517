"""
Deadhand HTTP listener.

Single read-only endpoint, GET /heartbeat?token=..., on stdlib http.server.
"""

from __future__ import annotations

import logging
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from deadhand import __version__
from deadhand.receiver import HeartbeatReceiver

logger = logging.getLogger(__name__)


class Handler(BaseHTTPRequestHandler):
    """HTTP request handler for the heartbeat endpoint."""

    server_version = f"deadhand/{__version__}"

    def log_message(self, format: str, *args) -> None:
        """Request lines carry the token; keep them out of the logs."""
        pass

    def _text(self, code: int, s: str) -> None:
        b = s.encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(b)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(b)

    def do_GET(self) -> None:
        parsed = urllib.parse.urlsplit(self.path)
        if parsed.path == "/status":
            return self._text(200, "deadhand ok\n")
        if parsed.path == "/heartbeat":
            return self._handle_heartbeat(parsed.query)
        return self._text(404, "not found\n")

    def _handle_heartbeat(self, query: str) -> None:
        params = urllib.parse.parse_qs(query, keep_blank_values=True)
        token = (params.get("token") or [None])[0]
        result = self.server.receiver.handle(token)
        return self._text(200 if result.ok else 403, result.message + "\n")


class DeadhandHTTP(ThreadingHTTPServer):
    """Threaded HTTP server with attached heartbeat receiver."""

    daemon_threads = True

    def __init__(self, addr: tuple, handler: type, receiver: HeartbeatReceiver) -> None:
        super().__init__(addr, handler)
        self.receiver = receiver
