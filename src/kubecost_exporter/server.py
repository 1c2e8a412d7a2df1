"""HTTP endpoint exposing the allocation metrics to Prometheus scrapers."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Tuple
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

logger = logging.getLogger(__name__)

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def metrics_app(registry: CollectorRegistry, path: str) -> WSGIApp:
    """WSGI app serving ``registry`` at ``path`` and 404 everywhere else."""
    exposition = make_wsgi_app(registry)
    expected = "/" + path.strip("/")

    def app(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        request_path = "/" + environ.get("PATH_INFO", "").strip("/")
        if request_path != expected:
            start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
            return [b"404 page not found\n"]
        return exposition(environ, start_response)

    return app


def serve_metrics(
    registry: CollectorRegistry, port: int, path: str, addr: str = "0.0.0.0"
) -> Tuple[Any, threading.Thread]:
    """Start the metrics endpoint in a daemon thread. Returns the server and its thread."""
    httpd = make_server(
        addr, port, metrics_app(registry, path), ThreadingWSGIServer, handler_class=_QuietHandler
    )
    thread = threading.Thread(target=httpd.serve_forever, name="metrics-server", daemon=True)
    thread.start()
    logger.info(f"Serving metrics on :{port}{path}")
    return httpd, thread
