"""Static HTTP server for previewing an application locally."""

from __future__ import annotations

import errno
import logging
import mimetypes
from functools import partial
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from .platform.errors import InputValidationError, StorageError

logger = logging.getLogger(__name__)


class PreviewHandler(BaseHTTPRequestHandler):
    """Serves files below ``docs_root``; GET only."""

    def __init__(self, *args: Any, docs_root: Path, **kwargs: Any) -> None:
        self.docs_root = docs_root
        super().__init__(*args, **kwargs)

    def _send_text(self, status: int, text: str) -> None:
        body = f"{text}\n".encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _resolve(self) -> Path | None:
        """Map the request path to a file, None when it is outside the root."""
        rel = unquote(urlparse(self.path).path).lstrip("/")
        target = (self.docs_root / rel).resolve()
        if not target.is_relative_to(self.docs_root):
            return None
        if target.is_dir():
            target = target / "index.html"
        return target

    def do_GET(self) -> None:
        target = self._resolve()
        if target is None or not target.exists():
            self._send_text(404, "404 Not Found")
            return

        try:
            content = target.read_bytes()
        except PermissionError:
            self._send_text(403, "403 Forbidden")
            return
        except OSError as e:
            self._send_text(500, str(e))
            return

        content_type, _ = mimetypes.guess_type(str(target))
        self.send_response(200)
        self.send_header("Content-Type", content_type or "application/octet-stream")
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def validate_preview(port: Any, docs_root: str | Path) -> tuple[int, Path]:
    """Check the port range and that ``docs_root`` holds an application.

    Returns:
        The port as an int and the resolved document root.
    """
    try:
        port_number = int(str(port).strip())
    except ValueError:
        raise InputValidationError("Port number should be in the range 1-65535.") from None
    if not 1 <= port_number <= 65535:
        raise InputValidationError("Port number should be in the range 1-65535.")

    root = Path(docs_root).resolve()
    if not root.is_dir():
        raise InputValidationError("Invalid path.")
    if not (root / "index.html").is_file():
        raise InputValidationError("Path doesn't contain index.html.")
    return port_number, root


def make_server(port: Any, docs_root: str | Path, host: str = "") -> ThreadingHTTPServer:
    """Validate the arguments and bind the preview server."""
    port_number, root = validate_preview(port, docs_root)
    try:
        return ThreadingHTTPServer((host, port_number), partial(PreviewHandler, docs_root=root))
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            raise StorageError(f"Port {port_number} is in use.") from e
        if e.errno == errno.EACCES:
            raise StorageError(
                f"Current User is not allowed to open port {port_number}."
            ) from e
        raise StorageError(str(e)) from e
