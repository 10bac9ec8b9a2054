"""
Local listener for the OAuth2 redirect.

The listener binds the loopback address registered as the Withings redirect
URI, waits for the one GET carrying the authorization code, then closes.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlparse

from withings_client.utils.error_handling import AuthorizationDenied, ListenerBindFailed

logger = logging.getLogger(__name__)

RESPONSE_BODY = b"Please return to the terminal."
NOT_FOUND_BODY = b"Not found."


@dataclass(frozen=True)
class CallbackResult:
    """Query parameters captured from the redirect."""

    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_path(cls, path: str) -> "CallbackResult":
        params = parse_qs(urlparse(path).query)

        def first(name: str) -> Optional[str]:
            values = params.get(name)
            return values[0] if values else None

        return cls(code=first("code"), state=first("state"), error=first("error"))

    @property
    def is_redirect(self) -> bool:
        """True when the request carries an OAuth2 result (code or error)."""
        return self.code is not None or self.error is not None


class _RedirectHandler(BaseHTTPRequestHandler):
    """Captures the first GET carrying an OAuth2 result on the owning server."""

    server: "_CallbackServer"

    def do_GET(self) -> None:  # noqa: N802
        result = CallbackResult.from_path(self.path)
        if not result.is_redirect:
            # Browsers follow up with requests such as /favicon.ico
            self._respond(404, NOT_FOUND_BODY)
            return
        if self.server.result is None:
            self.server.result = result
        self._respond(200, RESPONSE_BODY)

    def _respond(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.debug("callback listener: " + format, *args)


class _CallbackServer(HTTPServer):
    result: Optional[CallbackResult] = None
    timed_out: bool = False

    def handle_timeout(self) -> None:
        self.timed_out = True


class CallbackListener:
    """
    Scoped one-shot HTTP listener for the authorization redirect.

    Usage:
        with CallbackListener("127.0.0.1", 8888) as listener:
            result = listener.wait_for_redirect()

    The socket is bound on enter and always closed on exit. With the default
    ``timeout=None`` the wait blocks until the redirect arrives.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8888, timeout: Optional[float] = None) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._server: Optional[_CallbackServer] = None

    def __enter__(self) -> "CallbackListener":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    @property
    def is_open(self) -> bool:
        return self._server is not None

    @property
    def server_address(self) -> Tuple[str, int]:
        """Actual bound address; useful when port 0 was requested."""
        if self._server is None:
            raise RuntimeError("Listener is not open")
        host, port = self._server.server_address[:2]
        return host, port

    def open(self) -> None:
        """Bind the listening socket."""
        if self._server is not None:
            return
        try:
            self._server = _CallbackServer((self.host, self.port), _RedirectHandler)
        except OSError as exc:
            logger.error(f"Failed to bind OAuth callback listener on {self.host}:{self.port}: {exc}")
            raise ListenerBindFailed(self.host, self.port, str(exc)) from exc
        self._server.timeout = self.timeout
        logger.info(f"Listening on {self.host}:{self.server_address[1]} for the OAuth2 redirect")

    def close(self) -> None:
        """Close the listening socket."""
        if self._server is not None:
            self._server.server_close()
            self._server = None

    def wait_for_redirect(self) -> CallbackResult:
        """
        Block until the redirect arrives and return its query parameters.

        Returns:
            CallbackResult: code, state and error captured from the redirect

        Raises:
            AuthorizationDenied: If a timeout was set and no redirect arrived in time
        """
        self.open()
        server = self._server
        server.result = None
        server.timed_out = False
        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        while server.result is None:
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise AuthorizationDenied("Timed out waiting for the OAuth2 redirect")
                server.timeout = remaining
            # Returns after one request, or after server.timeout with no request
            server.handle_request()
            if server.result is None and server.timed_out:
                raise AuthorizationDenied("Timed out waiting for the OAuth2 redirect")
        logger.debug("Received OAuth2 redirect")
        return server.result
