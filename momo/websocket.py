"""A WebSocket endpoint used the same way as a TLS client, plain client or server."""

from __future__ import annotations

import asyncio
import logging
import ssl as _ssl
from typing import Any, NamedTuple
from urllib.parse import urlsplit

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000


class WebsocketError(Exception):
    """A WebSocket operation failed."""


class _URLParts(NamedTuple):
    scheme: str
    host: str
    port: str
    path_query_fragment: str


def parse_websocket_url(url: str, ssl: bool) -> _URLParts:
    """Split a ws:// or wss:// URL, checking that its scheme matches ``ssl``."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise WebsocketError(f"invalid URL: {url!r}") from exc
    if not parts.hostname:
        raise WebsocketError(f"invalid URL: {url!r}")
    if parts.scheme not in ("ws", "wss"):
        raise WebsocketError(f"unsupported scheme: {parts.scheme!r}")
    if ssl != (parts.scheme == "wss"):
        raise WebsocketError(
            f"scheme {parts.scheme!r} does not match the {'TLS' if ssl else 'plain'} socket"
        )
    port_text = str(port) if port is not None else ("443" if ssl else "80")
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query
    if parts.fragment:
        target += "#" + parts.fragment
    return _URLParts(parts.scheme, parts.hostname, port_text, target)


def _create_ssl_context(insecure: bool) -> _ssl.SSLContext:
    context = _ssl.SSLContext(_ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = _ssl.TLSVersion.TLSv1_2
    context.maximum_version = _ssl.TLSVersion.TLSv1_2
    if insecure:
        context.check_hostname = False
        context.verify_mode = _ssl.CERT_NONE
    else:
        context.load_default_certs()
    return context


class Websocket:
    """Text-message WebSocket; writes may be issued without awaiting earlier ones."""

    def __init__(self, ssl: bool = False, insecure: bool = False) -> None:
        self._ssl = ssl
        self._insecure = insecure
        self._connection: Any = None
        self._write_lock = asyncio.Lock()

    @property
    def is_ssl(self) -> bool:
        return self._ssl

    @property
    def connection(self) -> Any:
        return self._connection

    async def connect(self, url: str) -> None:
        """Establish a client connection to ``url``."""
        parse_websocket_url(url, self._ssl)
        options: dict[str, Any] = {}
        if self._ssl:
            options["ssl"] = _create_ssl_context(self._insecure)
        try:
            self._connection = await websockets.connect(url, **options)
        except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
            raise WebsocketError(f"connect to {url} failed: {exc}") from exc

    def attach(self, connection: Any) -> None:
        """Use an already accepted server-side connection."""
        self._connection = connection

    def _require_connection(self) -> Any:
        if self._connection is None:
            raise WebsocketError("not connected")
        return self._connection

    async def read(self) -> str:
        """Receive the next message as text."""
        connection = self._require_connection()
        try:
            message = await connection.recv()
        except ConnectionClosed as exc:
            logger.error("read failed: %s", exc)
            raise WebsocketError(f"read failed: {exc}") from exc
        if isinstance(message, bytes):
            return message.decode("utf-8", errors="replace")
        return message

    async def write_text(self, text: str) -> int:
        """Send one text message; returns the number of bytes written."""
        connection = self._require_connection()
        async with self._write_lock:
            logger.debug("write_text: %s", text)
            try:
                await connection.send(text)
            except ConnectionClosed as exc:
                logger.error("write failed: %s", exc)
                raise WebsocketError(f"write failed: {exc}") from exc
        return len(text.encode("utf-8"))

    async def close(self) -> None:
        """Close the connection with the normal closure code."""
        connection = self._require_connection()
        try:
            await connection.close(code=NORMAL_CLOSURE)
        except (OSError, WebSocketException) as exc:
            raise WebsocketError(f"close failed: {exc}") from exc