"""Local HTTP control interface for a Sora connection."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import re
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Protocol

from .util import (
    SERVER_NAME,
    HttpRequest,
    HttpResponse,
    IceConnectionState,
    bad_request,
    ice_connection_state_to_string,
    server_error,
)

logger = logging.getLogger(__name__)

_PROTOCOL_RE = re.compile(r"HTTP/(\d)\.(\d)")


@dataclass
class SoraClientConfig:
    """Settings for a connection to Sora."""

    signaling_urls: list[str] = field(default_factory=list)
    channel_id: str = ""
    insecure: bool = False
    video: bool = True
    audio: bool = True
    video_codec_type: str = ""
    audio_codec_type: str = ""
    video_bit_rate: int = 0
    audio_bit_rate: int = 0
    metadata: Any = None
    role: str = "sendonly"
    multistream: bool = False
    spotlight: bool = False
    spotlight_number: int = 0
    port: int = -1
    simulcast: bool = False
    data_channel_signaling: bool | None = None
    data_channel_signaling_timeout: int = 180
    ignore_disconnect_websocket: bool | None = None
    disconnect_wait_timeout: int = 5


class RTCConnection(Protocol):
    def is_audio_enabled(self) -> bool: ...

    def is_video_enabled(self) -> bool: ...

    def set_audio_enabled(self, enabled: bool) -> None: ...

    def set_video_enabled(self, enabled: bool) -> None: ...


class SoraControl(Protocol):
    """The part of a Sora client that the HTTP interface drives."""

    def connect(self) -> None: ...

    def close(self, on_close: Callable[[], None]) -> None: ...

    def get_rtc_connection_state(self) -> IceConnectionState: ...

    def get_rtc_connection(self) -> RTCConnection | None: ...


def create_ok_with_json(req: HttpRequest, message: Any) -> HttpResponse:
    """A 200 HTTP/1.1 response carrying ``message`` as compact JSON."""
    res = HttpResponse(status=HTTPStatus.OK, version=11)
    res.set_header("Server", SERVER_NAME)
    res.set_header("Content-Type", "application/json")
    res.keep_alive = req.keep_alive
    res.body = json.dumps(message, separators=(",", ":"))
    res.prepare_payload()
    return res


def _mute_state(connection: RTCConnection) -> dict[str, bool]:
    return {
        "audio": not connection.is_audio_enabled(),
        "video": not connection.is_video_enabled(),
    }


def _as_bool(document: Any, key: str) -> bool:
    if not isinstance(document, dict) or key not in document:
        raise ValueError(f"missing key {key!r}")
    value = document[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key!r} is not a boolean")
    return value


class SoraSession:
    """Answers control requests arriving on one HTTP connection."""

    def __init__(self, client: SoraControl) -> None:
        self._client = client

    def handle(self, request: HttpRequest) -> HttpResponse:
        """Response to one request; raises ValueError for a malformed /mute body."""
        if request.method == "GET":
            return self._handle_get(request)
        if request.method == "POST":
            return self._handle_post(request)
        return bad_request(request, "Invalid Method")

    def _handle_get(self, request: HttpRequest) -> HttpResponse:
        if request.target == "/connect/status":
            state = ice_connection_state_to_string(self._client.get_rtc_connection_state())
            return create_ok_with_json(request, {"state": state})
        if request.target == "/mute/status":
            connection = self._client.get_rtc_connection()
            if connection is None:
                return server_error(request, "Invalid RTC Connection")
            return create_ok_with_json(request, _mute_state(connection))
        return bad_request(request, "Invalid Request")

    def _handle_post(self, request: HttpRequest) -> HttpResponse:
        if request.target == "/connect":
            self._client.connect()
            return create_ok_with_json(request, {"result": True})
        if request.target == "/close":
            self._client.close(lambda: None)
            return create_ok_with_json(request, {"result": True})
        if request.target == "/mute":
            try:
                document = json.loads(request.body)
            except ValueError:
                return bad_request(request, "Invalid JSON")
            connection = self._client.get_rtc_connection()
            if connection is None:
                return server_error(request, "Create RTC Connection Failed")
            connection.set_audio_enabled(not _as_bool(document, "audio"))
            connection.set_video_enabled(not _as_bool(document, "video"))
            return create_ok_with_json(request, _mute_state(connection))
        return bad_request(request, "Invalid Request")


async def _read_request(reader: asyncio.StreamReader) -> HttpRequest | None:
    """Next request on the stream, or None at end of stream."""
    line = await reader.readline()
    if not line:
        return None
    parts = line.decode("latin-1").rstrip("\r\n").split(" ")
    if len(parts) != 3:
        raise ValueError("malformed request line")
    method, target, protocol = parts
    match = _PROTOCOL_RE.fullmatch(protocol)
    if match is None:
        raise ValueError(f"unsupported protocol {protocol!r}")
    version = int(match.group(1)) * 10 + int(match.group(2))

    headers: dict[str, str] = {}
    while True:
        raw = await reader.readline()
        if not raw:
            raise ValueError("truncated headers")
        header = raw.decode("latin-1").rstrip("\r\n")
        if not header:
            break
        name, sep, value = header.partition(":")
        if not sep:
            raise ValueError("malformed header")
        headers[name.strip()] = value.strip()

    length_text = next(
        (value for name, value in headers.items() if name.lower() == "content-length"), "0"
    )
    try:
        length = int(length_text)
    except ValueError:
        raise ValueError("bad Content-Length") from None
    if length < 0:
        raise ValueError("bad Content-Length")
    body = await reader.readexactly(length) if length else b""
    return HttpRequest(
        method=method,
        target=target,
        version=version,
        headers=headers,
        body=body.decode("utf-8", errors="replace"),
    )


class SoraServer:
    """Accepts HTTP connections and serves control requests for ``client``."""

    def __init__(self, host: str, port: int, client: SoraControl) -> None:
        self._host = host
        self._port = port
        self._client = client
        self._server: asyncio.base_events.Server | None = None

    @property
    def port(self) -> int:
        """Port actually listened on; differs from the requested one when that was 0."""
        if self._server is None or not self._server.sockets:
            return self._port
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self._serve, self._host, self._port, reuse_address=True
        )

    async def close(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None

    async def __aenter__(self) -> "SoraServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        session = SoraSession(self._client)
        try:
            while True:
                try:
                    request = await _read_request(reader)
                except (ValueError, asyncio.IncompleteReadError, asyncio.LimitOverrunError) as exc:
                    logger.error("read: %s", exc)
                    break
                if request is None:
                    break
                try:
                    response = session.handle(request)
                except ValueError as exc:
                    logger.error("handle: %s", exc)
                    break
                writer.write(response.serialize())
                await writer.drain()
                if response.need_eof:
                    break
        except (ConnectionError, OSError) as exc:
            logger.error("write: %s", exc)
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()