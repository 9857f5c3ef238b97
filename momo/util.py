"""Random strings, ICE state names, MIME types and HTTP error responses."""

from __future__ import annotations

import enum
import secrets
import string
from dataclasses import dataclass, field
from http import HTTPStatus

SERVER_NAME = "momo"

_RANDOM_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"

_MIME_TYPES = {
    ".htm": "text/html",
    ".html": "text/html",
    ".php": "text/html",
    ".css": "text/css",
    ".txt": "text/plain",
    ".js": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".swf": "application/x-shockwave-flash",
    ".flv": "video/x-flv",
    ".png": "image/png",
    ".jpe": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".ico": "image/vnd.microsoft.icon",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".svg": "image/svg+xml",
    ".svgz": "image/svg+xml",
}


class IceConnectionState(enum.IntEnum):
    NEW = 0
    CHECKING = 1
    CONNECTED = 2
    COMPLETED = 3
    FAILED = 4
    DISCONNECTED = 5
    CLOSED = 6
    MAX = 7


_ICE_NAMES = {
    IceConnectionState.NEW: "new",
    IceConnectionState.CHECKING: "checking",
    IceConnectionState.CONNECTED: "connected",
    IceConnectionState.COMPLETED: "completed",
    IceConnectionState.FAILED: "failed",
    IceConnectionState.DISCONNECTED: "disconnected",
    IceConnectionState.CLOSED: "closed",
    IceConnectionState.MAX: "max",
}


def _find_header(headers: dict[str, str], name: str) -> str | None:
    lowered = name.lower()
    return next((key for key in headers if key.lower() == lowered), None)


def _connection_tokens(headers: dict[str, str]) -> set[str]:
    key = _find_header(headers, "Connection")
    if key is None:
        return set()
    return {token.strip().lower() for token in headers[key].split(",")}


def _is_keep_alive(version: int, headers: dict[str, str]) -> bool:
    tokens = _connection_tokens(headers)
    if version >= 11:
        return "close" not in tokens
    return "keep-alive" in tokens


@dataclass
class HttpRequest:
    """A received HTTP request; version 11 means HTTP/1.1."""

    method: str = "GET"
    target: str = "/"
    version: int = 11
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def keep_alive(self) -> bool:
        return _is_keep_alive(self.version, self.headers)


@dataclass
class HttpResponse:
    """An HTTP response with a text body."""

    status: int
    version: int = 11
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def reason(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return ""

    def set_header(self, name: str, value: str) -> None:
        key = _find_header(self.headers, name)
        if key is not None:
            del self.headers[key]
        self.headers[name] = value

    def get_header(self, name: str) -> str | None:
        key = _find_header(self.headers, name)
        return None if key is None else self.headers[key]

    @property
    def keep_alive(self) -> bool:
        return _is_keep_alive(self.version, self.headers)

    @keep_alive.setter
    def keep_alive(self, value: bool) -> None:
        key = _find_header(self.headers, "Connection")
        if key is not None:
            del self.headers[key]
        if self.version >= 11 and not value:
            self.headers["Connection"] = "close"
        elif self.version < 11 and value:
            self.headers["Connection"] = "keep-alive"

    @property
    def need_eof(self) -> bool:
        """True when the connection must be closed after this response."""
        return not self.keep_alive

    def prepare_payload(self) -> None:
        self.set_header("Content-Length", str(len(self.body.encode("utf-8"))))

    def serialize(self) -> bytes:
        """Wire form of the response."""
        major, minor = divmod(self.version, 10)
        lines = [f"HTTP/{major}.{minor} {int(self.status)} {self.reason}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("latin-1") + self.body.encode("utf-8")


def make_response(req: HttpRequest, status: int, content_type: str, body: str) -> HttpResponse:
    """Build a response to ``req`` with the usual headers and a sized payload."""
    res = HttpResponse(status=status, version=req.version)
    res.set_header("Server", SERVER_NAME)
    res.set_header("Content-Type", content_type)
    res.keep_alive = req.keep_alive
    res.body = body
    res.prepare_payload()
    return res


def generate_random_chars(length: int = 32) -> str:
    """Random string of letters, digits, '+' and '/'."""
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


def generate_random_numeric_chars(length: int) -> str:
    """Random string of decimal digits."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def ice_connection_state_to_string(state: IceConnectionState | int) -> str:
    try:
        return _ICE_NAMES[IceConnectionState(state)]
    except (ValueError, KeyError):
        return "unknown"


def mime_type(path: str) -> str:
    """MIME type guessed from the file name's extension."""
    pos = path.rfind(".")
    ext = path[pos:].lower() if pos != -1 else ""
    return _MIME_TYPES.get(ext, "application/text")


def bad_request(req: HttpRequest, why: str) -> HttpResponse:
    return make_response(req, HTTPStatus.BAD_REQUEST, "text/html", why)


def not_found(req: HttpRequest, target: str) -> HttpResponse:
    return make_response(
        req, HTTPStatus.NOT_FOUND, "text/html", f"The resource '{target}' was not found."
    )


def server_error(req: HttpRequest, what: str) -> HttpResponse:
    return make_response(
        req, HTTPStatus.INTERNAL_SERVER_ERROR, "text/html", f"An error occurred: '{what}'"
    )