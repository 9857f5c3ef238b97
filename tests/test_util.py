import string

import pytest

from momo.util import (
    HttpRequest,
    HttpResponse,
    IceConnectionState,
    bad_request,
    generate_random_chars,
    generate_random_numeric_chars,
    ice_connection_state_to_string,
    mime_type,
    not_found,
    server_error,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("index.html", "text/html"),
        ("index.htm", "text/html"),
        ("INDEX.HTML", "text/html"),
        ("style.css", "text/css"),
        ("app.js", "application/javascript"),
        ("data.json", "application/json"),
        ("pic.jpg", "image/jpeg"),
        ("pic.JPEG", "image/jpeg"),
        ("icon.ico", "image/vnd.microsoft.icon"),
        ("vector.svgz", "image/svg+xml"),
        ("README", "application/text"),
        ("archive.tar.gz", "application/text"),
    ],
)
def test_mime_type(path, expected):
    assert mime_type(path) == expected


def test_mime_type_uses_last_dot():
    assert mime_type("dir.d/page.txt") == "text/plain"


def test_random_chars_default_length_and_alphabet():
    value = generate_random_chars()
    assert len(value) == 32
    allowed = set(string.ascii_letters + string.digits + "+/")
    assert set(value) <= allowed


def test_random_chars_length():
    assert len(generate_random_chars(5)) == 5
    assert generate_random_chars(0) == ""


def test_random_numeric_chars():
    value = generate_random_numeric_chars(20)
    assert len(value) == 20
    assert value.isdigit()


@pytest.mark.parametrize(
    "state, expected",
    [
        (IceConnectionState.NEW, "new"),
        (IceConnectionState.CHECKING, "checking"),
        (IceConnectionState.CONNECTED, "connected"),
        (IceConnectionState.COMPLETED, "completed"),
        (IceConnectionState.FAILED, "failed"),
        (IceConnectionState.DISCONNECTED, "disconnected"),
        (IceConnectionState.CLOSED, "closed"),
        (IceConnectionState.MAX, "max"),
    ],
)
def test_ice_state_names(state, expected):
    assert ice_connection_state_to_string(state) == expected


def test_ice_state_unknown():
    assert ice_connection_state_to_string(99) == "unknown"


def test_bad_request():
    req = HttpRequest(method="GET", target="/x")
    res = bad_request(req, "Invalid Request")
    assert res.status == 400
    assert res.body == "Invalid Request"
    assert res.get_header("content-type") == "text/html"
    assert res.get_header("Content-Length") == str(len("Invalid Request"))
    assert res.keep_alive is True
    assert res.version == 11


def test_not_found_body():
    res = not_found(HttpRequest(), "/missing")
    assert res.status == 404
    assert res.body == "The resource '/missing' was not found."


def test_server_error_body():
    res = server_error(HttpRequest(), "Invalid RTC Connection")
    assert res.status == 500
    assert res.body == "An error occurred: 'Invalid RTC Connection'"


def test_keep_alive_follows_request():
    req = HttpRequest(headers={"Connection": "close"})
    res = bad_request(req, "no")
    assert res.keep_alive is False
    assert res.need_eof is True
    assert res.get_header("Connection") == "close"


def test_http10_keep_alive():
    req = HttpRequest(version=10, headers={"connection": "Keep-Alive"})
    res = bad_request(req, "no")
    assert res.version == 10
    assert res.keep_alive is True
    assert res.get_header("Connection") == "keep-alive"
    plain = bad_request(HttpRequest(version=10), "no")
    assert plain.keep_alive is False


def test_serialize():
    res = not_found(HttpRequest(), "/a")
    wire = res.serialize()
    assert wire.startswith(b"HTTP/1.1 404 Not Found\r\n")
    head, _, body = wire.partition(b"\r\n\r\n")
    assert body == res.body.encode()
    assert b"Content-Type: text/html" in head


def test_prepare_payload_counts_bytes():
    res = HttpResponse(status=200, body="\u00e9")
    res.prepare_payload()
    assert res.get_header("Content-Length") == str(len("\u00e9".encode("utf-8")))