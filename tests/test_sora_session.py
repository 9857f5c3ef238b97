import asyncio
import json

import pytest

from momo.sora_session import SoraServer, SoraSession, create_ok_with_json
from momo.util import HttpRequest, IceConnectionState


class FakeConnection:
    def __init__(self):
        self.audio = True
        self.video = True

    def is_audio_enabled(self):
        return self.audio

    def is_video_enabled(self):
        return self.video

    def set_audio_enabled(self, enabled):
        self.audio = enabled

    def set_video_enabled(self, enabled):
        self.video = enabled


class FakeClient:
    def __init__(self, connection=None, state=IceConnectionState.NEW):
        self.connection = connection
        self.state = state
        self.connects = 0
        self.closes = 0

    def connect(self):
        self.connects += 1

    def close(self, on_close):
        self.closes += 1
        on_close()

    def get_rtc_connection_state(self):
        return self.state

    def get_rtc_connection(self):
        return self.connection


def request(method, target, body="", version=11, headers=None):
    return HttpRequest(method=method, target=target, version=version,
                       headers=headers or {}, body=body)


def test_connect_status_reports_state():
    client = FakeClient(state=IceConnectionState.CONNECTED)
    res = SoraSession(client).handle(request("GET", "/connect/status"))
    assert res.status == 200
    assert json.loads(res.body) == {"state": "connected"}
    assert res.get_header("Content-Type") == "application/json"
    assert res.get_header("Content-Length") == str(len(res.body))


def test_mute_status_without_connection_is_server_error():
    res = SoraSession(FakeClient()).handle(request("GET", "/mute/status"))
    assert res.status == 500
    assert res.body == "An error occurred: 'Invalid RTC Connection'"


def test_mute_status_reports_inverted_enabled_flags():
    conn = FakeConnection()
    conn.audio = False
    res = SoraSession(FakeClient(conn)).handle(request("GET", "/mute/status"))
    assert json.loads(res.body) == {"audio": True, "video": False}


def test_mute_sets_connection():
    conn = FakeConnection()
    body = json.dumps({"audio": True, "video": False})
    res = SoraSession(FakeClient(conn)).handle(request("POST", "/mute", body))
    assert conn.audio is False
    assert conn.video is True
    assert json.loads(res.body) == {"audio": True, "video": False}


def test_mute_invalid_json():
    res = SoraSession(FakeClient(FakeConnection())).handle(request("POST", "/mute", "{oops"))
    assert res.status == 400
    assert res.body == "Invalid JSON"


def test_mute_without_connection():
    res = SoraSession(FakeClient()).handle(request("POST", "/mute", "{}"))
    assert res.status == 500
    assert res.body == "An error occurred: 'Create RTC Connection Failed'"


def test_mute_missing_field_raises():
    session = SoraSession(FakeClient(FakeConnection()))
    with pytest.raises(ValueError):
        session.handle(request("POST", "/mute", json.dumps({"audio": True})))


def test_connect_and_close_drive_client():
    client = FakeClient()
    session = SoraSession(client)
    first = session.handle(request("POST", "/connect"))
    second = session.handle(request("POST", "/close"))
    assert client.connects == 1
    assert client.closes == 1
    assert json.loads(first.body) == {"result": True}
    assert json.loads(second.body) == {"result": True}


@pytest.mark.parametrize(
    "method,target,why",
    [
        ("GET", "/unknown", "Invalid Request"),
        ("POST", "/connect/status", "Invalid Request"),
        ("PUT", "/connect", "Invalid Method"),
    ],
)
def test_bad_requests(method, target, why):
    res = SoraSession(FakeClient()).handle(request(method, target))
    assert res.status == 400
    assert res.body == why


def test_ok_json_is_http11_and_follows_keep_alive():
    res = create_ok_with_json(request("GET", "/", version=10), {"a": 1})
    assert res.version == 11
    assert res.keep_alive is False
    assert res.need_eof is True
    assert json.loads(res.body) == {"a": 1}
    assert res.serialize().startswith(b"HTTP/1.1 200 OK\r\n")


@pytest.mark.asyncio
async def test_server_answers_and_closes():
    client = FakeClient()
    server = SoraServer("127.0.0.1", 0, client)
    await server.start()
    try:
        reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
        writer.write(b"GET /connect/status HTTP/1.1\r\nHost: localhost\r\n"
                     b"Connection: close\r\n\r\n")
        await writer.drain()
        data = await asyncio.wait_for(reader.read(), 5)
        writer.close()
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        head, _, body = data.partition(b"\r\n\r\n")
        assert json.loads(body) == {"state": "new"}
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_server_keeps_connection_alive():
    client = FakeClient()
    async with SoraServer("127.0.0.1", 0, client) as server:
        reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
        for _ in range(2):
            writer.write(b"POST /connect HTTP/1.1\r\nHost: localhost\r\n"
                         b"Content-Length: 0\r\n\r\n")
            await writer.drain()
            head = await asyncio.wait_for(reader.readuntil(b"\r\n\r\n"), 5)
            lines = head.decode("latin-1").split("\r\n")
            length = next(int(line.split(":", 1)[1]) for line in lines
                          if line.lower().startswith("content-length"))
            body = await reader.readexactly(length)
            assert json.loads(body) == {"result": True}
        writer.close()
        await writer.wait_closed()
    assert client.connects == 2