# momo

Building blocks for a WebRTC native client that talks to the Sora SFU, the
Ayame signaling server, or a simple local test server.

## What is in the package

- `momo.cli` – command-line parsing for the three modes (`test`, `ayame`,
  `sora`) with their defaults, ranges and checks (`parse_args`,
  `format_video_codecs`, `main`). Build/device capabilities that decide which
  options are accepted are described by `Features`.
- `momo.momo_args` – `MomoArgs`, the settings dataclass, and `Size`.
- `momo.video_codec_info` – `CodecType`, `VideoCodecInfo`, `resolve`,
  `type_to_string`, `get_valid_mapping_info`, `detect_video_codec_info`.
- `momo.websocket` – `Websocket`, an asyncio text-message websocket (plain or
  TLS client, or wrapping an accepted server connection), and
  `parse_websocket_url`.
- `momo.watchdog` – `WatchDog`, a one-shot timeout on the running event loop.
- `momo.data_channel` – `SoraDataChannel` and `LoopDataChannel`, which gather
  several data channels behind one `DataChannelObserver` and close them in an
  orderly way; `DataBuffer` and `DataChannelState`.
- `momo.sora_session` – `SoraSession` and `SoraServer`, a small HTTP control
  interface, plus `SoraClientConfig` and the `SoraControl` protocol.
- `momo.util` – random strings, ICE state names, MIME types, `HttpRequest`,
  `HttpResponse` and the `bad_request` / `not_found` / `server_error` helpers.
- `momo.logger` – a small level-filtered logger writing to a file, the console
  or UDP datagrams.
- `momo.nvcodec_utils` – status checking, `BufferedFileReader`, `YuvConverter`
  (I420 ⇄ NV12 chroma layout in place), `StopWatch` and a bounded
  thread-safe `ConcurrentQueue`.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

The `momo` command parses and validates the client's options.

```
momo --help
momo --help-all
momo --version
momo --video-codec-engines
```

`--version` prints the package version, the environment and the feature
flags; `--video-codec-engines` lists the encoders and decoders for VP8, VP9,
AV1 and H264, marking the first of each as the default.

Choose a mode with a subcommand:

```
momo test --port 8080
momo ayame --signaling-url wss://example.com/signaling --channel-id room
momo sora --signaling-url wss://example.com/signaling --channel-id sora --role sendonly
```

Common options include `--resolution` (`QVGA`, `VGA`, `HD`, `FHD`, `4K` or
`WIDTHxHEIGHT`), `--framerate` (1 to 60), `--priority`
(`BALANCE`, `FRAMERATE`, `RESOLUTION`) and `--log-level`
(`verbose`, `info`, `warning`, `error`, `none`). Sora mode checks, among
others, that `--simulcast true` is used only with `--video-codec-type VP8` or
`H264`, and that `--metadata` is valid JSON. Without a mode the help text is
printed and the exit status is 1.

From Python, `parse_args` returns a `ParseResult` (settings, selected `Mode`,
log level) or raises `UsageError`:

```python
from momo.cli import Mode, parse_args

result = parse_args(["sora", "--signaling-url", "wss://example.com/signaling",
                     "--channel-id", "sora"])
assert result.mode is Mode.SORA
```

## Library use

Resolution handling:

```python
from momo.momo_args import MomoArgs

args = MomoArgs(resolution="HD")
size = args.get_size()
print(size.width, size.height)  # 1280 720
```

Codec selection:

```python
from momo.video_codec_info import CodecType, resolve

resolve(CodecType.DEFAULT, [CodecType.SOFTWARE])  # CodecType.SOFTWARE
resolve(CodecType.JETSON, [CodecType.SOFTWARE])   # CodecType.NOT_SUPPORTED
```

MIME types:

```python
from momo.util import mime_type

mime_type("index.html")  # "text/html"
mime_type("logo.svg")    # "image/svg+xml"
```

A timeout watchdog, used inside a running event loop:

```python
from momo.watchdog import WatchDog

watchdog = WatchDog(lambda: print("timed out"))
watchdog.enable(5)   # fires once after five seconds
watchdog.reset()     # restart with the same timeout
watchdog.disable()
```

A signaling websocket:

```python
from momo.websocket import Websocket

async def talk():
    ws = Websocket(ssl=True, insecure=False)
    await ws.connect("wss://example.com/signaling")
    await ws.write_text('{"type": "connect"}')
    reply = await ws.read()
    await ws.close()
    return reply
```

The control server answers `GET /connect/status`, `GET /mute/status`,
`POST /connect`, `POST /close` and `POST /mute` with JSON bodies. It drives
any object that implements `SoraControl`:

```python
from momo.sora_session import SoraServer

async def serve(client):
    async with SoraServer("127.0.0.1", 0, client) as server:
        print("listening on", server.port)
        ...
```

## What the package does not do

The package handles options, signaling transport, data channel bookkeeping
and the control interface, but carries no WebRTC media stack: it does not
capture, encode, decode or display video or audio, and it contains no Sora or
Ayame client and no test-mode web server. After a mode is selected the `momo`
command only reports it (`mode: sora`) and exits. To use `SoraServer` you
supply your own object implementing `SoraControl`, and `SoraDataChannel`
expects data channel objects from your own WebRTC implementation.