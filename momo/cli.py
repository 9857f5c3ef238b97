"""Command-line parsing for the client and its three modes."""

from __future__ import annotations

import argparse
import dataclasses
import enum
import json
import os
import platform
import re
import sys
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version as _dist_version
from typing import Any, Callable, Sequence

from .momo_args import MomoArgs
from .video_codec_info import (
    CodecType,
    VideoCodecInfo,
    detect_video_codec_info,
    get_valid_mapping_info,
    type_to_string,
)

_NOT_AVAILABLE = "Not available because your device does not have this feature."
_RESOLUTION_RE = re.compile(r"[1-9][0-9]*x[1-9][0-9]*")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_INT32_MIN, _INT32_MAX = -(2**31), 2**31 - 1
_BOOL_MAP = {"false": False, "true": True}
_OPTIONAL_BOOL_MAP = {"false": False, "true": True, "none": None}
_LOG_LEVELS = {"verbose": 0, "info": 1, "warning": 2, "error": 3, "none": 4}


class UsageError(Exception):
    """The command line was rejected, or help was requested."""

    def __init__(self, message: str, exit_code: int = 2, show_help: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.show_help = show_help


class Mode(enum.Enum):
    TEST = "test"
    AYAME = "ayame"
    SORA = "sora"


@dataclass
class Features:
    """What this build and device can do; governs which options are accepted."""

    mmal_encoder: bool = False
    jetson_encoder: bool = False
    nvcodec_encoder: bool = False
    h264: bool = False
    sdl: bool = False
    screen_capturer: bool = False
    platform: str = field(default_factory=lambda: sys.platform)
    codec_info: VideoCodecInfo | None = None

    @property
    def hardware_encoder(self) -> bool:
        return self.mmal_encoder or self.jetson_encoder or self.nvcodec_encoder

    def video_codec_info(self) -> VideoCodecInfo:
        if self.codec_info is not None:
            return self.codec_info
        return detect_video_codec_info(self.platform)


@dataclass
class ParseResult:
    args: MomoArgs
    mode: Mode | None = None
    log_level: int | None = None
    show_version: bool = False
    show_video_codecs: bool = False


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(f"{self.prog}: error: {message}", 2)

    def exit(self, status: int = 0, message: str | None = None) -> None:  # type: ignore[override]
        raise UsageError(message or "", status)


class _HelpAllAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        texts = [parser.format_help()]
        texts.extend(sub.format_help() for sub in getattr(parser, "mode_parsers", []))
        print("\n".join(texts))
        parser.exit(0)


def _fail(message: str) -> argparse.ArgumentTypeError:
    return argparse.ArgumentTypeError(message)


def _stoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(text)
    value = int(match.group(1))
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise OverflowError(text)
    return value


def _int_range(low: int, high: int, available: bool = True) -> Callable[[str], int]:
    def convert(text: str) -> int:
        if not available:
            raise _fail(_NOT_AVAILABLE)
        try:
            value = int(text)
        except ValueError:
            raise _fail(f"Value {text} could not be converted to an integer") from None
        if not low <= value <= high:
            raise _fail(f"Value {text} not in range {low} to {high}")
        return value

    return convert


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise _fail(f"Value {text} could not be converted to an integer") from None
    if value <= 0:
        raise _fail(f"Value {text} must be a positive number")
    return value


def _mapping(pairs: dict[str, Any], accept_outputs: bool = False) -> Callable[[str], Any]:
    lowered = {key.lower(): value for key, value in pairs.items()}

    def convert(text: str) -> Any:
        key = text.lower()
        if key in lowered:
            return lowered[key]
        if accept_outputs:
            for value in lowered.values():
                if str(value) == text:
                    return value
        raise _fail(f"{text} not in {{{','.join(lowered)}}}")

    return convert


def _member(choices: Sequence[str], extra: Callable[[str], None] | None = None) -> Callable[[str], str]:
    def convert(text: str) -> str:
        if text not in choices:
            raise _fail(f"{text} not in {{{','.join(choices)}}}")
        if extra is not None:
            extra(text)
        return text

    return convert


def _resolution(text: str) -> str:
    if text in ("QVGA", "VGA", "HD", "FHD", "4K") or _RESOLUTION_RE.fullmatch(text):
        return text
    raise _fail("Must be one of QVGA, VGA, HD, FHD, 4K, or [WIDTH]x[HEIGHT].")


def _existing_file(text: str) -> str:
    if not os.path.exists(text):
        raise _fail(f"File does not exist: {text}")
    if os.path.isdir(text):
        raise _fail(f"File is actually a directory: {text}")
    return text


def _existing_dir(text: str) -> str:
    if not os.path.exists(text):
        raise _fail(f"Directory does not exist: {text}")
    if not os.path.isdir(text):
        raise _fail(f"Directory is actually a file: {text}")
    return text


def _split_serial(text: str) -> tuple[str, int]:
    device, sep, rate_text = text.partition(",")
    if not sep:
        device, rate_text = text, text
    return device, _stoi(rate_text) & 0xFFFFFFFF


def _serial(text: str) -> str:
    try:
        _split_serial(text)
    except (ValueError, OverflowError):
        raise _fail(
            f"Value {text} is not serial setting format [DEVICE],[BAUDRATE]"
        ) from None
    return text


def _json_value(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        raise _fail(f"Value {text} is not JSON Value") from None


def _build_parser(features: Features) -> _Parser:
    suppress = argparse.SUPPRESS
    parser = _Parser(
        prog="momo",
        description="Momo - WebRTC Native Client",
        argument_default=suppress,
    )
    add = parser.add_argument
    add("--help-all", action=_HelpAllAction, help="Print help message for all modes and exit")
    add("--no-google-stun", action="store_true", help="Do not use google stun")
    add("--no-video-device", action="store_true", help="Do not use video device")
    add("--no-audio-device", action="store_true", help="Do not use audio device")
    add("--force-i420", action="store_true",
        help="Prefer I420 format for video capture (only on supported devices)")

    def hw_mjpeg(text: str) -> bool:
        value = _mapping(_BOOL_MAP)(text)
        if value and not features.hardware_encoder:
            raise _fail(_NOT_AVAILABLE)
        return value

    add("--hw-mjpeg-decoder", dest="hw_mjpeg_decoder", type=hw_mjpeg,
        help="Perform MJPEG deoode and video resize by hardware acceleration "
        "(only on supported devices)")
    if features.platform == "darwin" or features.platform.startswith("win"):
        add("--video-device", dest="video_device",
            help="Use the video device specified by an index or a name "
            "(use the first one if not specified)")
    elif features.platform.startswith("linux"):
        add("--video-device", dest="video_device", type=_existing_file,
            help="Use the video input device specified by a name "
            "(some device will be used if not specified)")
    add("--resolution", type=_resolution,
        help="Video resolution (one of QVGA, VGA, HD, FHD, 4K, or [WIDTH]x[HEIGHT])")
    add("--framerate", type=_int_range(1, 60), help="Video framerate")
    add("--fixed-resolution", action="store_true", help="Maintain video resolution in degradation")
    add("--priority", type=_member(["BALANCE", "FRAMERATE", "RESOLUTION"]),
        help="Specifies the quality that is maintained against video degradation")
    add("--use-sdl", action="store_true", help="Show video using SDL (if SDL is available)")
    add("--show-me", action="store_true", help="Show self video (if SDL is available)")
    add("--window-width", type=_int_range(180, 16384, features.sdl),
        help="Window width for videos (if SDL is available)")
    add("--window-height", type=_int_range(180, 16384, features.sdl),
        help="Window height for videos (if SDL is available)")
    add("--fullscreen", action="store_true",
        help="Use fullscreen window for videos (if SDL is available)")
    add("--version", action="store_true", help="Show version information")
    add("--insecure", action="store_true", help="Allow insecure server connections when using SSL")
    add("--log-level", type=_mapping(_LOG_LEVELS, accept_outputs=True),
        help="Log severity level threshold")
    add("--screen-capture", action="store_true", help="Capture screen")

    add("--disable-echo-cancellation", action="store_true",
        help="Disable echo cancellation for audio")
    add("--disable-auto-gain-control", action="store_true",
        help="Disable auto gain control for audio")
    add("--disable-noise-suppression", action="store_true",
        help="Disable noise suppression for audio")
    add("--disable-highpass-filter", action="store_true", help="Disable highpass filter for audio")
    add("--disable-typing-detection", action="store_true", help="Disable typing detection for audio")
    add("--disable-residual-echo-detector", action="store_true",
        help="Disable residual echo detector for audio")

    add("--video-codec-engines", action="store_true", help="List available video encoders/decoders")
    info = features.video_codec_info()
    for codec, label in (("vp8", "VP8"), ("vp9", "VP9"), ("av1", "AV1"), ("h264", "H.264")):
        for role, title in (("encoder", "Encoder"), ("decoder", "Decoder")):
            types = getattr(info, f"{codec}_{role}s")
            add(f"--{codec}-{role}", dest=f"{codec}_{role}",
                type=_mapping(dict(get_valid_mapping_info(types))), help=f"{label} {title}")

    add("--serial", type=_serial,
        help="Serial port settings for datachannel passthrough [DEVICE],[BAUDRATE]")
    add("--metrics-port", type=_int_range(-1, 65535), help="Metrics server port number (default: -1)")
    add("--metrics-allow-external-ip", action="store_true",
        help="Allow access to Metrics server from external IP")

    modes = parser.add_subparsers(dest="mode", metavar="{test,ayame,sora}")
    test_app = modes.add_parser(
        "test", help="Mode for momo development with simple HTTP server", argument_default=suppress)
    ayame_app = modes.add_parser(
        "ayame", help="Mode for working with WebRTC Signaling Server Ayame", argument_default=suppress)
    sora_app = modes.add_parser(
        "sora", help="Mode for working with WebRTC SFU Sora", argument_default=suppress)
    parser.mode_parsers = [test_app, ayame_app, sora_app]  # type: ignore[attr-defined]

    test_app.add_argument("--document-root", dest="test_document_root", type=_existing_dir,
                          help="HTTP document root directory")
    test_app.add_argument("--port", dest="test_port", type=_int_range(0, 65535),
                          help="Port number (default: 8080)")

    ayame_app.add_argument("--signaling-url", dest="ayame_signaling_url", required=True,
                           help="Signaling URL")
    ayame_app.add_argument("--channel-id", dest="ayame_room_id", required=True, help="Channel ID")
    ayame_app.add_argument("--client-id", dest="ayame_client_id", help="Client ID")
    ayame_app.add_argument("--signaling-key", dest="ayame_signaling_key", help="Signaling key")

    def h264_available(text: str) -> None:
        if text == "H264" and not features.h264:
            raise _fail(_NOT_AVAILABLE)

    s = sora_app.add_argument
    s("--signaling-url", dest="sora_signaling_urls", nargs="+", required=True, help="Signaling URLs")
    s("--channel-id", dest="sora_channel_id", required=True, help="Channel ID")
    s("--auto", dest="sora_auto_connect", action="store_true", help="Connect to Sora automatically")
    s("--video", dest="sora_video", type=_mapping(_BOOL_MAP), help="Send video to sora (default: true)")
    s("--audio", dest="sora_audio", type=_mapping(_BOOL_MAP), help="Send audio to sora (default: true)")
    s("--video-codec-type", dest="sora_video_codec_type",
      type=_member(["", "VP8", "VP9", "AV1", "H264"], h264_available), help="Video codec for send")
    s("--audio-codec-type", dest="sora_audio_codec_type", type=_member(["", "OPUS"]),
      help="Audio codec for send")
    s("--video-bit-rate", dest="sora_video_bit_rate", type=_int_range(0, 30000), help="Video bit rate")
    s("--audio-bit-rate", dest="sora_audio_bit_rate", type=_int_range(0, 510), help="Audio bit rate")
    s("--multistream", dest="sora_multistream", type=_mapping(_BOOL_MAP),
      help="Use multistream (default: false)")
    s("--role", dest="sora_role",
      type=_member(["upstream", "downstream", "sendonly", "recvonly", "sendrecv"]),
      help="Role (default: upstream)")
    s("--spotlight", dest="sora_spotlight", type=_mapping(_BOOL_MAP), help="Use spotlight")
    s("--spotlight-number", dest="sora_spotlight_number", type=_int_range(0, 8),
      help="Stream count delivered in spotlight")
    s("--port", dest="sora_port", type=_int_range(-1, 65535), help="Port number (default: -1)")
    s("--simulcast", dest="sora_simulcast", type=_mapping(_BOOL_MAP),
      help="Use simulcast (default: false)")
    s("--data-channel-signaling", dest="sora_data_channel_signaling", metavar="TEXT",
      type=_mapping(_OPTIONAL_BOOL_MAP), help="Use DataChannel for Sora signaling (default: none)")
    s("--data-channel-signaling-timeout", dest="sora_data_channel_signaling_timeout",
      type=_positive_int, help="Timeout for Data Channel in seconds (default: 180)")
    s("--ignore-disconnect-websocket", dest="sora_ignore_disconnect_websocket", metavar="TEXT",
      type=_mapping(_OPTIONAL_BOOL_MAP),
      help="Ignore WebSocket disconnection if using Data Channel (default: none)")
    s("--disconnect-wait-timeout", dest="sora_disconnect_wait_timeout", type=_positive_int,
      help="Disconnecting timeout for Data Channel in seconds (default: 5)")
    s("--metadata", dest="metadata", type=_json_value,
      help="Signaling metadata used in connect message")
    return parser


def _check_flags(values: dict[str, Any], features: Features) -> None:
    gated = {
        "force_i420": ("--force-i420", features.hardware_encoder),
        "use_sdl": ("--use-sdl", features.sdl),
        "show_me": ("--show-me", features.sdl),
        "fullscreen": ("--fullscreen", features.sdl),
        "screen_capture": ("--screen-capture", features.screen_capturer),
    }
    for name, (option, available) in gated.items():
        if values.get(name) and not available:
            raise UsageError(f"momo: error: argument {option}: {_NOT_AVAILABLE}", 2)


def parse_args(argv: Sequence[str] | None = None, features: Features | None = None) -> ParseResult:
    """Parse the command line into settings and the selected mode."""
    features = features if features is not None else Features()
    parser = _build_parser(features)
    values = vars(parser.parse_args(list(sys.argv[1:] if argv is None else argv)))
    _check_flags(values, features)

    mode_name = values.pop("mode", None)
    show_version = values.pop("version", False)
    show_codecs = values.pop("video_codec_engines", False)
    log_level = values.pop("log_level", None)
    serial_setting = values.pop("serial", "")
    has_metadata = "metadata" in values
    metadata = values.pop("metadata", None)

    args = dataclasses.replace(MomoArgs(hw_mjpeg_decoder=features.jetson_encoder), **values)

    if args.sora_simulcast and args.sora_video_codec_type not in ("VP8", "H264"):
        raise UsageError(
            "Simulcast works only --video-codec-type=VP8 or --video-codec-type=H264.", 1
        )
    if serial_setting:
        args.serial_device, args.serial_rate = _split_serial(serial_setting)
    if has_metadata:
        args.sora_metadata = metadata
    if not args.test_document_root:
        args.test_document_root = os.getcwd()

    if show_version or show_codecs:
        return ParseResult(args=args, log_level=log_level,
                           show_version=show_version, show_video_codecs=show_codecs)
    if mode_name is None:
        raise UsageError(parser.format_help(), 1, show_help=True)
    return ParseResult(args=args, mode=Mode(mode_name), log_level=log_level)


def format_video_codecs(info: VideoCodecInfo) -> str:
    """Human-readable listing of encoders and decoders; the first is the default."""
    lines: list[str] = []

    def list_codecs(types: Sequence[CodecType]) -> None:
        if not types:
            lines.append("    *UNAVAILABLE*")
            return
        for position, codec_type in enumerate(types):
            name, value = type_to_string(codec_type)
            suffix = " (default)" if position == 0 else ""
            lines.append(f"    - {name} [{value}]{suffix}")

    blocks = (("VP8", "vp8"), ("VP9", "vp9"), ("AV1", "av1"), ("H264", "h264"))
    for index, (title, prefix) in enumerate(blocks):
        if index:
            lines.append("")
        lines.append(f"{title}:")
        lines.append("  Encoder:")
        list_codecs(getattr(info, f"{prefix}_encoders"))
        lines.append("  Decoder:")
        list_codecs(getattr(info, f"{prefix}_decoders"))
    return "\n".join(lines) + "\n"


def _package_version() -> str:
    try:
        return _dist_version("momo")
    except PackageNotFoundError:
        return "unknown"


def _version_text(features: Features) -> str:
    flags = (
        ("USE_MMAL_ENCODER", features.mmal_encoder),
        ("USE_JETSON_ENCODER", features.jetson_encoder),
        ("USE_NVCODEC_ENCODER", features.nvcodec_encoder),
        ("USE_SDL2", features.sdl),
    )
    lines = [
        f"WebRTC Native Client Momo {_package_version()}",
        "",
        f"Environment: {platform.platform()}",
        "",
    ]
    lines.extend(f"{name}={int(enabled)}" for name, enabled in flags)
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    features = Features()
    try:
        result = parse_args(argv, features)
    except UsageError as exc:
        stream = sys.stdout if exc.show_help or exc.exit_code == 0 else sys.stderr
        if exc.message:
            print(exc.message, file=stream, end="" if exc.message.endswith("\n") else "\n")
        return exc.exit_code
    if result.show_version:
        print(_version_text(features))
        return 0
    if result.show_video_codecs:
        print(format_video_codecs(features.video_codec_info()), end="")
        return 0
    assert result.mode is not None
    print(f"mode: {result.mode.value}")
    return 0