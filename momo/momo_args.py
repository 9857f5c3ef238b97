"""Settings collected from the command line."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from .video_codec_info import CodecType

_PRESETS = {
    "QVGA": (320, 240),
    "VGA": (640, 480),
    "HD": (1280, 720),
    "FHD": (1920, 1080),
    "4K": (3840, 2160),
}

_MIN_SIDE = 16
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Size:
    width: int
    height: int


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


@dataclass
class MomoArgs:
    """Every option the client accepts, with its default."""

    no_google_stun: bool = False
    no_video_device: bool = False
    no_audio_device: bool = False
    force_i420: bool = False
    hw_mjpeg_decoder: bool = False
    video_device: str = ""
    resolution: str = "VGA"
    framerate: int = 30
    fixed_resolution: bool = False
    priority: str = "FRAMERATE"
    use_sdl: bool = False
    show_me: bool = False
    window_width: int = 640
    window_height: int = 480
    fullscreen: bool = False
    serial_device: str = ""
    serial_rate: int = 9600
    insecure: bool = False
    screen_capture: bool = False
    metrics_port: int = -1
    metrics_allow_external_ip: bool = False

    sora_signaling_urls: list[str] = field(default_factory=list)
    sora_channel_id: str = ""
    sora_video: bool = True
    sora_audio: bool = True
    # An empty codec type or a zero bit rate leaves the choice to the server.
    sora_video_codec_type: str = ""
    sora_audio_codec_type: str = ""
    sora_video_bit_rate: int = 0
    sora_audio_bit_rate: int = 0
    sora_auto_connect: bool = False
    sora_metadata: Any = None
    sora_role: str = "upstream"
    sora_multistream: bool = False
    sora_spotlight: bool = False
    sora_spotlight_number: int = 0
    sora_port: int = -1
    sora_simulcast: bool = False
    sora_data_channel_signaling: bool | None = None
    sora_data_channel_signaling_timeout: int = 180
    sora_ignore_disconnect_websocket: bool | None = None
    sora_disconnect_wait_timeout: int = 5

    test_document_root: str = ""
    test_port: int = 8080

    ayame_signaling_url: str = ""
    ayame_room_id: str = ""
    ayame_client_id: str = ""
    ayame_signaling_key: str = ""

    disable_echo_cancellation: bool = False
    disable_auto_gain_control: bool = False
    disable_noise_suppression: bool = False
    disable_highpass_filter: bool = False
    disable_typing_detection: bool = False
    disable_residual_echo_detector: bool = False

    vp8_encoder: CodecType = CodecType.DEFAULT
    vp8_decoder: CodecType = CodecType.DEFAULT
    vp9_encoder: CodecType = CodecType.DEFAULT
    vp9_decoder: CodecType = CodecType.DEFAULT
    av1_encoder: CodecType = CodecType.DEFAULT
    av1_decoder: CodecType = CodecType.DEFAULT
    h264_encoder: CodecType = CodecType.DEFAULT
    h264_decoder: CodecType = CodecType.DEFAULT

    def get_size(self) -> Size:
        """Frame size for the resolution: a preset name or WIDTHxHEIGHT."""
        preset = _PRESETS.get(self.resolution)
        if preset is not None:
            return Size(*preset)
        width_text, sep, height_text = self.resolution.partition("x")
        if not sep:
            return Size(_MIN_SIDE, _MIN_SIDE)
        return Size(
            max(_MIN_SIDE, _atoi(width_text)),
            max(_MIN_SIDE, _atoi(height_text)),
        )