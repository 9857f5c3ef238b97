"""Video encoder/decoder availability and selection."""

from __future__ import annotations

import enum
import platform
import sys
from dataclasses import dataclass, field
from typing import Iterable, Sequence


class CodecType(enum.Enum):
    """Kinds of codec implementation."""

    DEFAULT = "default"
    JETSON = "jetson"
    MMAL = "mmal"
    NVIDIA = "nvidia"
    INTEL = "intel"
    VIDEO_TOOLBOX = "videotoolbox"
    SOFTWARE = "software"
    NOT_SUPPORTED = "not_supported"


_TYPE_NAMES = {
    CodecType.JETSON: ("Jetson", "jetson"),
    CodecType.MMAL: ("MMAL", "mmal"),
    CodecType.NVIDIA: ("NVIDIA VIDEO CODEC SDK", "nvidia"),
    CodecType.INTEL: ("Intel Media SDK", "intel"),
    CodecType.VIDEO_TOOLBOX: ("VideoToolbox", "videotoolbox"),
    CodecType.SOFTWARE: ("Software", "software"),
}


@dataclass
class VideoCodecInfo:
    """Available encoders and decoders per codec, in order of preference."""

    vp8_encoders: list[CodecType] = field(default_factory=list)
    vp8_decoders: list[CodecType] = field(default_factory=list)
    vp9_encoders: list[CodecType] = field(default_factory=list)
    vp9_decoders: list[CodecType] = field(default_factory=list)
    av1_encoders: list[CodecType] = field(default_factory=list)
    av1_decoders: list[CodecType] = field(default_factory=list)
    h264_encoders: list[CodecType] = field(default_factory=list)
    h264_decoders: list[CodecType] = field(default_factory=list)


def resolve(specified: CodecType, codecs: Sequence[CodecType]) -> CodecType:
    """Turn DEFAULT into a concrete implementation, or NOT_SUPPORTED."""
    if not codecs:
        return CodecType.NOT_SUPPORTED
    if specified is CodecType.DEFAULT:
        return codecs[0]
    if specified in codecs:
        return specified
    return CodecType.NOT_SUPPORTED


def type_to_string(codec_type: CodecType) -> tuple[str, str]:
    """Return (display name, option value) for a codec type."""
    return _TYPE_NAMES.get(codec_type, ("Unknown", "unknown"))


def get_valid_mapping_info(types: Iterable[CodecType]) -> list[tuple[str, CodecType]]:
    """Option values accepted for a codec selection, starting with 'default'."""
    infos = [("default", CodecType.DEFAULT)]
    infos.extend((type_to_string(t)[1], t) for t in types)
    return infos


def _arm_without_neon() -> bool:
    machine = platform.machine().lower()
    return machine.startswith("armv6") or machine == "arm"


def detect_video_codec_info(platform_name: str | None = None) -> VideoCodecInfo:
    """Codecs available on the given platform (defaults to the running one)."""
    name = platform_name if platform_name is not None else sys.platform
    info = VideoCodecInfo()
    software = CodecType.SOFTWARE

    if name.startswith("win"):
        info.vp8_encoders.append(software)
        info.vp8_decoders.append(software)
        info.vp9_encoders.append(software)
        info.vp9_decoders.append(software)
        info.av1_encoders.append(software)
        info.av1_decoders.append(software)
    elif name == "darwin":
        info.h264_encoders.append(CodecType.VIDEO_TOOLBOX)
        info.h264_decoders.append(CodecType.VIDEO_TOOLBOX)
        info.vp8_encoders.append(software)
        info.vp9_encoders.append(software)
        info.vp8_decoders.append(software)
        info.vp9_decoders.append(software)
        info.av1_encoders.append(software)
        info.av1_decoders.append(software)
    elif name.startswith("linux"):
        info.vp8_encoders.append(software)
        info.vp8_decoders.append(software)
        info.vp9_encoders.append(software)
        info.vp9_decoders.append(software)
        if not _arm_without_neon():
            info.av1_encoders.append(software)
            info.av1_decoders.append(software)
    else:
        raise ValueError(f"unsupported platform: {name!r}")
    return info