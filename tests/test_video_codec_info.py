import pytest

from momo.video_codec_info import (
    CodecType,
    VideoCodecInfo,
    detect_video_codec_info,
    get_valid_mapping_info,
    resolve,
    type_to_string,
)


def test_resolve_empty_is_not_supported():
    assert resolve(CodecType.DEFAULT, []) is CodecType.NOT_SUPPORTED
    assert resolve(CodecType.SOFTWARE, []) is CodecType.NOT_SUPPORTED


def test_resolve_default_takes_first():
    codecs = [CodecType.JETSON, CodecType.SOFTWARE]
    assert resolve(CodecType.DEFAULT, codecs) is CodecType.JETSON


def test_resolve_specified_present_and_absent():
    codecs = [CodecType.JETSON, CodecType.SOFTWARE]
    assert resolve(CodecType.SOFTWARE, codecs) is CodecType.SOFTWARE
    assert resolve(CodecType.NVIDIA, codecs) is CodecType.NOT_SUPPORTED


@pytest.mark.parametrize(
    "codec_type, expected",
    [
        (CodecType.JETSON, ("Jetson", "jetson")),
        (CodecType.MMAL, ("MMAL", "mmal")),
        (CodecType.NVIDIA, ("NVIDIA VIDEO CODEC SDK", "nvidia")),
        (CodecType.INTEL, ("Intel Media SDK", "intel")),
        (CodecType.VIDEO_TOOLBOX, ("VideoToolbox", "videotoolbox")),
        (CodecType.SOFTWARE, ("Software", "software")),
        (CodecType.DEFAULT, ("Unknown", "unknown")),
        (CodecType.NOT_SUPPORTED, ("Unknown", "unknown")),
    ],
)
def test_type_to_string(codec_type, expected):
    assert type_to_string(codec_type) == expected


def test_valid_mapping_starts_with_default():
    infos = get_valid_mapping_info([CodecType.SOFTWARE, CodecType.JETSON])
    assert infos == [
        ("default", CodecType.DEFAULT),
        ("software", CodecType.SOFTWARE),
        ("jetson", CodecType.JETSON),
    ]


def test_valid_mapping_empty():
    assert get_valid_mapping_info([]) == [("default", CodecType.DEFAULT)]


def test_detect_macos():
    info = detect_video_codec_info("darwin")
    assert info.h264_encoders == [CodecType.VIDEO_TOOLBOX]
    assert info.h264_decoders == [CodecType.VIDEO_TOOLBOX]
    assert info.vp8_encoders == [CodecType.SOFTWARE]
    assert info.av1_decoders == [CodecType.SOFTWARE]


def test_detect_windows_has_no_h264():
    info = detect_video_codec_info("win32")
    assert info.h264_encoders == []
    assert info.h264_decoders == []
    assert info.vp9_encoders == [CodecType.SOFTWARE]


def test_detect_linux_software_codecs():
    info = detect_video_codec_info("linux")
    assert info.vp8_encoders == [CodecType.SOFTWARE]
    assert info.vp9_decoders == [CodecType.SOFTWARE]
    assert info.h264_encoders == []


def test_detect_unknown_platform_raises():
    with pytest.raises(ValueError):
        detect_video_codec_info("plan9")


def test_info_lists_are_independent():
    a = VideoCodecInfo()
    b = VideoCodecInfo()
    a.vp8_encoders.append(CodecType.SOFTWARE)
    assert b.vp8_encoders == []