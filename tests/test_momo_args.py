import pytest

from momo.momo_args import MomoArgs, Size
from momo.video_codec_info import CodecType


@pytest.mark.parametrize(
    "resolution, expected",
    [
        ("QVGA", Size(320, 240)),
        ("VGA", Size(640, 480)),
        ("HD", Size(1280, 720)),
        ("FHD", Size(1920, 1080)),
        ("4K", Size(3840, 2160)),
    ],
)
def test_preset_sizes(resolution, expected):
    assert MomoArgs(resolution=resolution).get_size() == expected


def test_custom_size():
    assert MomoArgs(resolution="128x96").get_size() == Size(128, 96)


def test_custom_size_clamped_to_minimum():
    assert MomoArgs(resolution="8x4").get_size() == Size(16, 16)


@pytest.mark.parametrize("resolution", ["abc", "", "vga"])
def test_size_without_separator(resolution):
    assert MomoArgs(resolution=resolution).get_size() == Size(16, 16)


def test_size_with_garbage_numbers():
    size = MomoArgs(resolution="foox200").get_size()
    assert size == Size(16, 200)


def test_default_resolution_is_vga():
    args = MomoArgs()
    assert args.resolution == "VGA"
    assert args.get_size() == Size(640, 480)


def test_defaults():
    args = MomoArgs()
    assert args.framerate == 30
    assert args.priority == "FRAMERATE"
    assert args.sora_role == "upstream"
    assert args.test_port == 8080
    assert args.serial_rate == 9600
    assert args.metrics_port == -1
    assert args.sora_data_channel_signaling is None
    assert args.sora_data_channel_signaling_timeout == 180
    assert args.sora_disconnect_wait_timeout == 5
    assert args.vp8_encoder is CodecType.DEFAULT


def test_signaling_urls_not_shared():
    a = MomoArgs()
    b = MomoArgs()
    a.sora_signaling_urls.append("wss://example.com/signaling")
    assert b.sora_signaling_urls == []