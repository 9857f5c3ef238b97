import logging
import threading
import time

import pytest

from momo.nvcodec_utils import (
    BufferedFileReader,
    ConcurrentQueue,
    StopWatch,
    YuvConverter,
    check,
    check_input_file,
    validate_resolution,
)


def test_check_accepts_non_negative():
    assert check(0, 1, "a.c") is True
    assert check(5, 1, "a.c") is True


def test_check_logs_negative(caplog):
    with caplog.at_level(logging.ERROR):
        assert check(-5, 10, "x.c") is False
    assert "General error -5 at line 10 in file x.c" in caplog.text


def test_check_input_file(tmp_path):
    good = tmp_path / "in.bin"
    good.write_bytes(b"data")
    check_input_file(str(good))
    with pytest.raises(ValueError, match="Unable to open input file"):
        check_input_file(str(tmp_path / "missing.bin"))


@pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-1, 5)])
def test_validate_resolution_rejects(width, height):
    with pytest.raises(ValueError, match=f"{width}x{height}"):
        validate_resolution(width, height)


def test_validate_resolution_accepts():
    assert validate_resolution(640, 480) is None


def test_buffered_file_reader(tmp_path):
    path = tmp_path / "stream.bin"
    content = bytes(range(256)) * 4
    path.write_bytes(content)
    reader = BufferedFileReader(str(path))
    assert reader.buffer == content
    assert reader.size == len(content)
    assert bool(reader)


def test_buffered_file_reader_missing(tmp_path):
    reader = BufferedFileReader(str(tmp_path / "nope.bin"))
    assert reader.buffer is None
    assert not reader


def test_planar_to_interleaved_layout():
    width, height = 4, 4
    luma = list(range(100, 116))
    u_plane = [1, 2, 3, 4]
    v_plane = [11, 12, 13, 14]
    frame = bytearray(luma + u_plane + v_plane)
    YuvConverter(width, height).planar_to_uv_interleaved(frame)
    assert list(frame[:16]) == luma
    assert list(frame[16:]) == [1, 11, 2, 12, 3, 13, 4, 14]


def test_round_trip_same_pitch():
    width, height = 8, 6
    original = bytearray((i * 7) % 251 for i in range(width * height * 3 // 2))
    frame = bytearray(original)
    converter = YuvConverter(width, height)
    converter.planar_to_uv_interleaved(frame)
    assert frame != original
    converter.uv_interleaved_to_planar(frame)
    assert frame == original


def _chroma_planes(frame, width, height, pitch):
    base = pitch * height
    half_w, half_h, half_pitch = width // 2, height // 2, pitch // 2
    v_base = base + half_pitch * half_h
    u = [frame[base + half_pitch * r : base + half_pitch * r + half_w] for r in range(half_h)]
    v = [frame[v_base + half_pitch * r : v_base + half_pitch * r + half_w] for r in range(half_h)]
    return u, v


def test_round_trip_with_pitch():
    width, height, pitch = 4, 4, 8
    original = bytearray((i * 13 + 5) % 256 for i in range(pitch * height * 3 // 2))
    frame = bytearray(original)
    converter = YuvConverter(width, height)
    converter.planar_to_uv_interleaved(frame, pitch)
    converter.uv_interleaved_to_planar(frame, pitch)
    assert frame[: pitch * height] == original[: pitch * height]
    assert _chroma_planes(frame, width, height, pitch) == _chroma_planes(
        original, width, height, pitch
    )


def test_stopwatch_measures_elapsed_time():
    watch = StopWatch()
    watch.start()
    time.sleep(0.02)
    first = watch.stop()
    assert first >= 0.015
    assert watch.stop() >= first


def test_queue_is_fifo():
    queue = ConcurrentQueue()
    for item in ("a", "b", "c"):
        queue.push_back(item)
    assert len(queue) == 3
    assert queue.front() == "a"
    assert [queue.pop_front() for _ in range(3)] == ["a", "b", "c"]
    assert queue.empty()


def test_queue_clear():
    queue = ConcurrentQueue(10)
    queue.push_back(1)
    queue.push_back(2)
    queue.clear()
    assert queue.empty()
    assert len(queue) == 0


def test_push_blocks_while_full():
    queue = ConcurrentQueue(1)
    queue.push_back(1)
    done = threading.Event()

    def producer():
        queue.push_back(2)
        done.set()

    thread = threading.Thread(target=producer)
    thread.start()
    assert not done.wait(0.1)
    assert queue.pop_front() == 1
    assert done.wait(2)
    thread.join(2)
    assert queue.pop_front() == 2


def test_pop_blocks_until_pushed():
    queue = ConcurrentQueue()
    results = []
    thread = threading.Thread(target=lambda: results.append(queue.pop_front()))
    thread.start()
    time.sleep(0.05)
    assert results == []
    assert queue.empty() is True
    queue.push_back("x")
    thread.join(2)
    assert results == ["x"]
    assert queue.empty() is True
    assert len(queue) == 0


def test_set_size_releases_producer():
    queue = ConcurrentQueue(1)
    queue.push_back(1)
    done = threading.Event()
    thread = threading.Thread(target=lambda: (queue.push_back(2), done.set()))
    thread.start()
    assert not done.wait(0.1)
    queue.set_size(5)
    assert done.wait(2)
    thread.join(2)
    assert len(queue) == 2