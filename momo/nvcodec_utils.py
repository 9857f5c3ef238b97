"""Error checking, file buffering, chroma layout conversion, timing and a bounded queue."""

from __future__ import annotations

import collections
import logging
import os
import threading
import time
from typing import Any, Generic, MutableSequence, TypeVar

_log = logging.getLogger(__name__)

T = TypeVar("T")


def check(code: int, line: int, filename: str) -> bool:
    """True for a non-negative status; a negative one is logged as an error."""
    if code < 0:
        _log.error("General error %s at line %s in file %s", code, line, filename)
        return False
    return True


def check_input_file(path: str) -> None:
    """Raise ValueError when ``path`` cannot be opened for reading."""
    try:
        with open(path, "rb"):
            pass
    except OSError:
        raise ValueError(f"Unable to open input file: {path}") from None


def validate_resolution(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(
            "Please specify positive non zero resolution as -s WxH. "
            f"Current resolution is {width}x{height}"
        )


class BufferedFileReader:
    """Loads a whole file into memory up front.

    With ``partial`` set, a file too large to hold is loaded in part, shrinking
    the amount by a tenth until it fits. ``buffer`` is None when nothing loaded.
    """

    def __init__(self, path: str, partial: bool = False) -> None:
        self.buffer: bytes | None = None
        try:
            full_size = os.stat(path).st_size
        except OSError:
            return
        size = full_size
        while size:
            try:
                bytearray(size)
                if size != full_size:
                    _log.warning(
                        "File is too large - only %.4g%% is loaded", 100.0 * size / full_size
                    )
                break
            except MemoryError:
                if not partial:
                    _log.error("Failed to allocate memory in BufferedReader")
                    return
                size = int(size * 0.9)
        try:
            with open(path, "rb") as f:
                self.buffer = f.read(size)
        except OSError:
            _log.error("Unable to open input file: %s", path)

    @property
    def size(self) -> int:
        return 0 if self.buffer is None else len(self.buffer)

    def __bool__(self) -> bool:
        return self.buffer is not None


class YuvConverter:
    """Converts 4:2:0 chroma between planar (I420) and interleaved (NV12) layout in place.

    A frame holds a luma plane of ``pitch * height`` samples followed by chroma.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def planar_to_uv_interleaved(self, frame: MutableSequence[Any], pitch: int = 0) -> None:
        width, height = self.width, self.height
        pitch = pitch or width
        half_w, half_h, half_pitch = width // 2, height // 2, pitch // 2
        puv = pitch * height
        if pitch == width:
            quad = list(frame[puv : puv + width * height // 4])
        else:
            quad = []
            for row in range(half_h):
                start = puv + half_pitch * row
                quad.extend(frame[start : start + half_w])
        pv = puv + half_pitch * half_h
        for row in range(half_h):
            v_start = pv + row * half_pitch
            v_row = list(frame[v_start : v_start + half_w])
            u_row = quad[row * half_w : (row + 1) * half_w]
            dst = puv + row * pitch
            frame[dst : dst + 2 * half_w : 2] = u_row
            frame[dst + 1 : dst + 2 * half_w : 2] = v_row

    def uv_interleaved_to_planar(self, frame: MutableSequence[Any], pitch: int = 0) -> None:
        width, height = self.width, self.height
        pitch = pitch or width
        half_w, half_h, half_pitch = width // 2, height // 2, pitch // 2
        puv = pitch * height
        pv = puv + pitch * height // 4
        quad: list[Any] = []
        for row in range(half_h):
            src = puv + row * pitch
            u_row = list(frame[src : src + 2 * half_w : 2])
            quad.extend(frame[src + 1 : src + 2 * half_w : 2])
            dst = puv + row * half_pitch
            frame[dst : dst + half_w] = u_row
        if pitch == width:
            count = width * height // 4
            quad.extend([0] * (count - len(quad)))
            frame[pv : pv + count] = quad[:count]
        else:
            for row in range(half_h):
                dst = pv + half_pitch * row
                frame[dst : dst + half_w] = quad[row * half_w : (row + 1) * half_w]


class StopWatch:
    """Measures elapsed wall time in seconds."""

    def __init__(self) -> None:
        self._t0 = time.perf_counter_ns()

    def start(self) -> None:
        self._t0 = time.perf_counter_ns()

    def stop(self) -> float:
        """Seconds since the last ``start``."""
        return (time.perf_counter_ns() - self._t0) / 1.0e9


class ConcurrentQueue(Generic[T]):
    """Thread-safe FIFO whose producers block while it holds ``max_size`` items."""

    def __init__(self, max_size: int | None = None) -> None:
        self._items: collections.deque[T] = collections.deque()
        self._cond = threading.Condition()
        self._max_size = max_size

    def set_size(self, size: int | None) -> None:
        with self._cond:
            self._max_size = size
            self._cond.notify_all()

    def _full(self) -> bool:
        return self._max_size is not None and len(self._items) == self._max_size

    def push_back(self, value: T) -> None:
        with self._cond:
            was_empty = not self._items
            while self._full():
                self._cond.wait()
            self._items.append(value)
            if was_empty:
                self._cond.notify_all()

    def pop_front(self) -> T:
        with self._cond:
            while not self._items:
                self._cond.wait()
            was_full = self._full()
            value = self._items.popleft()
            if was_full and not self._full():
                self._cond.notify_all()
            return value

    def front(self) -> T:
        with self._cond:
            while not self._items:
                self._cond.wait()
            return self._items[0]

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def empty(self) -> bool:
        with self._cond:
            return not self._items

    def clear(self) -> None:
        with self._cond:
            self._items.clear()
            self._cond.notify_all()