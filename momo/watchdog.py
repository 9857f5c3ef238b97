"""One-shot timeout supervision on an asyncio event loop."""

from __future__ import annotations

import asyncio
from typing import Callable


class WatchDog:
    """Calls ``callback`` once ``timeout`` seconds after ``enable``.

    The watchdog switches itself off when it fires; call ``enable`` or
    ``reset`` again to keep supervising. It must be used from the thread
    that runs the event loop.
    """

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timeout: float = 0
        self._handle: asyncio.TimerHandle | None = None

    @property
    def enabled(self) -> bool:
        return self._handle is not None

    @property
    def timeout(self) -> float:
        return self._timeout

    def enable(self, timeout: float) -> None:
        """Start (or restart) the countdown; needs a running event loop."""
        loop = asyncio.get_running_loop()
        self._timeout = timeout
        self._cancel()
        self._handle = loop.call_later(timeout, self._expire)

    def disable(self) -> None:
        self._cancel()

    def reset(self) -> None:
        """Restart the countdown with the last timeout given to ``enable``."""
        self.enable(self._timeout)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self) -> None:
        self._handle = None
        self._callback()