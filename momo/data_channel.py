"""Gathers several data channels behind one observer, optionally delivering on an event loop."""

from __future__ import annotations

import abc
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

SIGNALING_LABEL = "signaling"


class DataChannelState(enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(frozen=True)
class DataBuffer:
    """One data channel message."""

    data: bytes
    binary: bool = False

    @classmethod
    def from_text(cls, text: str) -> "DataBuffer":
        return cls(text.encode("utf-8"), False)

    def __len__(self) -> int:
        return len(self.data)


class _ChannelObserver(Protocol):
    def on_state_change(self) -> None: ...

    def on_message(self, buffer: DataBuffer) -> None: ...

    def on_buffered_amount_change(self, previous_amount: int) -> None: ...


class DataChannel(Protocol):
    """What a single data channel has to offer."""

    label: str
    state: DataChannelState

    def send(self, buffer: DataBuffer) -> None: ...

    def register_observer(self, observer: _ChannelObserver) -> None: ...

    def unregister_observer(self) -> None: ...


class DataChannelObserver(abc.ABC):
    """Receives events from every channel a SoraDataChannel manages."""

    @abc.abstractmethod
    def on_state_change(self, data_channel: DataChannel) -> None: ...

    @abc.abstractmethod
    def on_message(self, data_channel: DataChannel, buffer: DataBuffer) -> None: ...


class _Thunk:
    """Per-channel observer that forwards events to its owner."""

    def __init__(self, owner: "SoraDataChannel", data_channel: DataChannel) -> None:
        self._owner = owner
        self.data_channel = data_channel

    def on_state_change(self) -> None:
        self._owner._on_state_change(self)

    def on_message(self, buffer: DataBuffer) -> None:
        self._owner._on_message(self, buffer)

    def on_buffered_amount_change(self, previous_amount: int) -> None:
        self._owner._on_buffered_amount_change(self, previous_amount)


class SoraDataChannel:
    """Collects several data channels and reports their events to one observer."""

    def __init__(self, observer: DataChannelObserver) -> None:
        self._observer = observer
        self._thunks: dict[_Thunk, DataChannel] = {}
        self._labels: dict[str, DataChannel] = {}
        self._on_close: Callable[[], None] | None = None

    def is_open(self, label: str) -> bool:
        return label in self._labels

    def send(self, label: str, data: DataBuffer) -> None:
        """Send on the channel with ``label``; unknown labels are ignored."""
        data_channel = self._labels.get(label)
        if data_channel is None:
            return
        if not data.binary:
            logger.info(
                "Send DataChannel label=%s data=%s",
                label,
                data.data.decode("utf-8", errors="replace"),
            )
        data_channel.send(data)

    def close(self, disconnect_message: DataBuffer, on_close: Callable[[], None]) -> None:
        """Send the disconnect message; ``on_close`` runs once every channel has closed."""
        data_channel = self._labels.get(SIGNALING_LABEL)
        if data_channel is None:
            on_close()
            return
        self._on_close = on_close
        data_channel.send(disconnect_message)

    def on_data_channel(self, data_channel: DataChannel) -> None:
        thunk = _Thunk(self, data_channel)
        data_channel.register_observer(thunk)
        self._thunks[thunk] = data_channel
        self._labels.setdefault(data_channel.label, data_channel)

    def _on_state_change(self, thunk: _Thunk) -> None:
        data_channel = self._thunks[thunk]
        if data_channel.state is DataChannelState.CLOSED:
            self._labels.pop(data_channel.label, None)
            del self._thunks[thunk]
            data_channel.unregister_observer()
            logger.info("DataChannel closed label=%s", data_channel.label)
        observer = self._observer
        on_close = self._on_close
        empty = not self._thunks
        if on_close is not None and empty:
            self._on_close = None
        observer.on_state_change(data_channel)
        if on_close is not None and empty:
            logger.info("DataChannel closed all")
            on_close()

    def _on_message(self, thunk: _Thunk, buffer: DataBuffer) -> None:
        self._observer.on_message(self._thunks[thunk], buffer)

    def _on_buffered_amount_change(self, thunk: _Thunk, previous_amount: int) -> None:
        logger.debug(
            "DataChannel buffered amount changed label=%s previous_amount=%d",
            thunk.data_channel.label,
            previous_amount,
        )


class _LoopPoster(DataChannelObserver):
    """Moves observer calls onto an event loop, from whichever thread they arrive."""

    def __init__(self, loop: asyncio.AbstractEventLoop, observer: DataChannelObserver) -> None:
        self._loop = loop
        self._observer = observer

    def on_state_change(self, data_channel: DataChannel) -> None:
        self._loop.call_soon_threadsafe(self._observer.on_state_change, data_channel)

    def on_message(self, data_channel: DataChannel, buffer: DataBuffer) -> None:
        self._loop.call_soon_threadsafe(self._observer.on_message, data_channel, buffer)


class LoopDataChannel:
    """A SoraDataChannel whose events and close notification run on an event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, observer: DataChannelObserver) -> None:
        self._loop = loop
        self._dc = SoraDataChannel(_LoopPoster(loop, observer))
        self._timer: asyncio.TimerHandle | None = None

    def is_open(self, label: str) -> bool:
        return self._dc.is_open(label)

    def send(self, label: str, data: DataBuffer) -> None:
        self._dc.send(label, data)

    def close(
        self,
        disconnect_message: DataBuffer,
        on_close: Callable[[], None],
        disconnect_wait_timeout: float = 5,
    ) -> None:
        """Close all channels; ``on_close`` also runs if they are not closed in time."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(disconnect_wait_timeout, on_close)

        def finish() -> None:
            if self._timer is not None:
                self._timer.cancel()
            on_close()

        self._dc.close(disconnect_message, lambda: self._loop.call_soon_threadsafe(finish))

    def on_data_channel(self, data_channel: DataChannel) -> None:
        self._dc.on_data_channel(data_channel)