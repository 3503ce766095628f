"""Length-prefixed text packets over TCP, with a reconnecting client."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import struct
from collections.abc import AsyncIterator, Callable
from enum import IntEnum

log = logging.getLogger(__name__)

_HEADER = struct.Struct("<q")


class SocketState(IntEnum):
    CONNECTED = 0
    UNCONNECTED = 1
    RECONNECTING = 2


_STATE_NAMES = {
    SocketState.CONNECTED: "Connected",
    SocketState.UNCONNECTED: "Unconnected",
    SocketState.RECONNECTING: "Reconnecting",
}


def socket_state_to_string(state: object) -> str:
    """Display name of a socket state, 'Unknown' for anything else."""
    for known, name in _STATE_NAMES.items():
        if state == known:
            return name
    return "Unknown"


def encode_packet(text: str) -> bytes:
    """UTF-8 text preceded by its byte length as a signed 64-bit little-endian value.

    Empty text yields no packet at all.
    """
    data = text.encode("utf-8")
    if not data:
        return b""
    return _HEADER.pack(len(data)) + data


class PacketDecoder:
    """Collects bytes and splits them into complete text packets."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete packet."""
        return len(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        """Add bytes and return every packet that is now complete."""
        self._buffer += data
        packets: list[str] = []
        while len(self._buffer) >= _HEADER.size:
            (length,) = _HEADER.unpack_from(self._buffer)
            if length < 0:
                raise ValueError(f"negative packet length: {length}")
            end = _HEADER.size + length
            if len(self._buffer) < end:
                break
            packets.append(bytes(self._buffer[_HEADER.size:end]).decode("utf-8", "replace"))
            del self._buffer[:end]
        return packets


class FramedClient:
    """A TCP client that sends and receives length-prefixed text packets.

    A failed connection attempt is retried after reconnect_delay seconds,
    up to max_attempts attempts (None retries forever).
    """

    def __init__(self, host: str, port: int | str) -> None:
        self.host = host
        self.port = int(port)
        self.reconnect_delay = 1.0
        self.max_attempts: int | None = None
        self.error_string = ""
        self.state_listeners: list[Callable[[SocketState], None]] = []
        self._state = SocketState.UNCONNECTED
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._decoder = PacketDecoder()

    @property
    def state(self) -> SocketState:
        return self._state

    def _set_state(self, state: SocketState) -> None:
        self._state = state
        for listener in self.state_listeners:
            listener(state)

    async def connect(self) -> None:
        """Open the connection, retrying on failure as configured."""
        attempt = 0
        while True:
            attempt += 1
            try:
                self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
            except OSError as exc:
                self.error_string = str(exc)
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    self._set_state(SocketState.UNCONNECTED)
                    raise ConnectionError(
                        f"cannot connect to {self.host}:{self.port}: {exc}"
                    ) from exc
                self._set_state(SocketState.RECONNECTING)
                await asyncio.sleep(self.reconnect_delay)
            else:
                self._decoder = PacketDecoder()
                log.debug("[%s:%s] socket connected", self.host, self.port)
                self._set_state(SocketState.CONNECTED)
                return

    def _require_connected(self) -> None:
        if self._state != SocketState.CONNECTED or self._writer is None:
            raise ConnectionError(
                f"socket not connected, current state: {socket_state_to_string(self._state)}"
            )

    async def send_packet(self, text: str) -> None:
        """Send one text packet; empty text sends nothing."""
        self._require_connected()
        data = encode_packet(text)
        if not data:
            return
        assert self._writer is not None
        self._writer.write(data)
        await self._writer.drain()

    async def receive_packets(self) -> AsyncIterator[str]:
        """Yield packets as they arrive until the peer closes the connection."""
        self._require_connected()
        assert self._reader is not None
        while True:
            data = await self._reader.read(65536)
            if not data:
                self._set_state(SocketState.UNCONNECTED)
                return
            for text in self._decoder.feed(data):
                yield text

    async def close(self) -> None:
        """Close the connection."""
        writer, self._writer, self._reader = self._writer, None, None
        if writer is not None:
            writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()
        if self._state != SocketState.UNCONNECTED:
            self._set_state(SocketState.UNCONNECTED)

    async def __aenter__(self) -> "FramedClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()