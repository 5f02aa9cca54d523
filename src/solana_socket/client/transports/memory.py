"""In-memory transport for exercising the socket client without a node."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from solana_socket.client.transports.base import TransportStreams
from solana_socket.shared.message import Connected, Disconnected, TextReceived, TransportEvent, TransportFailed


class MemoryTransport:
    """Transport whose far end is driven by the caller.

    The caller plays the RPC node: `feed()` delivers a frame to the client,
    `next_sent()` returns the next frame the client wrote, and `drop()` closes
    the connection from the node's side.
    """

    def __init__(self, buffer_size: int = 32, connect_error: Exception | None = None) -> None:
        """
        Args:
            buffer_size: Capacity of the event and outbound frame buffers
            connect_error: If set, every `connect()` raises it instead of connecting
        """
        self._buffer_size = buffer_size
        self._connect_error = connect_error
        self._events: MemoryObjectSendStream[TransportEvent] | None = None
        self._sent: MemoryObjectReceiveStream[str] | None = None
        self.connections = 0

    @property
    def is_connected(self) -> bool:
        return self._events is not None

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[TransportStreams]:
        if self._connect_error is not None:
            raise self._connect_error

        event_writer, event_reader = anyio.create_memory_object_stream[TransportEvent](self._buffer_size)
        write_stream, write_stream_reader = anyio.create_memory_object_stream[str](self._buffer_size)
        self._events = event_writer
        self._sent = write_stream_reader
        self.connections += 1

        await event_writer.send(Connected())
        try:
            yield event_reader, write_stream
        finally:
            if self._events is event_writer:
                self._events = None
            await event_writer.aclose()
            await event_reader.aclose()
            await write_stream.aclose()
            await write_stream_reader.aclose()

    def _require_events(self) -> MemoryObjectSendStream[TransportEvent]:
        if self._events is None:
            raise RuntimeError("MemoryTransport is not connected")
        return self._events

    async def feed(self, payload: str) -> None:
        """Deliver a text frame to the client."""
        await self._require_events().send(TextReceived(payload))

    async def fail(self, error: Exception) -> None:
        """Report a transport error without closing the connection."""
        await self._require_events().send(TransportFailed(error))

    async def drop(self, reason: str = "Connection dropped", code: int = 1001) -> None:
        """Close the connection from the node's side."""
        events = self._require_events()
        self._events = None
        await events.send(Disconnected(reason=reason, code=code))
        await events.aclose()

    async def next_sent(self) -> str:
        """Return the next frame the client wrote."""
        if self._sent is None:
            raise RuntimeError("MemoryTransport was never connected")
        return await self._sent.receive()
