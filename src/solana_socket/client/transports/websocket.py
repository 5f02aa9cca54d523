"""
Websocket Transport Module

This module implements the socket transport over a websocket connection to
an RPC node, using the `websockets` library.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import anyio
import anyio.lowlevel
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from solana_socket.client.transports.base import TransportStreams
from solana_socket.shared.message import Connected, Disconnected, TextReceived, TransportEvent, TransportFailed
from solana_socket.types import ABNORMAL_CLOSURE

if TYPE_CHECKING:
    from solana_socket.client.settings import SocketSettings

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """Websocket connection to an RPC node.

    Each `connect()` opens a new websocket. A reader task turns inbound text
    frames into `TextReceived` events, preceded by `Connected` and followed by
    `Disconnected` carrying the close code and reason. A writer task sends the
    frames written to the write stream. Binary frames are ignored; the RPC
    pubsub API only sends text.
    """

    def __init__(
        self,
        url: str,
        *,
        open_timeout: float = 5.0,
        close_timeout: float = 10.0,
        ping_interval: float | None = 20.0,
        ping_timeout: float | None = 20.0,
        max_size: int | None = 2**24,
        additional_headers: dict[str, str] | None = None,
    ) -> None:
        self.url = url
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.max_size = max_size
        self.additional_headers = additional_headers

    @classmethod
    def from_settings(cls, settings: SocketSettings) -> WebSocketTransport:
        return cls(
            settings.url,
            open_timeout=settings.open_timeout,
            close_timeout=settings.close_timeout,
            ping_interval=settings.ping_interval,
            ping_timeout=settings.ping_timeout,
            max_size=settings.max_size,
        )

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[TransportStreams]:
        """
        Open a websocket to the node.

        Yields:
            A tuple containing:
            - read_stream: Transport events from the connection
            - write_stream: Text frames to send to the node

        Raises:
            TimeoutError: If the opening handshake times out
            OSError: If the connection cannot be established
            websockets.exceptions.InvalidURI: If the url is not a websocket url
            websockets.exceptions.InvalidHandshake: If the node refuses the upgrade
        """
        read_stream: MemoryObjectReceiveStream[TransportEvent]
        read_stream_writer: MemoryObjectSendStream[TransportEvent]

        write_stream: MemoryObjectSendStream[str]
        write_stream_reader: MemoryObjectReceiveStream[str]

        websocket = await websocket_connect(
            self.url,
            open_timeout=self.open_timeout,
            close_timeout=self.close_timeout,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
            max_size=self.max_size,
            additional_headers=self.additional_headers,
        )
        logger.debug(f"Connected to {self.url}")

        read_stream_writer, read_stream = anyio.create_memory_object_stream(0)
        write_stream, write_stream_reader = anyio.create_memory_object_stream(0)

        async def ws_reader(websocket: ClientConnection, events: MemoryObjectSendStream[TransportEvent]) -> None:
            """Forwards frames from the websocket to read_stream."""
            try:
                async with events:
                    await events.send(Connected())
                    try:
                        async for frame in websocket:
                            if isinstance(frame, bytes):
                                logger.debug(f"Ignoring binary frame of {len(frame)} bytes")
                                continue
                            await events.send(TextReceived(frame))
                    except ConnectionClosed as e:
                        logger.debug(f"Websocket closed: {e}")

                    await events.send(
                        Disconnected(
                            reason=websocket.close_reason or "Unknown",
                            code=websocket.close_code or ABNORMAL_CLOSURE,
                        )
                    )
            except (anyio.ClosedResourceError, anyio.BrokenResourceError):
                # The client stopped listening; nothing left to deliver.
                await anyio.lowlevel.checkpoint()

        async def ws_writer(websocket: ClientConnection, errors: MemoryObjectSendStream[TransportEvent]) -> None:
            """Sends frames from write_stream over the websocket."""
            try:
                async with write_stream_reader, errors:
                    async for text in write_stream_reader:
                        try:
                            await websocket.send(text)
                        except ConnectionClosed:
                            # The reader reports the close; stop accepting writes.
                            logger.debug("Dropping outbound frame, websocket is closed")
                            return
                        except WebSocketException as e:
                            logger.warning(f"Failed to send frame: {e}")
                            await errors.send(TransportFailed(e))
            except (anyio.ClosedResourceError, anyio.BrokenResourceError):
                await anyio.lowlevel.checkpoint()

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(ws_reader, websocket, read_stream_writer)
                tg.start_soon(ws_writer, websocket, read_stream_writer.clone())
                try:
                    yield read_stream, write_stream
                finally:
                    tg.cancel_scope.cancel()
                    await read_stream.aclose()
                    await write_stream.aclose()
        finally:
            # Closing must finish even when the surrounding scope was cancelled by stop().
            with anyio.CancelScope(shield=True):
                await websocket.close()
            logger.debug(f"Disconnected from {self.url}")
