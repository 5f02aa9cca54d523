"""Transport port for the socket client."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from solana_socket.shared.message import TransportEvent

TransportStreams = tuple[MemoryObjectReceiveStream[TransportEvent], MemoryObjectSendStream[str]]


@runtime_checkable
class Transport(Protocol):
    """Protocol for socket transports.

    `connect()` opens one connection and yields a read stream of transport
    events and a write stream of outbound text frames. Leaving the context
    closes the connection. Each call is a separate connection; a transport
    may be connected again after the previous connection ended.

    Example:
        ```python
        class MyTransport:
            @asynccontextmanager
            async def connect(self):
                # Open the connection...
                yield read_stream, write_stream
                # Close it...
        ```
    """

    def connect(self) -> AbstractAsyncContextManager[TransportStreams]:
        """Open a connection and yield `(read_stream, write_stream)`."""
        ...
