"""Transport implementations for the socket client.

- WebSocketTransport: Websocket connection to an RPC node
- MemoryTransport: In-process transport driven by the caller, for tests

Example:
    ```python
    from solana_socket.client import SolanaSocket
    from solana_socket.client.transports import WebSocketTransport

    async with SolanaSocket(WebSocketTransport("wss://api.devnet.solana.com")) as socket:
        await socket.start(consumer)
        await socket.logs_subscribe_all()
    ```
"""

from solana_socket.client.transports.base import Transport, TransportStreams
from solana_socket.client.transports.memory import MemoryTransport
from solana_socket.client.transports.websocket import WebSocketTransport

__all__ = [
    "Transport",
    "TransportStreams",
    "MemoryTransport",
    "WebSocketTransport",
]
