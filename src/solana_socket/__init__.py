"""A subscription client for the Solana websocket RPC API.

Subscribe to account, program, signature and log streams and receive the
node's push notifications through a consumer object:

```python
import anyio

from solana_socket import SocketEventsHandler, SolanaSocket, WebSocketTransport


class Printer(SocketEventsHandler):
    async def subscribed(self, handle, request_id):
        print("subscribed", handle)

    async def logs_notification(self, notification):
        print(notification.params.result.value.logs)


async def main():
    printer = Printer()
    async with SolanaSocket(WebSocketTransport("wss://api.devnet.solana.com")) as socket:
        await socket.start(printer)
        await socket.logs_subscribe_all()
        await anyio.sleep(30)


anyio.run(main)
```
"""

from .client.dispatcher import SocketEventsConsumer, SocketEventsHandler
from .client.settings import SocketSettings
from .client.socket import SolanaSocket
from .client.transports import MemoryTransport, WebSocketTransport
from .shared.exceptions import (
    DeserializationError,
    DisconnectedError,
    SerializationError,
    SocketError,
    TransportError,
)
from .types import SocketMethod, SubscriptionKind

__all__ = [
    "DeserializationError",
    "DisconnectedError",
    "MemoryTransport",
    "SerializationError",
    "SocketError",
    "SocketEventsConsumer",
    "SocketEventsHandler",
    "SocketMethod",
    "SocketSettings",
    "SolanaSocket",
    "SubscriptionKind",
    "TransportError",
    "WebSocketTransport",
]
