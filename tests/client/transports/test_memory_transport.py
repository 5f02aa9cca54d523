import pytest

from solana_socket import MemoryTransport
from solana_socket.client.transports import Transport
from solana_socket.shared.message import Connected, Disconnected, TextReceived, TransportFailed

pytestmark = pytest.mark.anyio


def test_transports_satisfy_protocol(transport: MemoryTransport):
    assert isinstance(transport, Transport)


async def test_events_in_order(transport: MemoryTransport):
    error = ConnectionResetError("reset")

    async with transport.connect() as (read_stream, write_stream):
        assert transport.is_connected
        await transport.feed('{"jsonrpc":"2.0"}')
        await transport.fail(error)
        await transport.drop("going away", 1001)

        events = [event async for event in read_stream]

        await write_stream.send("outbound")
        assert await transport.next_sent() == "outbound"

    assert events == [
        Connected(),
        TextReceived('{"jsonrpc":"2.0"}'),
        TransportFailed(error),
        Disconnected(reason="going away", code=1001),
    ]
    assert not transport.is_connected
    assert transport.connections == 1


async def test_requires_connection():
    transport = MemoryTransport()

    with pytest.raises(RuntimeError):
        await transport.feed("{}")
    with pytest.raises(RuntimeError):
        await transport.next_sent()


async def test_connect_error():
    transport = MemoryTransport(connect_error=OSError("refused"))

    with pytest.raises(OSError, match="refused"):
        async with transport.connect():
            pass  # pragma: no cover
    assert transport.connections == 0
