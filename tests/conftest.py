from collections.abc import AsyncGenerator
from typing import Any

import anyio
import pytest

from solana_socket import MemoryTransport, SolanaSocket


@pytest.fixture
def anyio_backend():
    return "asyncio"


class RecordingConsumer:
    """Consumer that records every event it receives, in arrival order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []
        self._changed: anyio.Event | None = None

    def _record(self, name: str, *args: Any) -> None:
        self.events.append((name, args))
        if self._changed is not None:
            self._changed.set()
            self._changed = None

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [args for event, args in self.events if event == name]

    @property
    def names(self) -> list[str]:
        return [event for event, _ in self.events]

    async def wait_for(self, name: str, count: int = 1) -> None:
        while len(self.named(name)) < count:
            if self._changed is None:
                self._changed = anyio.Event()
            await self._changed.wait()

    async def connected(self) -> None:
        self._record("connected")

    async def disconnected(self, reason: str, code: int) -> None:
        self._record("disconnected", reason, code)

    async def account_notification(self, notification: Any) -> None:
        self._record("account_notification", notification)

    async def program_notification(self, notification: Any) -> None:
        self._record("program_notification", notification)

    async def signature_notification(self, notification: Any) -> None:
        self._record("signature_notification", notification)

    async def logs_notification(self, notification: Any) -> None:
        self._record("logs_notification", notification)

    async def subscribed(self, handle: int, request_id: str) -> None:
        self._record("subscribed", handle, request_id)

    async def unsubscribed(self, request_id: str) -> None:
        self._record("unsubscribed", request_id)

    async def error(self, error: Exception | None) -> None:
        self._record("error", error)


@pytest.fixture
def consumer() -> RecordingConsumer:
    return RecordingConsumer()


@pytest.fixture
def transport() -> MemoryTransport:
    return MemoryTransport()


@pytest.fixture
async def socket(transport: MemoryTransport, consumer: RecordingConsumer) -> AsyncGenerator[SolanaSocket, None]:
    async with SolanaSocket(transport) as socket:
        await socket.start(consumer)
        await anyio.wait_all_tasks_blocked()
        yield socket


@pytest.fixture
def account_value() -> dict[str, Any]:
    return {
        "data": ["aGVsbG8gc29sYW5h", "base64"],
        "executable": False,
        "lamports": 33594,
        "owner": "11111111111111111111111111111111",
        "rentEpoch": 635,
        "space": 80,
    }


@pytest.fixture
def notification_frames(account_value: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """One well-formed notification per method, as the node sends them."""

    def frame(method: str, subscription: int, value: Any) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": method,
            "params": {"result": {"context": {"slot": 5208469}, "value": value}, "subscription": subscription},
        }

    return {
        "accountNotification": frame("accountNotification", 12345, account_value),
        "programNotification": frame(
            "programNotification",
            24040,
            {"pubkey": "H4vnBqifaSACnKa7acsxstsY1iV1bvJNxsCY7enrd1hq", "account": account_value},
        ),
        "signatureNotification": frame("signatureNotification", 24006, {"err": None}),
        "logsNotification": frame(
            "logsNotification",
            24041,
            {
                "signature": "5h6xBEauJ3PK6SWCZ1PGjBvj8vDdWG3KpwATGy1ARAXFSDwt8GFXM7W5Ncn16wmqokgpiKRLuS83KUxyZyv2sUYv",
                "err": None,
                "logs": ["Program 83astBRguLMdt2h5U1Tpdq5tjFoJ6noeGwaY3mDLVcri success"],
            },
        ),
    }
