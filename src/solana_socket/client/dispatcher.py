from __future__ import annotations

import inspect
import logging
import weakref
from collections.abc import Awaitable
from typing import Any, Protocol

from typing_extensions import assert_never

from solana_socket.types import (
    AccountNotification,
    LogsNotification,
    ProgramNotification,
    RequestId,
    SignatureNotification,
)

logger = logging.getLogger(__name__)


class SocketEventsConsumer(Protocol):
    """Receives everything that happens on a socket.

    Every method may be a plain function or a coroutine function. A consumer
    does not need to define all of them; events without a matching method are
    dropped.

    The socket holds its consumer by weak reference, so the consumer must
    support weak references: a class that defines `__slots__` needs a
    `__weakref__` slot.
    """

    def connected(self) -> Awaitable[None] | None: ...

    def disconnected(self, reason: str, code: int) -> Awaitable[None] | None: ...

    def account_notification(self, notification: AccountNotification) -> Awaitable[None] | None: ...

    def program_notification(self, notification: ProgramNotification) -> Awaitable[None] | None: ...

    def signature_notification(self, notification: SignatureNotification) -> Awaitable[None] | None: ...

    def logs_notification(self, notification: LogsNotification) -> Awaitable[None] | None: ...

    def subscribed(self, handle: int, request_id: RequestId) -> Awaitable[None] | None: ...

    def unsubscribed(self, request_id: RequestId) -> Awaitable[None] | None: ...

    def error(self, error: Exception | None) -> Awaitable[None] | None: ...


class SocketEventsHandler:
    """Convenience base class for consumers; every event is ignored unless overridden."""

    async def connected(self) -> None:
        pass

    async def disconnected(self, reason: str, code: int) -> None:
        pass

    async def account_notification(self, notification: AccountNotification) -> None:
        pass

    async def program_notification(self, notification: ProgramNotification) -> None:
        pass

    async def signature_notification(self, notification: SignatureNotification) -> None:
        pass

    async def logs_notification(self, notification: LogsNotification) -> None:
        pass

    async def subscribed(self, handle: int, request_id: RequestId) -> None:
        pass

    async def unsubscribed(self, request_id: RequestId) -> None:
        pass

    async def error(self, error: Exception | None) -> None:
        pass


class EventDispatcher:
    """Delivers socket events to the bound consumer.

    The consumer is held through a weak reference: binding it to a socket does
    not keep it alive, and once it is collected events are dropped.
    """

    def __init__(self) -> None:
        self._consumer: weakref.ReferenceType[Any] | None = None

    @property
    def consumer(self) -> Any | None:
        return self._consumer() if self._consumer is not None else None

    def bind(self, consumer: SocketEventsConsumer) -> None:
        try:
            self._consumer = weakref.ref(consumer)
        except TypeError as e:
            raise TypeError(
                f"{type(consumer).__name__} cannot be weakly referenced; add '__weakref__' to its __slots__"
            ) from e

    def unbind(self) -> None:
        self._consumer = None

    async def _call(self, name: str, *args: Any) -> None:
        consumer = self.consumer
        if consumer is None:
            logger.debug(f"No consumer bound, dropping {name} event")
            return

        callback = getattr(consumer, name, None)
        if callback is None:
            return

        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            # A failing consumer must not take the receive loop down with it.
            logger.exception(f"Consumer raised while handling {name} event")

    async def connected(self) -> None:
        await self._call("connected")

    async def disconnected(self, reason: str, code: int) -> None:
        await self._call("disconnected", reason, code)

    async def subscribed(self, handle: int, request_id: RequestId) -> None:
        await self._call("subscribed", handle, request_id)

    async def unsubscribed(self, request_id: RequestId) -> None:
        await self._call("unsubscribed", request_id)

    async def error(self, error: Exception | None) -> None:
        await self._call("error", error)

    async def notification(
        self,
        notification: AccountNotification | ProgramNotification | SignatureNotification | LogsNotification,
    ) -> None:
        match notification:
            case AccountNotification():
                await self._call("account_notification", notification)
            case ProgramNotification():
                await self._call("program_notification", notification)
            case SignatureNotification():
                await self._call("signature_notification", notification)
            case LogsNotification():
                await self._call("logs_notification", notification)
            case _:
                assert_never(notification)
