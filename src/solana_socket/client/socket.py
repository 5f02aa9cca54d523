from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Any

import anyio
from anyio.abc import TaskGroup, TaskStatus
from anyio.streams.memory import MemoryObjectSendStream
from pydantic_core import PydanticSerializationError
from typing_extensions import Self, assert_never

from solana_socket.client.correlator import SubscriptionCorrelator
from solana_socket.client.dispatcher import EventDispatcher, SocketEventsConsumer
from solana_socket.client.settings import SocketSettings
from solana_socket.client.transports.base import Transport
from solana_socket.client.transports.websocket import WebSocketTransport
from solana_socket.shared.classifier import Malformed, classify
from solana_socket.shared.exceptions import DisconnectedError, SerializationError, SocketError, TransportError
from solana_socket.shared.message import Connected, Disconnected, TextReceived, TransportFailed
from solana_socket.shared.request import RequestBuilder
from solana_socket.types import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    AccountNotification,
    Commitment,
    ErrorData,
    ErrorReply,
    JSONRPCRequest,
    LogsNotification,
    ProgramNotification,
    RequestId,
    SignatureNotification,
    SubscriptionConfirmation,
    SubscriptionKind,
    UnsubscriptionConfirmation,
)

logger = logging.getLogger(__name__)


def _subscription_config(commitment: Commitment) -> dict[str, Any]:
    return {"commitment": commitment, "encoding": "base64"}


class SolanaSocket:
    """Subscription client for the Solana websocket RPC API.

    The socket is an async context manager that owns the background task
    reading from the transport. `start()` opens a connection and binds the
    consumer that receives events; `stop()` closes it. Subscribe and
    unsubscribe calls return as soon as the request is written, with the
    request id the confirmation will carry; the subscription handle arrives
    later through the consumer's `subscribed` callback.

    Example:
        async with SolanaSocket(WebSocketTransport(url)) as socket:
            await socket.start(consumer)
            request_id = await socket.account_subscribe(pubkey)

    Subscriptions do not survive a disconnect. The socket does not reconnect
    on its own; a consumer that wants to can call `start()` again from its
    `disconnected` callback and re-subscribe.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        enable_debug_logs: bool = False,
        request_builder: RequestBuilder | None = None,
    ) -> None:
        self._transport = transport
        self._enable_debug_logs = enable_debug_logs
        self._request_builder = request_builder or RequestBuilder()
        self._correlator = SubscriptionCorrelator()
        self._dispatcher = EventDispatcher()
        # Guards the write stream together with the correlator entry for the request being written.
        self._lock: anyio.Lock | None = None
        self._task_group: TaskGroup | None = None
        self._connection_scope: anyio.CancelScope | None = None
        self._write_stream: MemoryObjectSendStream[str] | None = None

    @classmethod
    def from_settings(cls, settings: SocketSettings | None = None) -> SolanaSocket:
        settings = settings or SocketSettings()
        return cls(WebSocketTransport.from_settings(settings), enable_debug_logs=settings.enable_debug_logs)

    async def __aenter__(self) -> Self:
        self._lock = anyio.Lock()
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        await self.stop()
        assert self._task_group is not None
        self._task_group.cancel_scope.cancel()
        try:
            return await self._task_group.__aexit__(exc_type, exc_val, exc_tb)
        finally:
            self._task_group = None

    @property
    def connected(self) -> bool:
        return self._write_stream is not None

    @property
    def epoch(self) -> int:
        return self._correlator.epoch

    @property
    def active_subscriptions(self) -> dict[int, SubscriptionKind]:
        return dict(self._correlator.active)

    async def start(self, consumer: SocketEventsConsumer) -> None:
        """Bind `consumer` and open the transport connection.

        Returns once the connection task is running; `connected()` fires on the
        consumer when the connection is open. Starting an already started socket
        restarts it, also from inside one of the consumer's callbacks.

        The consumer is held by weak reference. A consumer that does not support
        weak references raises TypeError and leaves the socket as it was.
        """
        if self._task_group is None:
            raise RuntimeError("SolanaSocket must be used as an async context manager")

        self._dispatcher.bind(consumer)
        if self._connection_scope is not None:
            self._connection_scope.cancel()
            self._release(self._connection_scope)

        # The caller may be running inside the connection that was just cancelled.
        with anyio.CancelScope(shield=True):
            await self._task_group.start(self._run_connection)

    async def stop(self) -> None:
        """Close the connection and release the consumer. No events are delivered afterwards."""
        self._dispatcher.unbind()
        if self._connection_scope is not None:
            self._connection_scope.cancel()
        self._release(self._connection_scope)

    async def account_subscribe(self, pubkey: str) -> RequestId | ErrorData:
        return await self._subscribe(SubscriptionKind.ACCOUNT, [pubkey, _subscription_config("recent")])

    async def account_unsubscribe(self, handle: int) -> RequestId | ErrorData:
        return await self._unsubscribe(SubscriptionKind.ACCOUNT, handle)

    async def signature_subscribe(self, signature: str) -> RequestId | ErrorData:
        return await self._subscribe(SubscriptionKind.SIGNATURE, [signature, _subscription_config("confirmed")])

    async def signature_unsubscribe(self, handle: int) -> RequestId | ErrorData:
        return await self._unsubscribe(SubscriptionKind.SIGNATURE, handle)

    async def logs_subscribe(self, mentions: str | Sequence[str]) -> RequestId | ErrorData:
        """Subscribe to logs of transactions that mention any of the given addresses.

        A single address may be passed as a plain string.
        """
        if isinstance(mentions, str):
            mentions = [mentions]
        return await self._subscribe(
            SubscriptionKind.LOGS, [{"mentions": list(mentions)}, _subscription_config("confirmed")]
        )

    async def logs_subscribe_all(self) -> RequestId | ErrorData:
        """Subscribe to logs of all transactions except simple vote transactions."""
        return await self._subscribe(SubscriptionKind.LOGS, ["all", _subscription_config("confirmed")])

    async def logs_unsubscribe(self, handle: int) -> RequestId | ErrorData:
        return await self._unsubscribe(SubscriptionKind.LOGS, handle)

    async def program_subscribe(self, pubkey: str) -> RequestId | ErrorData:
        return await self._subscribe(SubscriptionKind.PROGRAM, [pubkey, _subscription_config("confirmed")])

    async def program_unsubscribe(self, handle: int) -> RequestId | ErrorData:
        return await self._unsubscribe(SubscriptionKind.PROGRAM, handle)

    async def _subscribe(self, kind: SubscriptionKind, params: Sequence[Any]) -> RequestId | ErrorData:
        request = self._request_builder.build(kind.subscribe_method, params)
        return await self._write(request, lambda request_id: self._correlator.track_subscribe(request_id, kind))

    async def _unsubscribe(self, kind: SubscriptionKind, handle: int) -> RequestId | ErrorData:
        request = self._request_builder.build(kind.unsubscribe_method, [handle])
        return await self._write(request, lambda request_id: self._correlator.track_unsubscribe(request_id, handle))

    async def _write(self, request: JSONRPCRequest, track: Callable[[RequestId], None]) -> RequestId | ErrorData:
        try:
            text = request.model_dump_json(by_alias=True)
        except (PydanticSerializationError, ValueError) as e:
            logger.warning(f"Could not serialize {request.method.value} request: {e}")
            return SerializationError(f"Could not serialize {request.method.value} request", data=str(e)).error

        if self._lock is None:
            return DisconnectedError().error

        async with self._lock:
            write_stream = self._write_stream
            if write_stream is None:
                return DisconnectedError().error

            track(request.id)
            try:
                await write_stream.send(text)
            except (anyio.ClosedResourceError, anyio.BrokenResourceError):
                self._correlator.forget(request.id)
                return DisconnectedError("Socket connection is closed").error

        if self._enable_debug_logs:
            logger.info(f"-> {text}")
        else:
            logger.debug(f"-> {text}")
        return request.id

    async def _run_connection(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        with anyio.CancelScope() as scope:
            self._connection_scope = scope
            task_status.started()
            try:
                disconnect = await self._receive_loop()
            except Exception as e:
                logger.warning(f"Socket transport failed: {e!r}")
                await self._dispatcher.error(TransportError(e))
                disconnect = Disconnected(reason=str(e) or type(e).__name__, code=ABNORMAL_CLOSURE)
            finally:
                self._release(scope)

            logger.debug(f"Socket disconnected ({disconnect.code}): {disconnect.reason}")
            await self._dispatcher.disconnected(disconnect.reason, disconnect.code)

    async def _receive_loop(self) -> Disconnected:
        async with self._transport.connect() as (read_stream, write_stream):
            assert self._lock is not None
            async with self._lock:
                # A new connection is a new epoch: nothing from before it applies.
                self._correlator.reset()
                self._write_stream = write_stream

            async with read_stream:
                async for event in read_stream:
                    if isinstance(event, Disconnected):
                        return event
                    await self._handle_event(event)

        return Disconnected(reason="Unknown", code=NORMAL_CLOSURE)

    def _release(self, scope: anyio.CancelScope | None) -> None:
        if scope is not self._connection_scope:
            # A newer connection has taken over since this one was stopped.
            return
        self._connection_scope = None
        self._write_stream = None
        self._correlator.reset()

    async def _handle_event(self, event: Connected | TextReceived | TransportFailed) -> None:
        match event:
            case Connected():
                await self._dispatcher.connected()
            case TextReceived(payload=payload):
                await self._handle_text(payload)
            case TransportFailed(error=error):
                logger.warning(f"Socket transport error: {error!r}")
                await self._dispatcher.error(TransportError(error))
            case _:
                assert_never(event)

    async def _handle_text(self, payload: str) -> None:
        if self._enable_debug_logs:
            logger.info(f"<- {payload}")
        else:
            logger.debug(f"<- {payload}")

        message = classify(payload)
        match message:
            case SubscriptionConfirmation():
                self._correlator.confirm_subscription(message)
                await self._dispatcher.subscribed(message.result, message.id)
            case UnsubscriptionConfirmation():
                if self._correlator.confirm_unsubscription(message):
                    await self._dispatcher.unsubscribed(message.id)
            case AccountNotification() | ProgramNotification() | SignatureNotification() | LogsNotification():
                self._correlator.route(message)
                await self._dispatcher.notification(message)
            case ErrorReply():
                self._correlator.fail(message.id)
                await self._dispatcher.error(SocketError(message.error))
            case Malformed(error=None):
                pass
            case Malformed(error=error):
                logger.warning(f"Could not decode message: {error}")
                await self._dispatcher.error(error)
            case _:
                assert_never(message)
