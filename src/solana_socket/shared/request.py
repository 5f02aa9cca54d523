from collections.abc import Callable, Sequence
from typing import Any
from uuid import uuid4

from solana_socket.types import JSONRPCRequest, RequestId, SocketMethod


def _uuid_request_id() -> RequestId:
    return str(uuid4())


class RequestBuilder:
    """Builds outbound JSON-RPC requests, stamping each with a fresh id.

    The id factory defaults to random uuid4 strings, which stay unique across
    reconnects as well as within one connection. Tests may pass a
    deterministic factory instead.
    """

    def __init__(self, id_factory: Callable[[], RequestId] | None = None) -> None:
        self._id_factory = id_factory or _uuid_request_id

    def build(self, method: SocketMethod, params: Sequence[Any] = ()) -> JSONRPCRequest:
        return JSONRPCRequest(id=self._id_factory(), method=method, params=tuple(params))
