"""Wire types for the Solana websocket subscription protocol.

The JSON-RPC envelope models follow JSON-RPC 2.0; the
payload models follow the Solana RPC pubsub documentation.
"""

import base64
from enum import Enum
from typing import Annotated, Any, Final, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool, TypeAdapter

JSONRPC_VERSION: Final[str] = "2.0"

# Code a node replies with when subscribe params are rejected.
INVALID_PARAMS: Final[int] = -32602

# Client-side error codes, outside the range a node uses for its own errors.
DISCONNECTED: Final[int] = -32000
SERIALIZATION_FAILED: Final[int] = -32010
DESERIALIZATION_FAILED: Final[int] = -32011
TRANSPORT_ERROR: Final[int] = -32012

# Websocket close code reported when the connection ends without a close frame.
ABNORMAL_CLOSURE: Final[int] = 1006
NORMAL_CLOSURE: Final[int] = 1000

RequestId = str
SubscriptionHandle = Annotated[int, Field(strict=True, ge=0, lt=2**64)]

Commitment = Literal["processed", "confirmed", "finalized", "recent", "single", "root", "max"]


class SocketMethod(str, Enum):
    """Every method name that travels over the socket."""

    ACCOUNT_SUBSCRIBE = "accountSubscribe"
    ACCOUNT_UNSUBSCRIBE = "accountUnsubscribe"
    ACCOUNT_NOTIFICATION = "accountNotification"
    SIGNATURE_SUBSCRIBE = "signatureSubscribe"
    SIGNATURE_UNSUBSCRIBE = "signatureUnsubscribe"
    SIGNATURE_NOTIFICATION = "signatureNotification"
    LOGS_SUBSCRIBE = "logsSubscribe"
    LOGS_UNSUBSCRIBE = "logsUnsubscribe"
    LOGS_NOTIFICATION = "logsNotification"
    PROGRAM_SUBSCRIBE = "programSubscribe"
    PROGRAM_UNSUBSCRIBE = "programUnsubscribe"
    PROGRAM_NOTIFICATION = "programNotification"


class SubscriptionKind(str, Enum):
    """The four push streams a client can subscribe to."""

    ACCOUNT = "account"
    SIGNATURE = "signature"
    LOGS = "logs"
    PROGRAM = "program"

    @property
    def subscribe_method(self) -> SocketMethod:
        return SocketMethod(f"{self.value}Subscribe")

    @property
    def unsubscribe_method(self) -> SocketMethod:
        return SocketMethod(f"{self.value}Unsubscribe")

    @property
    def notification_method(self) -> SocketMethod:
        return SocketMethod(f"{self.value}Notification")

    @classmethod
    def from_method(cls, method: SocketMethod) -> "SubscriptionKind":
        """Kind of the stream a subscribe, unsubscribe or notification method belongs to."""
        for kind in cls:
            if method in (kind.subscribe_method, kind.unsubscribe_method, kind.notification_method):
                return kind
        raise ValueError(f"{method!r} does not belong to a subscription kind")  # pragma: no cover


NOTIFICATION_METHODS: Final[frozenset[str]] = frozenset(kind.notification_method.value for kind in SubscriptionKind)


class JSONRPCBase(BaseModel):
    """Base class for all JSON-RPC messages."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION


class JSONRPCRequest(JSONRPCBase):
    """An outbound subscribe or unsubscribe call.

    Instances are frozen; the request builder is the only place that mints them.
    """

    model_config = ConfigDict(frozen=True)

    id: RequestId
    method: SocketMethod
    params: tuple[Any, ...] = ()


class ErrorData(BaseModel):
    """Error information, either from a JSON-RPC error reply or raised locally."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Any | None = None


class ErrorReply(JSONRPCBase):
    """A JSON-RPC error response to one of our requests."""

    id: RequestId | int | None = None
    error: ErrorData


class SubscriptionConfirmation(JSONRPCBase):
    """Reply to a subscribe call, carrying the server-assigned handle."""

    id: RequestId
    result: SubscriptionHandle


class UnsubscriptionConfirmation(JSONRPCBase):
    """Reply to an unsubscribe call."""

    id: RequestId
    result: StrictBool


class RpcContext(BaseModel):
    model_config = ConfigDict(extra="allow")

    slot: int


ValueT = TypeVar("ValueT")


class RpcResponse(BaseModel, Generic[ValueT]):
    """The `{context, value}` wrapper Solana puts around notification results."""

    model_config = ConfigDict(extra="allow")

    context: RpcContext
    value: ValueT


class AccountInfo(BaseModel):
    """Account state as pushed by `accountNotification` and `programNotification`."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    lamports: int
    owner: str
    data: list[str] | str | dict[str, Any]
    executable: bool
    rent_epoch: int = Field(alias="rentEpoch")
    space: int | None = None

    @property
    def encoding(self) -> str | None:
        if isinstance(self.data, list) and len(self.data) == 2:
            return self.data[1]
        return None

    def raw_data(self) -> bytes:
        """Decode the account data buffer.

        Only base64 encoded buffers can be decoded; `jsonParsed` data is returned
        by the node as an object and has no raw form.
        """
        if self.encoding == "base64":
            return base64.b64decode(self.data[0])
        raise ValueError(f"Account data is not a base64 buffer (encoding={self.encoding!r})")


class ProgramAccount(BaseModel):
    model_config = ConfigDict(extra="allow")

    pubkey: str
    account: AccountInfo


class SignatureResult(BaseModel):
    """Final status of a watched signature; `err` is None when the transaction succeeded."""

    model_config = ConfigDict(extra="allow")

    err: Any | None = None


class LogsResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    signature: str
    err: Any | None = None
    logs: list[str] = Field(default_factory=list)


ResultT = TypeVar("ResultT")


class NotificationParams(BaseModel, Generic[ResultT]):
    model_config = ConfigDict(extra="allow")

    subscription: SubscriptionHandle
    result: ResultT


class AccountNotification(JSONRPCBase):
    method: Literal["accountNotification"]
    params: NotificationParams[RpcResponse[AccountInfo]]


class ProgramNotification(JSONRPCBase):
    method: Literal["programNotification"]
    params: NotificationParams[RpcResponse[ProgramAccount]]


class SignatureNotification(JSONRPCBase):
    method: Literal["signatureNotification"]
    # "receivedSignature" is pushed when the subscriber asked for receipt notifications.
    params: NotificationParams[RpcResponse[SignatureResult | Literal["receivedSignature"]]]


class LogsNotification(JSONRPCBase):
    method: Literal["logsNotification"]
    params: NotificationParams[RpcResponse[LogsResult]]


ServerNotification = Annotated[
    AccountNotification | ProgramNotification | SignatureNotification | LogsNotification,
    Field(discriminator="method"),
]

ServerNotificationAdapter: TypeAdapter[ServerNotification] = TypeAdapter(ServerNotification)
