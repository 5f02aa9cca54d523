from solana_socket.types import (
    DESERIALIZATION_FAILED,
    DISCONNECTED,
    SERIALIZATION_FAILED,
    TRANSPORT_ERROR,
    ErrorData,
)


class SocketError(Exception):
    """Exception carrying a JSON-RPC style error object.

    Raised or surfaced for local failures (see the subclasses) and for error
    replies sent by the RPC node, in which case `error` is the node's own
    error object.

    Attributes:
        error: The ErrorData describing the failure
    """

    error: ErrorData

    def __init__(self, error: ErrorData):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> int:
        return self.error.code


class DisconnectedError(SocketError):
    """A write was attempted while no transport connection is open."""

    def __init__(self, message: str = "Socket is not connected"):
        super().__init__(ErrorData(code=DISCONNECTED, message=message))


class SerializationError(SocketError):
    """An outbound request could not be encoded as JSON."""

    def __init__(self, message: str, data: str | None = None):
        super().__init__(ErrorData(code=SERIALIZATION_FAILED, message=message, data=data))


class DeserializationError(SocketError):
    """An inbound frame was unparsable or did not match any known shape."""

    def __init__(self, message: str, data: str | None = None):
        super().__init__(ErrorData(code=DESERIALIZATION_FAILED, message=message, data=data))


class TransportError(SocketError):
    """Wraps a failure raised by the underlying connection."""

    def __init__(self, cause: BaseException):
        super().__init__(ErrorData(code=TRANSPORT_ERROR, message=str(cause) or type(cause).__name__))
        self.__cause__ = cause
