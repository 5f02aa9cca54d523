"""Events a transport delivers to the socket client.

A transport yields these on its read stream, in the order they happen on the
connection. `Connected` comes first and `Disconnected` last.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Connected:
    """The connection is open and ready for writes."""


@dataclass(frozen=True)
class Disconnected:
    """The connection closed; no further events follow."""

    reason: str
    code: int


@dataclass(frozen=True)
class TextReceived:
    """A text frame arrived from the node."""

    payload: str


@dataclass(frozen=True)
class TransportFailed:
    """The connection reported an error without closing."""

    error: Exception


TransportEvent = Connected | Disconnected | TextReceived | TransportFailed
