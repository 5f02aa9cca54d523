"""Classification of inbound frames.

Every text frame from the node is either a push notification (it carries a
`method`), a reply to one of our requests (it carries an `id` with a `result`
or an `error`), or something we cannot use. `classify` turns a raw frame into
exactly one of those shapes and never raises.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from solana_socket.shared.exceptions import DeserializationError
from solana_socket.types import (
    NOTIFICATION_METHODS,
    AccountNotification,
    ErrorReply,
    LogsNotification,
    ProgramNotification,
    ServerNotificationAdapter,
    SignatureNotification,
    SubscriptionConfirmation,
    UnsubscriptionConfirmation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Malformed:
    """A frame that could not be used.

    `error` is None for frames that are dropped on purpose (notifications for
    methods this client does not know), and set for frames the consumer
    should hear about.
    """

    raw: str
    error: DeserializationError | None = None


InboundMessage = (
    SubscriptionConfirmation
    | UnsubscriptionConfirmation
    | AccountNotification
    | ProgramNotification
    | SignatureNotification
    | LogsNotification
    | ErrorReply
    | Malformed
)


def _normalize_id(document: dict[str, Any]) -> dict[str, Any]:
    # Request ids are minted as strings, but some nodes echo numeric-looking ids back as numbers.
    request_id = document.get("id")
    if isinstance(request_id, int) and not isinstance(request_id, bool):
        return {**document, "id": str(request_id)}
    return document


def _invalid(raw: str, message: str, exc: ValidationError) -> Malformed:
    logger.debug(f"{message}: {exc}")
    return Malformed(raw, DeserializationError(f"{message} ({exc.error_count()} validation errors)", data=raw))


def classify(raw: str | bytes) -> InboundMessage:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        return Malformed(raw, DeserializationError(f"Invalid JSON: {e}", data=raw))

    if not isinstance(document, dict):
        return Malformed(raw, DeserializationError("Expected a JSON object", data=raw))

    method = document.get("method")
    if isinstance(method, str):
        if method not in NOTIFICATION_METHODS:
            logger.debug(f"Dropping message with unrecognised method {method!r}")
            return Malformed(raw)
        try:
            return ServerNotificationAdapter.validate_python(document)
        except ValidationError as e:
            return _invalid(raw, f"Invalid {method} payload", e)

    if "error" in document:
        try:
            return ErrorReply.model_validate(_normalize_id(document))
        except ValidationError as e:
            return _invalid(raw, "Invalid error reply", e)

    if "id" in document and "result" in document:
        document = _normalize_id(document)
        # The concrete JSON type of the result decides the reply kind, once. A
        # boolean never doubles as a subscription handle.
        if isinstance(document["result"], bool):
            try:
                return UnsubscriptionConfirmation.model_validate(document)
            except ValidationError as e:
                return _invalid(raw, "Invalid unsubscribe confirmation", e)
        try:
            return SubscriptionConfirmation.model_validate(document)
        except ValidationError as e:
            return _invalid(raw, "Invalid subscribe confirmation", e)

    return Malformed(raw, DeserializationError("Unrecognised message", data=raw))
