import logging
from collections.abc import Mapping
from types import MappingProxyType

from solana_socket.types import (
    AccountNotification,
    LogsNotification,
    ProgramNotification,
    RequestId,
    SignatureNotification,
    SubscriptionConfirmation,
    SubscriptionKind,
    UnsubscriptionConfirmation,
)

logger = logging.getLogger(__name__)

Notification = AccountNotification | ProgramNotification | SignatureNotification | LogsNotification


class SubscriptionCorrelator:
    """Tracks which server handle belongs to which subscribe call.

    Outbound calls are recorded under their request id. When the node confirms a
    subscribe, the handle it assigned enters the active set with the kind of
    the original call; when it confirms an unsubscribe, the handle named by
    that call leaves the set.

    All state belongs to one connection epoch. `reset()` drops it and starts the
    next epoch; handles and pending ids from an earlier epoch mean nothing to
    the new connection.

    The correlator does no locking of its own. Every method is synchronous, so
    callers on one event loop see each update as atomic.
    """

    def __init__(self) -> None:
        self._epoch = 0
        self._pending_subscribes: dict[RequestId, SubscriptionKind] = {}
        self._pending_unsubscribes: dict[RequestId, int] = {}
        self._active: dict[int, SubscriptionKind] = {}

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def active(self) -> Mapping[int, SubscriptionKind]:
        return MappingProxyType(self._active)

    @property
    def pending(self) -> frozenset[RequestId]:
        return frozenset(self._pending_subscribes) | frozenset(self._pending_unsubscribes)

    def track_subscribe(self, request_id: RequestId, kind: SubscriptionKind) -> None:
        self._pending_subscribes[request_id] = kind

    def track_unsubscribe(self, request_id: RequestId, handle: int) -> None:
        self._pending_unsubscribes[request_id] = handle

    def forget(self, request_id: RequestId) -> None:
        """Drop a call that never made it onto the wire."""
        self._pending_subscribes.pop(request_id, None)
        self._pending_unsubscribes.pop(request_id, None)

    def fail(self, request_id: RequestId | int | None) -> None:
        """Abandon a call the node answered with an error."""
        if request_id is None:
            return
        self.forget(str(request_id))

    def confirm_subscription(self, confirmation: SubscriptionConfirmation) -> SubscriptionKind | None:
        """Record the handle a subscribe call was given.

        Returns the kind of the original call, or None when the confirmation
        matches no pending subscribe (for instance one sent before a reset). Such
        handles are not recorded.
        """
        kind = self._pending_subscribes.pop(confirmation.id, None)
        if kind is None:
            logger.debug(f"Subscription {confirmation.result} confirmed for unknown request {confirmation.id}")
            return None

        self._active[confirmation.result] = kind
        return kind

    def confirm_unsubscription(self, confirmation: UnsubscriptionConfirmation) -> bool:
        """Apply an unsubscribe reply. Returns whether it should be reported as unsubscribed."""
        handle = self._pending_unsubscribes.pop(confirmation.id, None)
        if not confirmation.result:
            logger.warning(f"Node rejected unsubscribe request {confirmation.id} for subscription {handle}")
            return False

        if handle is None:
            logger.debug(f"Unsubscribe confirmed for unknown request {confirmation.id}")
        else:
            self._active.pop(handle, None)
        return True

    def route(self, notification: Notification) -> SubscriptionKind | None:
        """Look up the recorded kind for the handle a notification refers to.

        Notifications for handles outside the active set are still delivered:
        they may overtake their confirmation or trail an unsubscribe.
        """
        handle = notification.params.subscription
        kind = self._active.get(handle)
        if kind is not None and kind.notification_method.value != notification.method:
            logger.warning(f"Subscription {handle} was opened as {kind.value} but received {notification.method}")
        return kind

    def reset(self) -> None:
        if self._pending_subscribes or self._pending_unsubscribes or self._active:
            logger.debug(
                f"Clearing epoch {self._epoch}: {len(self._active)} active subscriptions, "
                f"{len(self._pending_subscribes) + len(self._pending_unsubscribes)} pending requests"
            )
        self._pending_subscribes.clear()
        self._pending_unsubscribes.clear()
        self._active.clear()
        self._epoch += 1
