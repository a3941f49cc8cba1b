"""In-process notification channel.

The callback endpoint and the checkout sessions live in the same process, so
delivery is a direct call to the subscribed handlers. The most recent
deliveries are kept in ``delivered`` for inspection.
"""

from collections import deque

import structlog

from payments.channel.events import CallbackEvent
from payments.channel.port import CallbackHandler, NotificationChannel, Subscription

logger = structlog.get_logger(__name__)

MAX_DELIVERED = 100


class InMemorySubscription(Subscription):
    def __init__(self, channel: "InMemoryNotificationChannel", correlation_id: str, handler: CallbackHandler) -> None:
        self._channel = channel
        self.correlation_id = correlation_id
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._channel._remove(self)


class InMemoryNotificationChannel(NotificationChannel):
    def __init__(self, history_size: int = MAX_DELIVERED) -> None:
        self._subscriptions: dict[str, list[InMemorySubscription]] = {}
        self.delivered: deque[CallbackEvent] = deque(maxlen=history_size)

    def subscribe(self, correlation_id: str, handler: CallbackHandler) -> Subscription:
        subscription = InMemorySubscription(self, correlation_id, handler)
        self._subscriptions.setdefault(correlation_id, []).append(subscription)
        return subscription

    def _remove(self, subscription: InMemorySubscription) -> None:
        subscribers = self._subscriptions.get(subscription.correlation_id, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._subscriptions.pop(subscription.correlation_id, None)

    def deliver(self, event: CallbackEvent) -> int:
        self.delivered.append(event)
        # Handlers may cancel their own subscription while running
        subscribers = list(self._subscriptions.get(event.correlation_id, []))
        for subscription in subscribers:
            subscription.handler(event)
        logger.info(
            "Callback delivered",
            correlation_id=event.correlation_id,
            result_code=event.result_code,
            handlers=len(subscribers),
        )
        return len(subscribers)
