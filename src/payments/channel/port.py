"""Notification channel port.

The channel carries gateway callbacks to whoever is waiting on a correlation
id. A subscription is an explicit object owned by the payment orchestrator,
so the orchestrator (not the screen) decides when to stop listening.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from payments.channel.events import CallbackEvent

CallbackHandler = Callable[[CallbackEvent], None]


class Subscription(ABC):
    """A cancellable registration for one correlation id."""

    @property
    @abstractmethod
    def active(self) -> bool: ...

    @abstractmethod
    def cancel(self) -> None:
        """Stop delivery. Cancelling twice is harmless."""
        ...


class NotificationChannel(ABC):
    @abstractmethod
    def subscribe(self, correlation_id: str, handler: CallbackHandler) -> Subscription:
        """Deliver events for ``correlation_id`` to ``handler`` until cancelled."""
        ...

    @abstractmethod
    def deliver(self, event: CallbackEvent) -> int:
        """Push ``event`` to its subscribers. Returns how many handlers ran."""
        ...
