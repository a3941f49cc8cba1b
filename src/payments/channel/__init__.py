"""Notification channel factory.

Provides get_channel() / set_channel() to swap implementations. The default
is the in-process channel fed by POST /mpesa/callback.
"""

from payments.channel.in_memory import InMemoryNotificationChannel
from payments.channel.port import NotificationChannel

_current_channel: NotificationChannel | None = None


def get_channel() -> NotificationChannel:
    """Return the current notification channel."""
    global _current_channel
    if _current_channel is None:
        _current_channel = InMemoryNotificationChannel()
    return _current_channel


def set_channel(channel: NotificationChannel) -> None:
    """Override the active channel (useful for tests)."""
    global _current_channel
    _current_channel = channel


def reset_channel() -> None:
    """Reset to the default channel."""
    global _current_channel
    _current_channel = None
