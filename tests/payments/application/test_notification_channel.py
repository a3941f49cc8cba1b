"""Tests for the in-process notification channel."""

from payments.channel import get_channel, reset_channel
from payments.channel.events import CallbackEvent
from payments.channel.in_memory import InMemoryNotificationChannel


def _make_event(correlation_id="mrq-1", code=0):
    return CallbackEvent(correlation_id=correlation_id, result_code=code)


class TestSubscriptions:
    def test_delivers_to_matching_subscriber(self):
        channel = InMemoryNotificationChannel()
        received = []
        channel.subscribe("mrq-1", received.append)
        assert channel.deliver(_make_event("mrq-1")) == 1
        assert received == [_make_event("mrq-1")]

    def test_other_correlation_ids_not_delivered(self):
        channel = InMemoryNotificationChannel()
        received = []
        channel.subscribe("mrq-1", received.append)
        assert channel.deliver(_make_event("mrq-2")) == 0
        assert received == []

    def test_cancel_stops_delivery(self):
        channel = InMemoryNotificationChannel()
        received = []
        subscription = channel.subscribe("mrq-1", received.append)
        subscription.cancel()
        assert subscription.active is False
        assert channel.deliver(_make_event()) == 0

    def test_cancel_twice_is_harmless(self):
        channel = InMemoryNotificationChannel()
        subscription = channel.subscribe("mrq-1", lambda event: None)
        subscription.cancel()
        subscription.cancel()
        assert channel.deliver(_make_event()) == 0

    def test_handler_may_cancel_itself(self):
        channel = InMemoryNotificationChannel()
        holder = {}

        def handler(event):
            holder["subscription"].cancel()

        holder["subscription"] = channel.subscribe("mrq-1", handler)
        assert channel.deliver(_make_event()) == 1
        assert channel.deliver(_make_event()) == 0

    def test_deliveries_are_recorded(self):
        channel = InMemoryNotificationChannel()
        channel.deliver(_make_event("a"))
        channel.deliver(_make_event("b", code=1))
        assert [e.correlation_id for e in channel.delivered] == ["a", "b"]

    def test_delivery_record_keeps_only_the_most_recent(self):
        channel = InMemoryNotificationChannel(history_size=2)
        for correlation_id in ("a", "b", "c"):
            channel.deliver(_make_event(correlation_id))
        assert [e.correlation_id for e in channel.delivered] == ["b", "c"]


class TestChannelFactory:
    def test_default_is_in_memory(self):
        reset_channel()
        assert isinstance(get_channel(), InMemoryNotificationChannel)

    def test_same_instance_until_reset(self):
        assert get_channel() is get_channel()
