"""
Fire-and-forget event publishing for capacity and status changes.

Subscribers connect to ``booking_events`` (optionally for one topic) and are
called with the topic as sender and an ``event`` keyword argument. A failing
subscriber is logged and never breaks the operation that emitted the event.
"""
from blinker import Namespace
from flask import current_app, has_app_context

_signals = Namespace()

booking_events = _signals.signal("booking-events")


def publish(topic: str, event: dict):
    for receiver in list(booking_events.receivers_for(topic)):
        try:
            receiver(topic, event=event)
        except Exception:
            if has_app_context():
                current_app.logger.exception("Subscriber failed for %s", topic)


def capacity_topic(facility_id) -> str:
    return f"lot-{facility_id}"


def booking_topic(booking_id) -> str:
    return f"booking-{booking_id}"
