"""Event bus for connection and message notifications."""

from logiq_client.events.bus import EventBus, EventName, Listener

__all__ = ["EventBus", "EventName", "Listener"]
