"""
Event bus

Process-wide publish/subscribe registry that fans connection and message
events out to listeners inside the hosting application. Listeners are plain
callables taking ``(event_name, source, data)``.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from logiq_client.jsonrpc.errors import InvalidArgument
from logiq_client.telemetry.metrics import increment_counter

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any, Any], None]


class EventName:
    """Names of the events published by connections and server handles"""
    CONNECTION_OPENED = "connection-opened"
    CONNECTION_CLOSED = "connection-closed"
    REQUEST_SENT = "request-sent"
    RESPONSE_RECEIVED = "response-received"
    RESPONSE_ERROR = "response-error"
    TRANSPORT_ERROR = "transport-error"
    REQUESTS_REQUEUED = "requests-requeued"
    REQUESTS_DROPPED = "requests-dropped"


class EventBus:
    """Map of event names to ordered, duplicate free listener lists

    EventBus.get_instance() returns the process-wide bus. Separate instances
    may be created and injected where isolation is needed (tests).
    """

    _instance: Optional["EventBus"] = None
    _instance_lock = threading.Lock()

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}
        self._lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> "EventBus":
        """Return the process-wide bus, creating it on first use"""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def subscribe(self, event_name: str, listener: Listener) -> None:
        """Add a listener for the specified event

        Subscribing the same listener twice to one event has no effect.

        Raises:
            InvalidArgument: event_name or listener is missing
        """
        if not event_name:
            raise InvalidArgument("event_name cannot be empty")
        if listener is None or not callable(listener):
            raise InvalidArgument(f"Invalid listener: {listener!r}")

        with self._lock:
            listeners = self._listeners.setdefault(event_name, [])
            if listener not in listeners:
                listeners.append(listener)
                logger.debug(f"Listener added for {event_name}: {listener!r}")

    def unsubscribe(self, listener: Listener, event_name: Optional[str] = None) -> None:
        """Remove a listener from one event, or from every event if none is given

        Raises:
            InvalidArgument: listener is missing
        """
        if listener is None:
            raise InvalidArgument("listener cannot be None")

        with self._lock:
            for name, listeners in self._listeners.items():
                if event_name is None or event_name == name:
                    if listener in listeners:
                        listeners.remove(listener)

    def publish(self, event_name: str, source: Any, data: Any = None) -> None:
        """Notify every listener of an event, in subscription order

        A listener that raises is logged and skipped; the rest are still called.

        Raises:
            InvalidArgument: event_name is missing
        """
        if not event_name:
            raise InvalidArgument("event_name cannot be empty")

        with self._lock:
            listeners = list(self._listeners.get(event_name, ()))

        for listener in listeners:
            try:
                listener(event_name, source, data)
            except Exception:
                logger.exception(f"Listener {listener!r} failed handling {event_name}")
                increment_counter("logiq.bus.listener_errors", 1, {"event": event_name})

    def listeners(self, event_name: str) -> List[Listener]:
        """Return a snapshot of the listeners for an event"""
        with self._lock:
            return list(self._listeners.get(event_name, ()))

    def clear(self, event_name: Optional[str] = None) -> None:
        """Remove all listeners of one event, or of all events"""
        with self._lock:
            if event_name is None:
                self._listeners.clear()
            else:
                self._listeners.pop(event_name, None)
