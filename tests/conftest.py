"""
Shared fixtures: an isolated event bus and an in-memory transport whose
lifecycle is driven by the test.
"""

from typing import List, Optional

import pytest

from logiq_client.events.bus import EventBus, EventName
from logiq_client.jsonrpc.errors import TransportError
from logiq_client.transport.interface import Transport, TransportListener


class FakeTransport(Transport):
    """Transport that records sent frames; tests drive it with open(), drop(), deliver() and fail()"""

    def __init__(self, address: str):
        super().__init__(address)
        self.listener: Optional[TransportListener] = None
        self.sent: List[str] = []
        self.opened = False
        self.close_requested = False
        self.fail_sends = False

    def start(self, listener: TransportListener) -> None:
        self.listener = listener

    def send(self, text: str) -> None:
        if not self.opened or self.fail_sends:
            raise TransportError(f"Fake transport to {self.address} is not open")
        self.sent.append(text)

    def close(self) -> None:
        self.close_requested = True

    def is_open(self) -> bool:
        return self.opened

    # Test controls
    def open(self):
        self.opened = True
        self.listener.on_open()

    def drop(self):
        self.opened = False
        self.listener.on_close()

    def deliver(self, text: str):
        self.listener.on_message(text)

    def fail(self, cause: Exception):
        self.listener.on_error(cause)


class TransportRecorder:
    """Transport factory remembering every transport it created"""

    def __init__(self):
        self.transports: List[FakeTransport] = []

    def __call__(self, address: str) -> FakeTransport:
        transport = FakeTransport(address)
        self.transports.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.transports[-1]


class EventRecorder:
    """Listener collecting (event_name, source, data) tuples"""

    def __init__(self):
        self.events = []

    def __call__(self, event_name, source, data):
        self.events.append((event_name, source, data))

    def names(self) -> List[str]:
        return [event[0] for event in self.events]

    def of(self, event_name: str):
        return [event for event in self.events if event[0] == event_name]


@pytest.fixture
def bus():
    """Event bus private to one test"""
    return EventBus()


@pytest.fixture
def transports():
    return TransportRecorder()


@pytest.fixture
def recorder(bus):
    """Recorder subscribed to every event the client publishes"""
    events = EventRecorder()
    for name, value in vars(EventName).items():
        if not name.startswith("_"):
            bus.subscribe(value, events)
    return events
