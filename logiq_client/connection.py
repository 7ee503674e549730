"""
Connection to the LogIQ appliance

A Connection owns one transport for its whole life and moves through
CONNECTING -> OPEN -> CLOSED (or CONNECTING -> CLOSED when opening fails).
Requests sent before the transport opens are queued and flushed in order
once it does. Inbound frames are decoded into RpcResponse objects and
published on the event bus; nothing raised while handling transport
notifications escapes back into the transport.
"""

import logging
import threading
import time
from collections import deque
from enum import Enum
from typing import Callable, Deque, Iterable, List, Optional

from logiq_client.events.bus import EventBus, EventName
from logiq_client.jsonrpc.errors import InvalidArgument, MalformedResponse, TransportError
from logiq_client.jsonrpc.request import RpcRequest
from logiq_client.jsonrpc.response import RpcResponse
from logiq_client.telemetry.metrics import increment_counter, record_latency
from logiq_client.telemetry.tracer import create_span
from logiq_client.transport.interface import Transport, TransportListener
from logiq_client.transport.websocket import WebSocketTransport
from logiq_client.utils.serialization import clip

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str], Transport]


class ConnectionState(Enum):
    """Lifecycle states of a Connection"""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Connection(TransportListener):
    """One transport socket plus the queue of requests not yet transmitted

    Connections are not reused: once CLOSED, a new instance is needed.
    """

    def __init__(self,
                 address: str,
                 bus: Optional[EventBus] = None,
                 transport_factory: Optional[TransportFactory] = None,
                 pending: Iterable[RpcRequest] = ()):
        """Create the connection and start opening its transport

        Args:
            address: WebSocket URI of the appliance
            bus: Event bus to publish on, the process-wide bus if None
            transport_factory: Callable creating the transport for an address
            pending: Requests to queue ahead of anything sent later
        """
        if not isinstance(address, str) or not address:
            raise InvalidArgument(f"Invalid address: {address!r}")

        self.address = address
        self.bus = bus if bus is not None else EventBus.get_instance()
        self._state = ConnectionState.CONNECTING
        self._queue: Deque[RpcRequest] = deque(pending)
        self._lock = threading.RLock()

        factory = transport_factory if transport_factory is not None else WebSocketTransport
        self._transport = factory(address)

        logger.info(f"Opening connection to {address}")
        self._transport.start(self)

    @property
    def state(self) -> ConnectionState:
        return self._state

    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    def send(self, request: RpcRequest) -> None:
        """Transmit a request now if open, otherwise queue it

        Queuing is never an error. While the connection is open, requests
        left queued by an earlier refused frame are retried first, and the
        new request is queued behind any that are still refused, so
        transmission order stays FIFO.

        Raises:
            InvalidArgument: request is not an RpcRequest
        """
        if not isinstance(request, RpcRequest):
            raise InvalidArgument(f"Invalid request: {request!r}")

        with self._lock:
            if self._state is ConnectionState.OPEN and self._flush():
                if not self._transmit(request):
                    self._queue.append(request)
                return

            self._queue.append(request)
            logger.debug(f"Queued request {request.id} for {self.address} ({len(self._queue)} pending)")
            increment_counter("logiq.client.queued", 1, {"method": request.method})

    def _transmit(self, request: RpcRequest) -> bool:
        """Write one request to the transport; caller holds the lock

        Returns:
            bool: False if the transport refused the frame
        """
        text = request.to_json()
        attributes = {
            "rpc.system": "jsonrpc",
            "rpc.method": request.method,
            "rpc.jsonrpc.request_id": str(request.id),
            "server.address": self.address,
        }
        with create_span("logiq.request", attributes):
            try:
                self._transport.send(text)
            except TransportError as e:
                logger.warning(f"Unable to send request {request.id} to {self.address}: {e}")
                increment_counter("logiq.client.errors", 1, {"type": "transport", "method": request.method})
                self.bus.publish(EventName.TRANSPORT_ERROR, self.address, e)
                return False

        logger.debug(f"Sent: {clip(text, 200)}")
        increment_counter("logiq.client.requests", 1, {"method": request.method})
        self.bus.publish(EventName.REQUEST_SENT, self, request)
        return True

    def _flush(self) -> bool:
        """Transmit queued requests in order; caller holds the lock

        Stops at the first request the transport refuses and leaves it at
        the head of the queue.

        Returns:
            bool: True if the queue is empty afterwards
        """
        while self._queue and self._state is ConnectionState.OPEN:
            request = self._queue.popleft()
            if not self._transmit(request):
                self._queue.appendleft(request)
                return False
            record_latency(
                "logiq.client.queue_wait",
                (time.time() - request.created_at) * 1000,
                {"method": request.method}
            )
        return not self._queue

    def on_open(self) -> None:
        with self._lock:
            if self._state is not ConnectionState.CONNECTING:
                logger.warning(f"Ignoring open notification for {self.address} in state {self._state.value}")
                return

            self._state = ConnectionState.OPEN
            logger.info(f"Connection opened: {self.address}")
            self.bus.publish(EventName.CONNECTION_OPENED, self.address)

            # Listeners may send while we flush; those land at the tail
            self._flush()

    def on_close(self) -> None:
        with self._lock:
            previous = self._state
            self._state = ConnectionState.CLOSED
            unsent = len(self._queue)

        if previous is ConnectionState.CLOSED:
            return

        logger.info(f"Connection closed: {self.address}")
        if unsent:
            logger.warning(f"{unsent} request(s) still queued on closed connection to {self.address}")
        self.bus.publish(EventName.CONNECTION_CLOSED, self.address)

    def on_message(self, text: str) -> None:
        logger.debug(f"Received: {clip(str(text), 200)}")

        try:
            response = RpcResponse.parse(text)
        except MalformedResponse as e:
            logger.warning(f"Malformed response from {self.address}: {e}")
            increment_counter("logiq.client.errors", 1, {"type": "malformed_response"})
            self.bus.publish(EventName.RESPONSE_ERROR, self.address, e)
            return

        increment_counter("logiq.client.responses", 1, {"error": str(response.is_error).lower()})
        self.bus.publish(EventName.RESPONSE_RECEIVED, self.address, response)

    def on_error(self, cause: Exception) -> None:
        logger.warning(f"Transport error on {self.address}: {cause}")
        increment_counter("logiq.client.errors", 1, {"type": "transport"})
        self.bus.publish(EventName.TRANSPORT_ERROR, self.address, cause)

    def pending_requests(self) -> List[RpcRequest]:
        """Return the queued, not yet transmitted requests in order"""
        with self._lock:
            return list(self._queue)

    def drain_pending(self) -> List[RpcRequest]:
        """Remove and return the queued requests in order"""
        with self._lock:
            drained = list(self._queue)
            self._queue.clear()
            return drained

    def close(self) -> None:
        """Ask the transport to close; the state changes when it reports back"""
        self._transport.close()

    def __repr__(self) -> str:
        return f"Connection({self.address!r}, state={self._state.value})"
