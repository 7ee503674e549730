"""
Request/response correlation

Optional layer on top of the event bus: keeps a table of requests awaiting
their response and resolves a Future when a response with the same id is
published. Connections themselves never match ids; they broadcast every
response. Entries given a timeout fail with RequestTimeout when it expires.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Any, Dict, Optional, Tuple

from logiq_client.events.bus import EventBus, EventName
from logiq_client.jsonrpc.errors import InvalidArgument, RequestCancelled, RequestTimeout
from logiq_client.jsonrpc.request import RpcRequest
from logiq_client.jsonrpc.response import RpcResponse
from logiq_client.telemetry.metrics import increment_counter, record_latency

logger = logging.getLogger(__name__)


class PendingRequests:
    """Table of id -> Future for requests awaiting a response"""

    def __init__(self, bus: Optional[EventBus] = None, timeout: Optional[float] = None):
        """Create the table and start listening for responses

        Args:
            bus: Event bus the responses are published on
            timeout: Default seconds to wait for a response, None to wait forever
        """
        self.bus = bus if bus is not None else EventBus.get_instance()
        self.timeout = timeout
        self._pending: Dict[Any, Tuple[RpcRequest, Future, Optional[threading.Timer]]] = {}
        self._lock = threading.Lock()
        self.bus.subscribe(EventName.RESPONSE_RECEIVED, self._on_response)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def track(self, request: RpcRequest, timeout: Optional[float] = None) -> Future:
        """Register a request and return the Future its response will resolve

        Args:
            request: Request about to be sent
            timeout: Seconds to wait, overrides the table default

        Raises:
            InvalidArgument: request is invalid or its id is already tracked
        """
        if not isinstance(request, RpcRequest):
            raise InvalidArgument(f"Invalid request: {request!r}")

        future: Future = Future()
        # Only this table completes the future; callers cannot cancel it
        future.set_running_or_notify_cancel()

        if timeout is None:
            timeout = self.timeout

        timer = None
        if timeout is not None:
            timer = threading.Timer(timeout, self._expire, args=(request.id, timeout))
            timer.daemon = True

        with self._lock:
            if request.id in self._pending:
                raise InvalidArgument(f"Request id {request.id!r} is already pending")
            self._pending[request.id] = (request, future, timer)

        if timer is not None:
            timer.start()
        return future

    def call(self, server, request: RpcRequest, timeout: Optional[float] = None) -> Future:
        """Track a request and send it through a ServerHandle or Connection"""
        future = self.track(request, timeout)
        try:
            server.send(request)
        except Exception:
            self._pop(request.id)
            raise
        return future

    def _pop(self, request_id: Any):
        with self._lock:
            entry = self._pending.pop(request_id, None)
        if entry is not None and entry[2] is not None:
            entry[2].cancel()
        return entry

    def _on_response(self, event_name: str, source: Any, response: RpcResponse) -> None:
        entry = self._pop(response.id)
        if entry is None:
            logger.debug(f"No pending request for response {response.id!r} from {source}")
            return

        request, future, _ = entry
        record_latency(
            "logiq.client.roundtrip",
            (response.received_at - request.created_at) * 1000,
            {"method": request.method}
        )
        future.set_result(response)

    def _expire(self, request_id: Any, timeout: float) -> None:
        entry = self._pop(request_id)
        if entry is None:
            return

        request, future, _ = entry
        logger.warning(f"Request {request_id!r} ({request.method}) timed out after {timeout}s")
        increment_counter("logiq.client.errors", 1, {"type": "timeout", "method": request.method})
        future.set_exception(RequestTimeout(f"No response to request {request_id!r} within {timeout}s"))

    def cancel(self, request_id: Any) -> bool:
        """Stop waiting for a request; its Future fails with RequestCancelled

        Returns:
            bool: False if the id was not pending
        """
        entry = self._pop(request_id)
        if entry is None:
            return False
        entry[1].set_exception(RequestCancelled(f"Request {request_id!r} cancelled"))
        return True

    def close(self) -> None:
        """Stop listening and cancel everything still pending"""
        self.bus.unsubscribe(self._on_response, EventName.RESPONSE_RECEIVED)
        with self._lock:
            request_ids = list(self._pending)
        for request_id in request_ids:
            self.cancel(request_id)
