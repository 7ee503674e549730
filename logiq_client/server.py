"""
LogIQ server handle

NOTE: This is not a server. It is the object that represents the remote
LogIQ appliance inside the client application. It owns at most one
Connection and replaces it lazily on send() once the previous one closed.
"""

import logging
import threading
from typing import Optional

from logiq_client.connection import Connection, ConnectionState, TransportFactory
from logiq_client.events.bus import EventBus, EventName
from logiq_client.jsonrpc.errors import InvalidArgument
from logiq_client.jsonrpc.request import RpcRequest

logger = logging.getLogger(__name__)


class ServerHandle:
    """Facade held by application code for one appliance address"""

    def __init__(self,
                 uri: str,
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 bus: Optional[EventBus] = None,
                 transport_factory: Optional[TransportFactory] = None,
                 requeue_on_reconnect: bool = True):
        """Create a handle; no connection is made until the first send()

        Args:
            uri: WebSocket URI of the appliance
            username: Login name, carried as an opaque string
            password: Login password, carried as an opaque string
            bus: Event bus to publish on, the process-wide bus if None
            transport_factory: Callable creating a transport for an address
            requeue_on_reconnect: Carry requests still queued on a closed
                connection over to its replacement instead of dropping them
        """
        if not isinstance(uri, str) or not uri:
            raise InvalidArgument(f"Invalid uri: {uri!r}")
        for name, value in (("username", username), ("password", password)):
            if value is not None and not isinstance(value, str):
                raise InvalidArgument(f"Invalid {name}: expected a string")

        self._uri = uri
        self._username = username
        self._password = password
        self.bus = bus if bus is not None else EventBus.get_instance()
        self.transport_factory = transport_factory
        self.requeue_on_reconnect = requeue_on_reconnect

        self._connection: Optional[Connection] = None
        self._lock = threading.RLock()

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def password(self) -> Optional[str]:
        return self._password

    @property
    def connection(self) -> Optional[Connection]:
        """The current connection, None before the first send()"""
        return self._connection

    def is_open(self) -> bool:
        """Check if the connection to the appliance is currently open"""
        connection = self._connection
        return connection is not None and connection.is_open()

    def send(self, request: RpcRequest) -> None:
        """Send a request to the appliance

        A connection still CONNECTING is reused; its queue buffers the
        request. A missing or CLOSED connection is replaced first.

        Raises:
            InvalidArgument: request is not an RpcRequest
        """
        if not isinstance(request, RpcRequest):
            raise InvalidArgument(f"Invalid request: {request!r}")

        with self._lock:
            connection = self._connection
            if connection is None or connection.state is ConnectionState.CLOSED:
                connection = self._reconnect(connection)
            connection.send(request)

    def _reconnect(self, previous: Optional[Connection]) -> Connection:
        """Replace the current connection with a fresh one

        Requests still queued on the previous connection stay there until
        the replacement has been created, so a failure to create it loses
        nothing and the next send() tries again.
        """
        leftover = previous.pending_requests() if previous is not None else []
        if previous is not None:
            logger.info(f"Connection to {self._uri} was closed. Reopening...")

        connection = Connection(
            self._uri,
            bus=self.bus,
            transport_factory=self.transport_factory,
            pending=leftover if self.requeue_on_reconnect else (),
        )
        if previous is not None:
            previous.drain_pending()
        self._connection = connection

        if leftover and self.requeue_on_reconnect:
            logger.warning(f"Requeued {len(leftover)} unsent request(s) for {self._uri}")
            self.bus.publish(EventName.REQUESTS_REQUEUED, self._uri, leftover)
        elif leftover:
            logger.warning(f"Dropped {len(leftover)} unsent request(s) for {self._uri}")
            self.bus.publish(EventName.REQUESTS_DROPPED, self._uri, leftover)

        return connection

    def close(self) -> None:
        """Close the current connection, if any"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()

    def __repr__(self) -> str:
        password = "***" if self._password else None
        return f"ServerHandle(uri={self._uri!r}, username={self._username!r}, password={password!r})"

    def __str__(self) -> str:
        return self._uri
