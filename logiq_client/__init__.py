"""
LogIQ Client

JSON-RPC 2.0 over WebSocket client for a LogIQ appliance. Outgoing calls are
queued while the connection opens and flushed in order once it does; inbound
responses and connection lifecycle changes are published on an EventBus:

1. Messages: RpcRequest, RpcResponse, RpcError and the ErrorType catalog
2. Connection: lifecycle state machine driving one WebSocket transport
3. ServerHandle: facade that reopens the connection lazily on send()
4. PendingRequests: optional id -> Future correlation on top of the bus

Typical use:

    server = ServerHandle("ws://appliance:8080/logiq")
    EventBus.get_instance().subscribe(EventName.RESPONSE_RECEIVED, on_response)
    server.send(RpcRequest.create("ping"))
"""

from logiq_client.config import ClientConfig
from logiq_client.connection import Connection, ConnectionState
from logiq_client.correlation import PendingRequests
from logiq_client.events.bus import EventBus, EventName
from logiq_client.jsonrpc import (
    ErrorType,
    InvalidArgument,
    LogiqClientError,
    MalformedResponse,
    RequestCancelled,
    RequestTimeout,
    RpcError,
    RpcRequest,
    RpcResponse,
    TransportError,
    next_id,
)
from logiq_client.server import ServerHandle

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "Connection",
    "ConnectionState",
    "PendingRequests",
    "EventBus",
    "EventName",
    "ErrorType",
    "RpcError",
    "RpcRequest",
    "RpcResponse",
    "ServerHandle",
    "next_id",
    "LogiqClientError",
    "InvalidArgument",
    "MalformedResponse",
    "TransportError",
    "RequestTimeout",
    "RequestCancelled",
]
