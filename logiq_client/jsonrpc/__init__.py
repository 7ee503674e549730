"""
JSON-RPC 2.0 Message Model

Request/response envelopes, the error catalog and the request ID generator.
"""

from logiq_client.jsonrpc.counter import IdGenerator, next_id
from logiq_client.jsonrpc.errors import (
    ErrorType,
    InvalidArgument,
    LogiqClientError,
    MalformedResponse,
    RequestCancelled,
    RequestTimeout,
    RpcError,
    TransportError,
)
from logiq_client.jsonrpc.request import JSONRPC_VERSION, RpcRequest
from logiq_client.jsonrpc.response import RpcResponse

__all__ = [
    "IdGenerator",
    "next_id",
    "ErrorType",
    "RpcError",
    "RpcRequest",
    "RpcResponse",
    "JSONRPC_VERSION",
    "LogiqClientError",
    "InvalidArgument",
    "MalformedResponse",
    "TransportError",
    "RequestTimeout",
    "RequestCancelled",
]
