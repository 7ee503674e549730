"""
JSON-RPC 2.0 response message

Responses have the following structure on the wire:

    {
      "jsonrpc": "2.0",
      "result": <result object>,
      "error": {
        "code": <error code>,
        "message": <error message>,
        "data": <additional error information>
      },
      "id": <id>
    }

Exactly one of ``result`` and ``error`` is expected. A payload carrying both
is rejected as malformed.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from logiq_client.jsonrpc.errors import ErrorType, InvalidArgument, MalformedResponse, RpcError
from logiq_client.jsonrpc.request import JSONRPC_VERSION
from logiq_client.utils.serialization import JsonValue, clip, from_json, to_json


@dataclass(frozen=True)
class RpcResponse:
    """An inbound result or error for a previously sent request

    Matching ``id`` against the originating request is up to the receiver.
    """

    result: JsonValue
    error: Optional[RpcError]
    id: Any
    received_at: float = field(default_factory=time.time, compare=False)

    @classmethod
    def parse(cls, text: Union[str, bytes]) -> "RpcResponse":
        """Create a response from one wire payload

        Args:
            text: JSON text received from the appliance

        Returns:
            RpcResponse: Decoded response, stamped with the time of parsing

        Raises:
            MalformedResponse: text is not a JSON object, lacks an id, has a
                broken error member, or carries both result and error
        """
        if not isinstance(text, (str, bytes, bytearray)):
            raise MalformedResponse(f"Response must be text, got {type(text).__name__}")

        try:
            payload = from_json(text)
        except (ValueError, RecursionError) as e:
            raise MalformedResponse(f"Response is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedResponse("Response must be a JSON object")

        version = payload.get("jsonrpc", JSONRPC_VERSION)
        if version != JSONRPC_VERSION:
            raise MalformedResponse(f"Unsupported JSON-RPC version: {version!r}")

        if "id" not in payload:
            raise MalformedResponse("Response id must be present")

        error_payload = payload.get("error")
        if error_payload is not None and "result" in payload:
            raise MalformedResponse(f"Response {payload['id']!r} carries both result and error")

        error = None
        if error_payload is not None:
            if not isinstance(error_payload, dict):
                raise MalformedResponse("Response error must be a JSON object")
            try:
                error = RpcError.from_dict(error_payload)
            except InvalidArgument as e:
                raise MalformedResponse(f"Invalid error object: {e}") from e

        return cls(result=payload.get("result"), error=error, id=payload["id"])

    @classmethod
    def success(cls, result: JsonValue, id: Any) -> "RpcResponse":
        """Create a successful response"""
        return cls(result=result, error=None, id=id)

    @classmethod
    def failure(cls, kind: ErrorType, data: JsonValue = None, id: Any = None) -> "RpcResponse":
        """Create an error response from a known error type"""
        return cls(result=None, error=RpcError.from_catalog(kind, data), id=id)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
        if self.error is None:
            payload["result"] = self.result
        else:
            payload["error"] = self.error.to_dict()
        payload["id"] = self.id
        return payload

    def to_json(self) -> str:
        return to_json(self.to_dict())

    def to_pretty(self, max_length: int = 100) -> str:
        """Return an indented representation suitable for logging

        Result and error data are clipped to max_length characters.
        """
        lines = ["{", f'  "jsonrpc": "{JSONRPC_VERSION}",']
        if self.error is None:
            lines.append(f'  "result": {clip(to_json(self.result), max_length)},')
        else:
            lines.append('  "error": {')
            lines.append(f'    "code": {self.error.code},')
            if self.error.data is None:
                lines.append(f'    "message": {to_json(self.error.message)}')
            else:
                lines.append(f'    "message": {to_json(self.error.message)},')
                lines.append(f'    "data": {clip(to_json(self.error.data), max_length)}')
            lines.append("  },")
        lines.append(f'  "id": {to_json(self.id)}')
        lines.append("}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return f"Response {self.id}"
