"""
JSON-RPC 2.0 request message

Requests have the following structure on the wire:

    {
      "jsonrpc": "2.0",
      "method": <method>,
      "params": [<parameter1>, <parameter2>, ...],
      "id": <id>
    }

``params`` is left out entirely when there are no parameters.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from logiq_client.jsonrpc.counter import next_id
from logiq_client.jsonrpc.errors import InvalidArgument
from logiq_client.utils.serialization import JsonValue, clip, from_json, is_json_value, to_json

JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class RpcRequest:
    """An outbound call, immutable once created

    Use RpcRequest.create() rather than the constructor; it validates the
    input and assigns an ID when none is given.
    """

    method: str
    params: Tuple[JsonValue, ...]
    id: Any
    created_at: float = field(default_factory=time.time, compare=False)

    @classmethod
    def create(cls, method: str, params: Sequence[JsonValue] = (), id: Any = None) -> "RpcRequest":
        """Create a request message

        Args:
            method: Name of the method to invoke
            params: Method parameters, a list or tuple of JSON values
            id: Message ID, None to take the next process-wide ID

        Returns:
            RpcRequest: New request

        Raises:
            InvalidArgument: method is empty or params is not a sequence of JSON values
        """
        if not isinstance(method, str) or not method:
            raise InvalidArgument(f"Invalid method: {method!r}")

        if not isinstance(params, (list, tuple)):
            raise InvalidArgument(f"Invalid params: {params!r}")

        for index, param in enumerate(params):
            try:
                valid = is_json_value(param)
            except RecursionError:
                raise InvalidArgument(f"Param {index} is nested too deeply") from None
            if not valid:
                raise InvalidArgument(f"Param {index} is not a JSON value: {param!r}")

        if id is None:
            id = next_id()
        elif isinstance(id, bool) or not isinstance(id, (int, str)):
            raise InvalidArgument(f"Invalid id: {id!r}")

        return cls(method=method, params=tuple(params), id=id)

    @classmethod
    def parse(cls, text: str) -> "RpcRequest":
        """Create a request from its JSON text

        Raises:
            InvalidArgument: text is not a valid JSON-RPC request
        """
        try:
            payload = from_json(text)
        except (TypeError, ValueError, RecursionError) as e:
            raise InvalidArgument(f"Request is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise InvalidArgument("Request must be a JSON object")
        if "id" not in payload:
            raise InvalidArgument("Request id must be present")

        return cls.create(payload.get("method"), payload.get("params", []), payload["id"])

    def param(self, index: int) -> Optional[JsonValue]:
        """Return a specific parameter, None if there are fewer parameters"""
        if index < 0:
            raise InvalidArgument(f"Invalid param index: {index}")
        return self.params[index] if index < len(self.params) else None

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation as a dictionary

        Key order is stable: jsonrpc, method, params (when present), id.
        """
        payload: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params:
            payload["params"] = list(self.params)
        payload["id"] = self.id
        return payload

    def to_json(self) -> str:
        """Return the JSON text sent to the appliance"""
        return to_json(self.to_dict())

    def to_pretty(self, max_length: int = 60) -> str:
        """Return an indented representation suitable for logging

        The params are clipped to max_length characters, so the result is
        typically not valid JSON.
        """
        lines = ["{", f'  "jsonrpc": "{JSONRPC_VERSION}",', f'  "method": {to_json(self.method)},']
        if self.params:
            params = ",".join(to_json(param) for param in self.params)
            lines.append(f'  "params": [{clip(params, max_length)}],')
        lines.append(f'  "id": {to_json(self.id)}')
        lines.append("}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_pretty(60)
