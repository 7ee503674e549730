"""
JSON-RPC error model

Error types known to the LogIQ appliance (the standard JSON-RPC 2.0 codes
plus the appliance-specific ones), the RpcError value carried inside
responses, and the exceptions raised by this package.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from logiq_client.utils.serialization import JsonValue


class LogiqClientError(Exception):
    """Base class for all errors raised by logiq_client"""


class InvalidArgument(LogiqClientError, ValueError):
    """Raised synchronously when an operation receives malformed input"""


class MalformedResponse(LogiqClientError, ValueError):
    """Raised when an inbound payload is not a valid JSON-RPC response"""


class TransportError(LogiqClientError, ConnectionError):
    """Raised or published when the underlying transport fails"""


class RequestTimeout(LogiqClientError, TimeoutError):
    """Raised when a tracked request gets no response in time"""


class RequestCancelled(LogiqClientError):
    """Raised when a tracked request is abandoned before its response arrives"""


class ErrorType(Enum):
    """Error codes used with the JSON-RPC, standard and appliance specific"""

    PARSE_ERROR = (-32700, "Parse error")
    INVALID_REQUEST = (-32600, "Invalid request")
    METHOD_NOT_FOUND = (-32601, "Method not found")
    INVALID_PARAMS = (-32602, "Invalid params")
    INTERNAL_ERROR = (-32603, "Internal error")
    LOGIQ_DATABASE_ERROR = (-32001, "LogIQ - Database error")
    LOGIQ_INVALID_LOGIN = (-32002, "LogIQ - Invalid login")
    LOGIQ_INVALID_FORMAT = (-32003, "LogIQ - Invalid format")
    LOGIQ_INCOMPATIBLE_FORMAT = (-32004, "LogIQ - Incompatible format")
    LOGIQ_UNKNOWN_INSTANCE = (-32005, "LogIQ - Unknown instance")
    LOGIQ_ILLEGAL_ACCESS = (-32006, "LogIQ - Illegal access")

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message

    @classmethod
    def from_code(cls, code: int) -> Optional["ErrorType"]:
        """Return the error type with the given code, or None if unknown"""
        for error_type in cls:
            if error_type.code == code:
                return error_type
        return None


@dataclass(frozen=True)
class RpcError:
    """Error object of a JSON-RPC 2.0 response

    Attributes:
        code: Number indicating the error type that occurred
        message: Short description of the error
        data: Additional information about the error, None if N/A
    """

    code: int
    message: str
    data: JsonValue = None

    def __post_init__(self):
        if isinstance(self.code, bool) or not isinstance(self.code, int):
            raise InvalidArgument(f"Invalid code: {self.code!r}")
        if not isinstance(self.message, str) or not self.message:
            raise InvalidArgument(f"Invalid message: {self.message!r}")

    @classmethod
    def from_catalog(cls, kind: ErrorType, data: JsonValue = None) -> "RpcError":
        """Create an error from a known error type

        Args:
            kind: Error type supplying code and message
            data: Additional error data

        Returns:
            RpcError: New error instance
        """
        if not isinstance(kind, ErrorType):
            raise InvalidArgument(f"Invalid error type: {kind!r}")
        return cls(kind.code, kind.message, data)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RpcError":
        """Decode the ``error`` member of a response"""
        return cls(payload.get("code"), payload.get("message"), payload.get("data"))

    @property
    def error_type(self) -> Optional[ErrorType]:
        """The known error type for this code, None for codes outside the catalog"""
        return ErrorType.from_code(self.code)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload

    def __str__(self) -> str:
        return f"{self.code} {self.message}"
