"""
Configuration settings for the LogIQ client
"""
import os
import functools
from typing import Dict, Any, Optional
from dataclasses import dataclass

from logiq_client.correlation import PendingRequests
from logiq_client.events.bus import EventBus
from logiq_client.server import ServerHandle
from logiq_client.telemetry.metrics import setup_metrics
from logiq_client.telemetry.tracer import setup_tracer
from logiq_client.transport.websocket import WebSocketTransport


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    if value.strip().lower() == "none":
        return None
    return float(value)


@dataclass
class ClientConfig:
    """Main configuration for a LogIQ client"""
    uri: str = "ws://localhost:8080/logiq"
    username: Optional[str] = None
    password: Optional[str] = None

    # Transport configuration
    open_timeout: float = 10.0
    ping_interval: Optional[float] = 20.0
    ping_timeout: Optional[float] = 20.0

    # Correlation configuration
    request_timeout: Optional[float] = 30.0
    requeue_on_reconnect: bool = True

    # Tracing configuration
    enable_tracing: bool = False
    service_name: str = "logiq.client"
    otlp_endpoint: str = "localhost:4317"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create config from environment variables"""
        defaults = cls()
        return cls(
            uri=os.getenv("LOGIQ_URI", defaults.uri),
            username=os.getenv("LOGIQ_USERNAME"),
            password=os.getenv("LOGIQ_PASSWORD"),
            open_timeout=_env_float("LOGIQ_OPEN_TIMEOUT", defaults.open_timeout),
            ping_interval=_env_float("LOGIQ_PING_INTERVAL", defaults.ping_interval),
            ping_timeout=_env_float("LOGIQ_PING_TIMEOUT", defaults.ping_timeout),
            request_timeout=_env_float("LOGIQ_REQUEST_TIMEOUT", defaults.request_timeout),
            requeue_on_reconnect=_env_bool("LOGIQ_REQUEUE_ON_RECONNECT", defaults.requeue_on_reconnect),
            enable_tracing=_env_bool("LOGIQ_ENABLE_TRACING", defaults.enable_tracing),
            service_name=os.getenv("LOGIQ_SERVICE_NAME", defaults.service_name),
            otlp_endpoint=os.getenv("LOGIQ_OTLP_ENDPOINT", defaults.otlp_endpoint),
        )

    def transport_factory(self):
        """Return a callable creating WebSocket transports with these settings"""
        return functools.partial(
            WebSocketTransport,
            open_timeout=self.open_timeout,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
        )

    def setup_telemetry(self) -> bool:
        """Install OTLP tracing and metrics providers if tracing is enabled

        Returns:
            bool: True if the providers were installed
        """
        if not self.enable_tracing:
            return False
        setup_tracer(self.service_name, self.otlp_endpoint)
        setup_metrics(self.service_name, self.otlp_endpoint)
        return True

    def create_pending_requests(self, bus: Optional[EventBus] = None) -> PendingRequests:
        """Create a correlation table using the configured request timeout"""
        return PendingRequests(bus=bus, timeout=self.request_timeout)

    def create_server(self, bus: Optional[EventBus] = None) -> ServerHandle:
        """Create a server handle for the configured appliance"""
        return ServerHandle(
            self.uri,
            username=self.username,
            password=self.password,
            bus=bus,
            transport_factory=self.transport_factory(),
            requeue_on_reconnect=self.requeue_on_reconnect,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging; the password is masked"""
        return {
            "uri": self.uri,
            "username": self.username,
            "password": "***" if self.password else None,
            "open_timeout": self.open_timeout,
            "ping_interval": self.ping_interval,
            "ping_timeout": self.ping_timeout,
            "request_timeout": self.request_timeout,
            "requeue_on_reconnect": self.requeue_on_reconnect,
            "enable_tracing": self.enable_tracing,
            "service_name": self.service_name,
        }
