"""
Transport Module

The Transport interface a Connection drives, and its WebSocket implementation.
"""

from logiq_client.transport.interface import Transport, TransportListener
from logiq_client.transport.websocket import WebSocketTransport

__all__ = ["Transport", "TransportListener", "WebSocketTransport"]
