"""
WebSocket transport

Runs a ``websockets`` client on a private asyncio event loop in a daemon
thread. Lifecycle and inbound frames are reported to the TransportListener
from that thread; outbound frames are handed to the loop through an ordered
outbox so send() never blocks the caller.
"""

import asyncio
import logging
import threading
from typing import Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from logiq_client.jsonrpc.errors import TransportError
from logiq_client.transport.interface import Transport, TransportListener

logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """WebSocket client connection to the LogIQ appliance"""

    def __init__(self,
                 address: str,
                 open_timeout: float = 10.0,
                 ping_interval: Optional[float] = 20.0,
                 ping_timeout: Optional[float] = 20.0,
                 headers: Optional[Dict[str, str]] = None):
        """Initialize the transport; nothing connects until start()

        Args:
            address: WebSocket URI (ws:// or wss://)
            open_timeout: Seconds allowed for the opening handshake
            ping_interval: Seconds between keepalive pings, None to disable
            ping_timeout: Seconds to wait for a pong, None to disable
            headers: Extra HTTP headers sent with the handshake
        """
        super().__init__(address)
        self.open_timeout = open_timeout
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.headers = headers

        self._listener: Optional[TransportListener] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._task: Optional[asyncio.Task] = None
        self._ws = None
        self._outbox: Optional[asyncio.Queue] = None
        self._open = threading.Event()
        self._closing = False
        self._close_reported = False

    def start(self, listener: TransportListener) -> None:
        if self._thread is not None:
            raise TransportError(f"Transport to {self.address} already started")

        self._listener = listener
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run,
            name=f"logiq-ws-{self.address}",
            daemon=True
        )
        self._thread.start()

    def _run(self):
        asyncio.set_event_loop(self._loop)
        try:
            self._task = self._loop.create_task(self._session())
            self._loop.run_until_complete(self._task)
        except asyncio.CancelledError:
            logger.debug(f"WebSocket session to {self.address} cancelled")
        finally:
            self._report_closed()
            self._loop.close()

    async def _session(self):
        try:
            if self._closing:
                return

            logger.info(f"Connecting to {self.address}")
            async with websockets.connect(
                self.address,
                open_timeout=self.open_timeout,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
                additional_headers=self.headers,
            ) as ws:
                self._ws = ws
                self._outbox = asyncio.Queue()
                writer = asyncio.ensure_future(self._drain_outbox(ws))
                self._open.set()
                logger.info(f"WebSocket connection opened: {self.address}")
                self._listener.on_open()

                try:
                    async for message in ws:
                        if isinstance(message, bytes):
                            message = message.decode("utf-8", errors="replace")
                        self._listener.on_message(message)
                finally:
                    writer.cancel()

        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.warning(f"WebSocket error on {self.address}: {e}")
            self._listener.on_error(TransportError(f"WebSocket error on {self.address}: {e}"))

        finally:
            self._open.clear()
            self._ws = None
            self._report_closed()

    async def _drain_outbox(self, ws):
        while True:
            text = await self._outbox.get()
            try:
                await ws.send(text)
            except ConnectionClosed as e:
                logger.warning(f"Frame not delivered, connection to {self.address} closed: {e}")
                return

    def _report_closed(self):
        # Both the session and the thread runner call this; only the first reports
        if self._close_reported:
            return
        self._close_reported = True
        logger.info(f"WebSocket connection closed: {self.address}")
        self._listener.on_close()

    def send(self, text: str) -> None:
        if not self._open.is_set():
            raise TransportError(f"WebSocket to {self.address} is not open")

        try:
            self._loop.call_soon_threadsafe(self._outbox.put_nowait, text)
        except RuntimeError as e:
            # Event loop shut down between the check and the call
            raise TransportError(f"WebSocket to {self.address} is shutting down") from e

    def close(self) -> None:
        self._closing = True
        loop = self._loop
        if loop is None or loop.is_closed():
            return

        try:
            loop.call_soon_threadsafe(self._shutdown)
        except RuntimeError:
            logger.debug(f"Event loop for {self.address} already stopped")

    def _shutdown(self):
        if self._ws is not None:
            asyncio.ensure_future(self._ws.close())
        elif self._task is not None:
            self._task.cancel()

    def is_open(self) -> bool:
        return self._open.is_set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the transport thread to finish

        Returns:
            bool: True if the thread has exited
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
