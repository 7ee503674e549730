"""
Transport interface

Defines the boundary between a Connection and the socket carrying its
frames. The transport reports lifecycle and inbound data through a
TransportListener and accepts outbound text frames through send().
"""

import abc


class TransportListener(abc.ABC):
    """Receiver of transport notifications, implemented by Connection"""

    @abc.abstractmethod
    def on_open(self) -> None:
        """The transport is ready to send"""
        pass

    @abc.abstractmethod
    def on_close(self) -> None:
        """The transport is closed and will not reopen"""
        pass

    @abc.abstractmethod
    def on_message(self, text: str) -> None:
        """One inbound text frame arrived

        Args:
            text: Frame payload
        """
        pass

    @abc.abstractmethod
    def on_error(self, cause: Exception) -> None:
        """The transport hit an error; open/close notifications follow separately

        Args:
            cause: The underlying exception
        """
        pass


class Transport(abc.ABC):
    """A message oriented socket to one address"""

    def __init__(self, address: str):
        self.address = address

    @abc.abstractmethod
    def start(self, listener: TransportListener) -> None:
        """Begin connecting, reporting progress to listener

        Must not block until the connection is established.
        """
        pass

    @abc.abstractmethod
    def send(self, text: str) -> None:
        """Transmit one text frame

        Raises:
            TransportError: The transport is not open
        """
        pass

    @abc.abstractmethod
    def close(self) -> None:
        """Close the transport; on_close is reported when done"""
        pass

    @abc.abstractmethod
    def is_open(self) -> bool:
        pass
