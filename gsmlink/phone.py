"""
Main GsmPhone class.

User-facing API that coordinates the session and all feature managers.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .config import SessionConfig
from .core import ATProtocol, EventCallback, GateToken, PhoneSession, SerialTransport, Transport
from .exceptions import NotConnectedError, NotOpenError
from .features import DeviceManager, NetworkManager, SMSManager
from .types import EventKind, MessageReceived, SessionState
from .version import __version__

logger = logging.getLogger(__name__)

# The library version is logged by the first phone opened in this process
_version_logged = False
_version_lock = threading.Lock()


def _log_version_once() -> None:
    global _version_logged
    with _version_lock:
        if _version_logged:
            return
        _version_logged = True
    logger.info(f"gsmlink version {__version__}")


class GsmPhone:
    """
    Main interface for GSM phone control.

    Provides a high-level API for phone operations through feature managers:

    - device: Identification, PIN and echo settings
    - network: Signal quality, operator, service centre
    - sms: SMS messaging in PDU mode

    Example usage with context manager:

    .. code-block:: python

        with GsmPhone(port="/dev/ttyUSB0") as phone:
            print(phone.device.request_manufacturer())

            signal = phone.network.get_signal_quality()
            print(f"Signal: {signal.rssi_dbm} dBm")

            phone.subscribe(
                EventKind.MESSAGE_RECEIVED,
                lambda event: print(f"New message: {event.payload.indication}")
            )

    Example usage with manual lifecycle management:

    .. code-block:: python

        phone = GsmPhone(port="/dev/ttyUSB0", baudrate=9600, timeout=500)
        phone.open()
        # ... use phone ...
        phone.close()
    """

    def __init__(
        self,
        port: Optional[str] = None,
        transport: Optional[Transport] = None,
        max_message_queue_size: int = 1000,
        **settings
    ) -> None:
        """
        Initialize GsmPhone.

        Args:
            port: Serial port path (e.g., "/dev/ttyUSB0", "COM1"). Either port or transport required.
            transport: Custom transport instance (for testing). Overrides port if provided.
            max_message_queue_size: Maximum message indications kept for pop_message()
            **settings: SessionConfig fields (baudrate, timeout, check_period,
                        receive_timeout, shutdown_timeout, log_level)

        Raises:
            ValueError: If neither port nor transport is provided, or a
                        setting is invalid

        Example:

        .. code-block:: python

            # Using serial port
            phone = GsmPhone(port="/dev/ttyUSB0")

            # Check the connection every 5 seconds
            phone = GsmPhone(port="/dev/ttyUSB0", check_period=5000)

            # Using custom transport (for testing)
            from gsmlink.core import MockTransport
            phone = GsmPhone(transport=MockTransport())
        """
        if transport is None and port is None:
            raise ValueError("Either 'port' or 'transport' must be provided")

        self.config = SessionConfig(port=port, **settings)

        if transport is None:
            transport = SerialTransport(
                port=port,
                baudrate=self.config.baudrate,
                timeout=self.config.timeout_seconds
            )
            logger.info(f"Created serial transport for {port}")

        self._session = PhoneSession(
            transport,
            self.config,
            max_message_queue_size=max_message_queue_size
        )

        self.device = DeviceManager(self._session)
        self.network = NetworkManager(self._session)
        self.sms = SMSManager(self._session)

    @property
    def session(self) -> PhoneSession:
        """The underlying session."""
        return self._session

    def open(self) -> None:
        """
        Open the connection to the phone.

        Checks once whether a phone answers before returning; use
        is_connected() to see the result.

        Raises:
            TransportError: If the port cannot be opened
        """
        _log_version_once()
        self._session.open()

    def close(self) -> None:
        """
        Close the connection to the phone.

        Closing a closed phone does nothing.
        """
        self._session.close()

    def is_open(self) -> bool:
        """Check if the connection is open."""
        return self._session.is_open()

    def is_connected(self) -> bool:
        """Check if a phone answered the most recent connection check."""
        return self._session.is_connected()

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._session.state

    def verify_valid_connection(self) -> None:
        """
        Check that the port is open and a phone is connected.

        Raises:
            NotOpenError: If the port is not open
            NotConnectedError: If no phone answered the last check
        """
        if not self.is_open():
            raise NotOpenError("Port not open.")
        if not self.is_connected():
            raise NotConnectedError("No phone connected.")

    def subscribe(self, kind: EventKind, callback: EventCallback) -> None:
        """
        Register a callback for an event kind.

        Callbacks run on the event dispatcher thread and may call back into
        the phone.

        Args:
            kind: Event kind
            callback: Function to call. Signature: callback(event: Event) -> None

        Example:

        .. code-block:: python

            phone.subscribe(EventKind.PHONE_DISCONNECTED, lambda event: print("Phone lost"))
        """
        self._session.dispatcher.subscribe(kind, callback)

    def unsubscribe(self, kind: EventKind, callback: EventCallback) -> bool:
        """
        Unregister a callback.

        Returns:
            True if callback was removed, False if not found
        """
        return self._session.dispatcher.unsubscribe(kind, callback)

    def pop_message(self) -> Optional[MessageReceived]:
        """
        Pop the oldest received message indication.

        Returns:
            MessageReceived or None if nothing was received
        """
        return self._session.dispatcher.pop_message()

    def get_protocol(self) -> tuple[ATProtocol, GateToken]:
        """
        Get exclusive access to the protocol for raw exchanges.

        Hold the token as briefly as possible: connection checks are skipped
        while it is held.

        Returns:
            Tuple of (protocol, token to pass to release_protocol())

        Raises:
            NotOpenError: If the port is not open
        """
        protocol = self._session.protocol
        return protocol, protocol.acquire_raw_access()

    def release_protocol(self, token: GateToken) -> None:
        """Release access obtained from get_protocol()."""
        self._session.protocol.release_raw_access(token)

    @contextmanager
    def raw_access(self) -> Iterator[ATProtocol]:
        """
        Context manager form of get_protocol().

        Example:

        .. code-block:: python

            with phone.raw_access() as protocol:
                response = protocol.exec_and_receive_until_terminator("AT+CCLK?")
        """
        with self._session.protocol.raw_access() as protocol:
            yield protocol

    def __enter__(self):
        """
        Context manager entry.

        Automatically opens the phone if not already open.
        """
        if not self.is_open():
            self.open()
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        """String representation of phone."""
        return f"<GsmPhone state={self.state.value}>"
