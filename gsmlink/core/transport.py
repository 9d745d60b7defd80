"""
Transport layer abstraction for phone communication.

Provides abstractions for serial communication with dependency injection support.
Only the connection worker ever calls into a transport once a session is open.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
import serial
from serial import SerialException

from ..exceptions import TransportError

logger = logging.getLogger(__name__)

PROBE_COMMAND = "AT\r"


class Transport(ABC):
    """Abstract base class for phone transport."""

    @abstractmethod
    def open(self) -> None:
        """
        Open the transport.

        Raises:
            TransportError: If the transport cannot be opened
        """
        pass

    @abstractmethod
    def write(self, data: str) -> int:
        """
        Write text to the transport.

        Args:
            data: Text to write

        Returns:
            Number of bytes written

        Raises:
            TransportError: If write fails
        """
        pass

    @abstractmethod
    def read_existing(self) -> str:
        """
        Read everything currently available without blocking.

        Returns:
            The text read, empty if nothing was available

        Raises:
            TransportError: If read fails
        """
        pass

    @abstractmethod
    def in_waiting(self) -> int:
        """Number of characters available for reading."""
        pass

    @abstractmethod
    def discard_buffers(self) -> None:
        """Drop pending input and output."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if transport is open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass


class SerialTransport(Transport):
    """Serial port transport implementation."""

    def __init__(
        self,
        port: str,
        baudrate: int = 19200,
        timeout: float = 0.3,
        encoding: str = "cp1252"
    ) -> None:
        """
        Initialize serial transport.

        The port is configured here but only opened by open().

        Args:
            port: Serial port path (e.g., /dev/ttyUSB0)
            baudrate: Baud rate for serial communication
            timeout: Read and write timeout in seconds
            encoding: Character encoding of the AT dialect on the wire
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.encoding = encoding

        self._serial = serial.Serial()
        self._serial.port = port
        self._serial.baudrate = baudrate
        self._serial.bytesize = serial.EIGHTBITS
        self._serial.parity = serial.PARITY_NONE
        self._serial.stopbits = serial.STOPBITS_ONE
        self._serial.timeout = timeout
        self._serial.write_timeout = timeout

    def open(self) -> None:
        """Open the serial port and raise DTR and RTS."""
        logger.info("Initializing serial connection...")
        logger.info(f"  Port = {self.port}")
        logger.info(f"  Baud rate = {self.baudrate}")
        logger.info(f"  Timeout = {self.timeout}")

        if self._serial.is_open:
            raise TransportError(f"Port {self.port} already open")

        try:
            self._serial.open()
            self._serial.dtr = True
            self._serial.rts = True
            logger.info(f"Opened serial port {self.port} at {self.baudrate} baud")
        except (SerialException, ValueError) as e:
            if self._serial.is_open:
                self._serial.close()
            logger.error(f"Failed to open serial port {self.port}: {e}")
            raise TransportError(f"Failed to open serial port {self.port}: {e}") from e

    def write(self, data: str) -> int:
        """Write text to serial port."""
        try:
            written = self._serial.write(data.encode(self.encoding, errors="replace"))
            logger.debug(f"Wrote {written} bytes")
            return written
        except SerialException as e:
            logger.error(f"Serial write failed: {e}")
            raise TransportError(f"Serial write failed: {e}") from e

    def read_existing(self) -> str:
        """Read whatever the driver has buffered."""
        try:
            chunks = []
            while self._serial.in_waiting > 0:
                chunks.append(self._serial.read(self._serial.in_waiting))
            data = b"".join(chunks)
            if data:
                logger.debug(f"Read {len(data)} bytes")
            return data.decode(self.encoding, errors="replace")
        except (SerialException, OSError) as e:
            logger.error(f"Serial read failed: {e}")
            raise TransportError(f"Serial read failed: {e}") from e

    def in_waiting(self) -> int:
        """Bytes buffered by the serial driver."""
        try:
            return self._serial.in_waiting
        except (SerialException, OSError) as e:
            raise TransportError(f"Serial status query failed: {e}") from e

    def discard_buffers(self) -> None:
        """Clear the serial input and output buffers."""
        try:
            self._serial.reset_output_buffer()
            self._serial.reset_input_buffer()
        except SerialException as e:
            logger.error(f"Failed to reset buffers: {e}")
            raise TransportError(f"Failed to reset buffers: {e}") from e

    def is_open(self) -> bool:
        """Check if serial port is open."""
        return self._serial is not None and self._serial.is_open

    def close(self) -> None:
        """Close the serial port."""
        if self._serial.is_open:
            self._serial.close()
            logger.info(f"Closed serial port {self.port}")
        else:
            logger.warning("Attempted to close a closed serial connection. Ignored.")


class MockTransport(Transport):
    """
    Mock transport for testing.

    Simulates a phone without requiring hardware:

    - answers the liveness probe ("AT\\r") with OK while ``connected`` is True
    - echoes written commands when ``echo`` is True
    - replies to any other write with the next scripted response
    - lets tests inject unsolicited text at any time
    """

    def __init__(self, connected: bool = True, echo: bool = False) -> None:
        """
        Initialize mock transport.

        Args:
            connected: Whether the simulated phone answers the liveness probe
            echo: Whether the simulated phone echoes commands
        """
        self.connected = connected
        self.echo = echo
        self.fail_reads = False
        self.fail_writes = False
        self.written: list[str] = []

        self._open = False
        self._lock = threading.Lock()
        self._pending: list[tuple[float, str]] = []
        self._response_queue: list[tuple[list[str], float]] = []
        logger.info("Initialized MockTransport")

    def add_response(self, *chunks: str, interval: float = 0.0) -> None:
        """
        Queue a response to be delivered after the next non-probe write.

        Args:
            chunks: Text fragments (e.g., "\\r\\n+CSQ: 24,99\\r\\n", "\\r\\nOK\\r\\n")
            interval: Seconds between the fragments becoming readable
        """
        with self._lock:
            self._response_queue.append((list(chunks), interval))
            logger.debug(f"Added mock response: {chunks!r}")

    def inject(self, text: str, delay: float = 0.0) -> None:
        """
        Make text readable without a preceding write.

        Args:
            text: Text the simulated phone sends on its own
            delay: Seconds until the text becomes readable
        """
        with self._lock:
            self._pending.append((time.monotonic() + delay, text))
            self._pending.sort(key=lambda item: item[0])

    def open(self) -> None:
        """Open mock transport."""
        if self._open:
            raise TransportError("MockTransport already open")
        self._open = True
        logger.info("Opened MockTransport")

    def write(self, data: str) -> int:
        """Record written data and schedule the simulated answer."""
        if not self._open or self.fail_writes:
            raise TransportError("MockTransport write failed")

        logger.debug(f"Mock write: {len(data)} chars")
        now = time.monotonic()
        with self._lock:
            self.written.append(data)
            prefix = data if self.echo else ""

            if data == PROBE_COMMAND:
                if self.connected:
                    self._pending.append((now, prefix + "\r\nOK\r\n"))
            elif self._response_queue:
                chunks, interval = self._response_queue.pop(0)
                if prefix:
                    chunks = [prefix] + chunks
                for i, chunk in enumerate(chunks):
                    self._pending.append((now + i * interval, chunk))
            elif prefix:
                self._pending.append((now, prefix))

            self._pending.sort(key=lambda item: item[0])

        return len(data)

    def _ready(self) -> list[tuple[float, str]]:
        now = time.monotonic()
        return [item for item in self._pending if item[0] <= now]

    def read_existing(self) -> str:
        """Return all text that has become readable."""
        if not self._open or self.fail_reads:
            raise TransportError("MockTransport read failed")

        with self._lock:
            ready = self._ready()
            if not ready:
                return ""
            self._pending = self._pending[len(ready):]
            result = "".join(text for _, text in ready)

        logger.debug(f"Mock read: {result!r}")
        return result

    def in_waiting(self) -> int:
        """Characters currently readable."""
        if not self._open:
            return 0
        with self._lock:
            return sum(len(text) for _, text in self._ready())

    def discard_buffers(self) -> None:
        """Drop text that is already readable."""
        with self._lock:
            ready = self._ready()
            self._pending = self._pending[len(ready):]

    def is_open(self) -> bool:
        """Check if mock transport is open."""
        return self._open

    def close(self) -> None:
        """Close mock transport."""
        self._open = False
        logger.info("Closed MockTransport")

    def clear_responses(self) -> None:
        """Clear all queued responses (useful for testing)."""
        with self._lock:
            self._response_queue.clear()
            self._pending.clear()
            logger.debug("Cleared mock response queue")

    @property
    def probe_count(self) -> int:
        """Number of liveness probes written so far."""
        with self._lock:
            return sum(1 for data in self.written if data == PROBE_COMMAND)
