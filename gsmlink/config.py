"""
Session configuration.

Holds the settings consumed by the protocol engine and validates them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 19200
DEFAULT_TIMEOUT_MS = 300
DEFAULT_CHECK_PERIOD_MS = 10000
MIN_CHECK_PERIOD_MS = 1000
DEFAULT_RECEIVE_TIMEOUT = 5.0
DEFAULT_SHUTDOWN_TIMEOUT = 10.0


@dataclass
class SessionConfig:
    """
    Settings for a phone session.

    Attributes:
        port: Serial port path (e.g., "/dev/ttyUSB0", "COM3"). May be None when
              a custom transport is supplied.
        baudrate: Serial baud rate
        timeout: Response timeout in milliseconds. Used as the serial read
                 timeout, the wait for the rest of a partial unsolicited
                 message, and the liveness probe read window.
        check_period: Delay between liveness checks in milliseconds. Values
                      below 1000 are raised to 1000.
        receive_timeout: Upper bound in seconds for a single receive()
        shutdown_timeout: Seconds to wait for the worker thread on close
        log_level: Minimum level forwarded as log-line events
    """
    port: Optional[str] = None
    baudrate: int = DEFAULT_BAUDRATE
    timeout: int = DEFAULT_TIMEOUT_MS
    check_period: int = DEFAULT_CHECK_PERIOD_MS
    receive_timeout: float = DEFAULT_RECEIVE_TIMEOUT
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT
    log_level: int = logging.DEBUG

    def __post_init__(self) -> None:
        if self.port is not None and len(self.port) == 0:
            raise ValueError("port must not be an empty string")
        if self.baudrate < 0:
            raise ValueError("baudrate must not be negative")
        if self.timeout < 0:
            raise ValueError("timeout must not be negative")
        if self.receive_timeout <= 0:
            raise ValueError("receive_timeout must be positive")

    def __setattr__(self, name, value):
        if name == "check_period" and value < MIN_CHECK_PERIOD_MS:
            logger.debug(f"Connection check period {value} ms raised to {MIN_CHECK_PERIOD_MS} ms")
            value = MIN_CHECK_PERIOD_MS
        super().__setattr__(name, value)

    @property
    def timeout_seconds(self) -> float:
        """Response timeout in seconds."""
        return self.timeout / 1000.0

    @property
    def check_period_seconds(self) -> float:
        """Liveness check period in seconds."""
        return self.check_period / 1000.0
