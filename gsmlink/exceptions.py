"""
Exceptions for gsmlink.

Every failed transaction surfaces as one of these, carrying the command that
was sent and the raw response received for diagnostics.
"""

from typing import Optional


class GsmCommError(Exception):
    """
    Base exception for phone communication errors.

    All gsmlink exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        response: Optional[str] = None
    ) -> None:
        """
        Initialize exception with context.

        Args:
            message: Error description
            command: AT command that caused the error (if applicable)
            response: Raw phone response (if applicable)
        """
        self.command = command
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with context."""
        parts = [super().__str__()]

        if self.command:
            parts.append(f"Command: {self.command!r}")

        if self.response:
            parts.append(f"Response: {self.response!r}")

        return " | ".join(parts)


class GenericProtocolError(GsmCommError):
    """
    Raised when the phone answers with a bare ERROR.

    This typically happens when:
    - The command is not supported by the device
    - The command is not valid in the current state
    - A parameter is incorrect
    """
    pass


class MessageServiceError(GsmCommError):
    """
    Raised when the phone reports a message service error (+CMS ERROR).

    The numeric code is available as ``code``.
    """

    def __init__(
        self,
        message: str,
        code: int,
        command: Optional[str] = None,
        response: Optional[str] = None
    ) -> None:
        self.code = code
        super().__init__(message, command=command, response=response)


class EquipmentError(GsmCommError):
    """
    Raised when the phone reports a mobile equipment error (+CME ERROR).

    The numeric code is available as ``code``.
    """

    def __init__(
        self,
        message: str,
        code: int,
        command: Optional[str] = None,
        response: Optional[str] = None
    ) -> None:
        self.code = code
        super().__init__(message, command=command, response=response)


class ResponseTimeoutError(GsmCommError, TimeoutError):
    """
    Raised when the phone does not answer in time.

    This typically indicates:
    - No device attached to the port
    - The device stopped responding
    - A command takes longer than the receive budget allows
    """
    pass


class UnexpectedResponseError(GsmCommError):
    """
    Raised when a response matches none of the known terminators.

    The raw text is available as ``raw``.
    """

    def __init__(self, message: str, raw: str, command: Optional[str] = None) -> None:
        self.raw = raw
        super().__init__(message, command=command, response=raw)


class NotConnectedError(GsmCommError):
    """
    Raised when the port is open but no responsive phone is attached.
    """
    pass


class NotOpenError(GsmCommError):
    """
    Raised when attempting to use a session that is not open.
    """
    pass


class TransportError(GsmCommError):
    """
    Raised when the transport layer fails.

    This indicates:
    - Serial port cannot be opened
    - Write or read failure on the port
    """
    pass


class ParseError(GsmCommError):
    """
    Raised when a successful response cannot be parsed into a result.
    """
    pass
