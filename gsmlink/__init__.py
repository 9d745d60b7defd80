"""
gsmlink - Python library for talking to GSM phones over AT commands.
"""

from .version import __version__
from .phone import GsmPhone
from .config import SessionConfig

from .types import (
    SessionState,
    ConnectionTransition,
    EventKind,
    Event,
    LogLine,
    MemoryLocation,
    ShortMessage,
    MessageIndication,
    MessageReceived,
    PinStatus,
    MessageStatus,
    SignalQuality,
    OperatorInfo,
    AddressData,
    MessageIndicationSettings,
    StoredMessage,
    MemoryStatus,
    MessageMemoryStatus,
)

from .exceptions import (
    GsmCommError,
    GenericProtocolError,
    MessageServiceError,
    EquipmentError,
    ResponseTimeoutError,
    UnexpectedResponseError,
    NotConnectedError,
    NotOpenError,
    TransportError,
    ParseError,
)

__all__ = [
    "__version__",
    "GsmPhone",
    "SessionConfig",
    "SessionState",
    "ConnectionTransition",
    "EventKind",
    "Event",
    "LogLine",
    "MemoryLocation",
    "ShortMessage",
    "MessageIndication",
    "MessageReceived",
    "PinStatus",
    "MessageStatus",
    "SignalQuality",
    "OperatorInfo",
    "AddressData",
    "MessageIndicationSettings",
    "StoredMessage",
    "MemoryStatus",
    "MessageMemoryStatus",
    "GsmCommError",
    "GenericProtocolError",
    "MessageServiceError",
    "EquipmentError",
    "ResponseTimeoutError",
    "UnexpectedResponseError",
    "NotConnectedError",
    "NotOpenError",
    "TransportError",
    "ParseError",
]
