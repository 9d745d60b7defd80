"""
Data types and structures for gsmlink.

Provides type-safe representations of session state, events and phone data.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional, Union


class SessionState(Enum):
    """Lifecycle state of a phone session."""
    CLOSED = "closed"
    OPEN_DISCONNECTED = "open-disconnected"
    OPEN_CONNECTED = "open-connected"


class ConnectionTransition(Enum):
    """Change of the phone's responsiveness, as seen by the liveness probe."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class EventKind(Enum):
    """Kinds of events raised by a session."""
    LOGLINE_ADDED = "logline-added"
    MESSAGE_RECEIVED = "message-received"
    PHONE_CONNECTED = "phone-connected"
    PHONE_DISCONNECTED = "phone-disconnected"
    RECEIVE_PROGRESS = "receive-progress"
    RECEIVE_COMPLETE = "receive-complete"


@dataclass(frozen=True)
class MemoryLocation:
    """A new message (or status report) stored on the phone."""
    storage: str  # Storage name (e.g., "SM", "ME")
    index: int    # Index within the storage


@dataclass(frozen=True)
class ShortMessage:
    """A new message (or status report) delivered inline as PDU hex."""
    alpha: str    # Alphanumeric hint; empty for status reports
    length: int   # Declared PDU length in octets (excluding SMSC info)
    data: str     # PDU hex string


MessageIndication = Union[MemoryLocation, ShortMessage]


@dataclass(frozen=True)
class Event:
    """
    An event published by the engine.

    Attributes:
        kind: Event kind
        payload: Kind-specific data:
            LOGLINE_ADDED: LogLine
            MESSAGE_RECEIVED: MessageReceived
            PHONE_CONNECTED / PHONE_DISCONNECTED: None
            RECEIVE_PROGRESS / RECEIVE_COMPLETE: int (characters received)
    """
    kind: EventKind
    payload: Any = None


@dataclass(frozen=True)
class LogLine:
    """A formatted log line."""
    level: int  # logging level number
    text: str


@dataclass(frozen=True)
class MessageReceived:
    """Payload of a MESSAGE_RECEIVED event."""
    indication: MessageIndication
    description: str


class PinStatus(Enum):
    """SIM password states reported by AT+CPIN?."""
    READY = "READY"
    SIM_PIN = "SIM PIN"
    SIM_PUK = "SIM PUK"
    PH_SIM_PIN = "PH-SIM PIN"
    PH_FSIM_PIN = "PH-FSIM PIN"
    PH_FSIM_PUK = "PH-FSIM PUK"
    SIM_PIN2 = "SIM PIN2"
    SIM_PUK2 = "SIM PUK2"
    PH_NET_PIN = "PH-NET PIN"
    PH_NET_PUK = "PH-NET PUK"
    PH_NETSUB_PIN = "PH-NETSUB PIN"
    PH_NETSUB_PUK = "PH-NETSUB PUK"
    PH_SP_PIN = "PH-SP PIN"
    PH_SP_PUK = "PH-SP PUK"
    PH_CORP_PIN = "PH-CORP PIN"
    PH_CORP_PUK = "PH-CORP PUK"


class MessageStatus(IntEnum):
    """Stored message status in PDU mode."""
    RECEIVED_UNREAD = 0
    RECEIVED_READ = 1
    STORED_UNSENT = 2
    STORED_SENT = 3
    ALL = 4  # AT+CMGL filter only


@dataclass
class SignalQuality:
    """
    Signal quality from AT+CSQ.

    RSSI (Received Signal Strength Indicator):
        0: -113 dBm or less
        1: -111 dBm
        2...30: -109 to -53 dBm
        31: -51 dBm or greater
        99: Not known or not detectable
    """
    rssi: int
    ber: int

    @property
    def rssi_dbm(self) -> Optional[int]:
        """Convert RSSI to dBm value."""
        if self.rssi == 99:
            return None
        if self.rssi == 0:
            return -113
        if self.rssi == 31:
            return -51
        return -113 + (self.rssi * 2)

    @property
    def is_valid(self) -> bool:
        """Check if signal quality reading is valid."""
        return self.rssi != 99


@dataclass
class OperatorInfo:
    """Current operator from AT+COPS?"""
    mode: int                       # Network selection mode
    format: Optional[int] = None    # Operator name format
    oper: Optional[str] = None      # Operator name/code
    act: Optional[int] = None       # Access technology


@dataclass
class AddressData:
    """An address with its type of address octet (e.g., SMSC from AT+CSCA?)."""
    address: str
    type_of_address: int = 145


@dataclass
class MessageIndicationSettings:
    """
    New message indication settings for AT+CNMI.

    Attributes:
        mode: Buffering of unsolicited result codes
        deliver_style: How SMS-DELIVER messages are indicated (1 = +CMTI, 2 = +CMT)
        cell_broadcast_style: How cell broadcast messages are indicated
        status_report_style: How status reports are indicated (1 = +CDS, 2 = +CDSI)
        buffer_setting: What happens to buffered codes when mode changes
    """
    mode: int = 2
    deliver_style: int = 1
    cell_broadcast_style: int = 0
    status_report_style: int = 0
    buffer_setting: int = 0


@dataclass
class StoredMessage:
    """A message read from phone storage in PDU mode (AT+CMGR, AT+CMGL)."""
    index: int
    status: MessageStatus
    alpha: str
    length: int
    data: str


@dataclass
class MemoryStatus:
    """Usage of one message storage, from AT+CPMS."""
    used: int                       # Number of messages stored
    total: int                      # Total storage capacity
    storage: Optional[str] = None   # Storage name, if the phone reports it


@dataclass
class MessageMemoryStatus:
    """
    Usage of the read, write and receive storages (mem1, mem2, mem3).

    Phones that report fewer storages leave write and receive as None.
    """
    read: MemoryStatus
    write: Optional[MemoryStatus] = None
    receive: Optional[MemoryStatus] = None
