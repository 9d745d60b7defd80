"""
Core protocol engine.

Provides low-level building blocks for phone communication:
- Transport: Serial communication abstraction
- ConnectionWorker: The thread that owns the transport
- SessionGate: Serialization of transactions
- ATProtocol: Blocking command execution
- Indications: Recognition of unsolicited message notifications
- Events: Delivery of engine events to subscribers
- PhoneSession: Coordination of all core components
"""

from .transport import Transport, SerialTransport, MockTransport
from .gate import SessionGate, GateToken
from .indications import IndicationKind, dispatch_indications, pdu_indication_complete
from .events import EventDispatcher, EventLogHandler, EventCallback
from .liveness import LivenessMonitor
from .worker import ConnectionWorker, OutboundRequest, WakeCause
from .protocol import ATProtocol
from .session import PhoneSession

__all__ = [
    "Transport",
    "SerialTransport",
    "MockTransport",
    "SessionGate",
    "GateToken",
    "IndicationKind",
    "dispatch_indications",
    "pdu_indication_complete",
    "EventDispatcher",
    "EventLogHandler",
    "EventCallback",
    "LivenessMonitor",
    "ConnectionWorker",
    "OutboundRequest",
    "WakeCause",
    "ATProtocol",
    "PhoneSession",
]
