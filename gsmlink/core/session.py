"""
Phone session.

Assembles the transport, connection worker, session gate, protocol handler
and event dispatcher, and drives their lifecycle.
"""

import logging
import threading
import weakref
from typing import Optional

from .events import EventDispatcher, EventLogHandler
from .gate import SessionGate
from .protocol import ATProtocol
from .transport import Transport
from .worker import ConnectionWorker
from ..config import SessionConfig
from ..types import Event, EventKind, SessionState

logger = logging.getLogger(__name__)

# Root of the package logger hierarchy forwarded as log-line events
PACKAGE_LOGGER = "gsmlink"

_open_sessions: "weakref.WeakSet[PhoneSession]" = weakref.WeakSet()
_open_sessions_lock = threading.Lock()


class PhoneSession:
    """
    Core session functionality.

    Coordinates:
    - Transport layer (owned by the connection worker while open)
    - Protocol layer (blocking command execution)
    - Event dispatching (connection changes, messages, log lines)
    - Liveness checks (through the connection worker)

    A session can be opened and closed repeatedly. Event subscriptions
    survive across open/close cycles.
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[SessionConfig] = None,
        max_message_queue_size: int = 1000
    ) -> None:
        """
        Initialize phone session.

        Args:
            transport: Transport instance for communication
            config: Session settings (defaults if None)
            max_message_queue_size: Maximum message indications kept for polling
        """
        self.transport = transport
        self.config = config or SessionConfig()

        self.gate = SessionGate()
        self.dispatcher = EventDispatcher(max_message_queue_size=max_message_queue_size)
        self.protocol = ATProtocol(
            self.gate,
            self.dispatcher,
            receive_timeout=self.config.receive_timeout
        )

        self._worker: Optional[ConnectionWorker] = None
        self._log_handler: Optional[EventLogHandler] = None
        self._log_worker: Optional[ConnectionWorker] = None
        self._lifecycle_threads: frozenset[int] = frozenset()
        self._lifecycle_lock = threading.Lock()

        logger.info("Initialized PhoneSession")

    @property
    def worker(self) -> Optional[ConnectionWorker]:
        """The connection worker of the open session, or None."""
        return self._worker

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        worker = self._worker
        if worker is None:
            return SessionState.CLOSED
        if worker.connected:
            return SessionState.OPEN_CONNECTED
        return SessionState.OPEN_DISCONNECTED

    def is_open(self) -> bool:
        """Check if the session is open."""
        return self._worker is not None

    def is_connected(self) -> bool:
        """Check if the phone answered the most recent connection check."""
        worker = self._worker
        return worker is not None and worker.connected

    def open(self) -> None:
        """
        Open the transport and start the session threads.

        The phone is probed once before the worker starts, so the
        connection state is known when open() returns.

        Raises:
            TransportError: If the transport cannot be opened
        """
        with self._lifecycle_lock:
            if self._worker is not None:
                logger.warning("Session already open")
                return

            self.transport.open()
            self._lifecycle_threads = frozenset({threading.get_ident()})

            self.dispatcher.start()
            self._log_handler = EventLogHandler(self.dispatcher, level=self.config.log_level)
            self._log_handler.addFilter(self._forwards_record)
            with _open_sessions_lock:
                _open_sessions.add(self)
            logging.getLogger(PACKAGE_LOGGER).addHandler(self._log_handler)

            worker = ConnectionWorker(
                self.transport,
                self.gate,
                self.dispatcher,
                timeout=self.config.timeout_seconds,
                check_period=self.config.check_period_seconds
            )
            self._log_worker = worker
            worker.check_connection()
            worker.start()

            self._worker = worker
            self.protocol.attach(worker)
            logger.info("Session opened")
            self._lifecycle_threads = frozenset()

    def close(self) -> None:
        """
        Stop the session threads and close the transport.

        Closing a closed session does nothing. If the phone was connected,
        a PHONE_DISCONNECTED event is published.
        """
        with self._lifecycle_lock:
            worker = self._worker
            if worker is None:
                return

            self._lifecycle_threads = frozenset({threading.get_ident()})
            logger.info("Closing session")
            self.protocol.detach()
            self._worker = None

            was_connected = worker.connected
            worker.stop(timeout=self.config.shutdown_timeout)
            self.transport.close()

            if was_connected:
                logger.info("Phone disconnected.")
                self.dispatcher.publish(Event(EventKind.PHONE_DISCONNECTED))

            logger.info("Session closed")
            if self._log_handler is not None:
                logging.getLogger(PACKAGE_LOGGER).removeHandler(self._log_handler)
                self._log_handler = None
            with _open_sessions_lock:
                _open_sessions.discard(self)
            self._log_worker = None
            self._lifecycle_threads = frozenset()
            self.dispatcher.stop(timeout=self.config.shutdown_timeout)

    def claims_record(self, record: logging.LogRecord) -> bool:
        """
        Check if a log record was produced on behalf of this session.

        Records from the worker thread, from a thread holding the gate, and
        from the thread running open() or close() belong to the session.
        """
        ident = record.thread
        worker = self._log_worker
        return (
            ident in self._lifecycle_threads
            or (worker is not None and worker.owns_thread(ident))
            or self.gate.held_by(ident)
        )

    def _forwards_record(self, record: logging.LogRecord) -> bool:
        if self.claims_record(record):
            return True
        # Records no open session claims reach every session
        with _open_sessions_lock:
            others = [session for session in _open_sessions if session is not self]
        return not any(session.claims_record(record) for session in others)

    def __enter__(self):
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        self.close()
