"""
Connection worker.

The single thread that owns the transport. Callers never touch the port; they
post outbound requests and wait for the worker to signal input.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from .events import EventDispatcher
from .gate import SessionGate
from .indications import dispatch_indications, has_incomplete_indication
from .liveness import LivenessMonitor
from .responses import classify_response, is_final
from .transport import PROBE_COMMAND, Transport
from ..exceptions import NotOpenError
from ..types import ConnectionTransition, Event, EventKind

logger = logging.getLogger(__name__)

# Extra reads allowed while waiting for the rest of an unsolicited message
MAX_INCOMPLETE_RETRIES = 5


class WakeCause(IntEnum):
    """Reasons for the worker to wake up, highest priority first."""
    SHUTDOWN = 0
    SEND = 1
    RECEIVE = 2
    CHECK_CONNECTION = 3


@dataclass
class OutboundRequest:
    """Raw text waiting to be written by the worker."""
    payload: str
    log: bool = True
    done: threading.Event = field(default_factory=threading.Event)


class ConnectionWorker:
    """
    Owns the transport for the lifetime of an open session.

    On every wake exactly one of these is handled, in priority order:

    - shutdown requested
    - outbound request pending: write it
    - input pending: read it, strip unsolicited messages, queue the rest
    - connection check due: probe the phone unless a transaction is running
    """

    def __init__(
        self,
        transport: Transport,
        gate: SessionGate,
        dispatcher: EventDispatcher,
        timeout: float = 0.3,
        check_period: float = 10.0,
        poll_interval: float = 0.01
    ) -> None:
        """
        Initialize connection worker.

        Args:
            transport: Open transport; owned by the worker from now on
            gate: Session gate, tried before each connection check
            dispatcher: Receives message and connection events
            timeout: Response timeout in seconds
            check_period: Seconds between connection checks
            poll_interval: Seconds between checks for pending input
        """
        self.transport = transport
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._gate = gate
        self._dispatcher = dispatcher

        self._thread: Optional[threading.Thread] = None
        self._wake = threading.Event()
        self._terminate = threading.Event()
        self._check_due = threading.Event()

        self._request_lock = threading.Lock()
        self._request: Optional[OutboundRequest] = None

        # Input queue and its signals
        self._input_cond = threading.Condition()
        self._input_queue: list[str] = []
        self._data_ready = False
        self._no_data = False

        self._connected = False
        self.last_transition: Optional[ConnectionTransition] = None
        self.checks_performed = 0
        self.checks_skipped = 0

        self.monitor = LivenessMonitor(check_period, self._on_check_due)

    # Lifecycle

    def start(self) -> None:
        """Start the worker thread and the liveness timer."""
        if self.is_alive():
            logger.warning("Connection worker already created, ignoring start.")
            return

        self._terminate.clear()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="GsmConnectionWorker"
        )
        self._thread.start()

    def stop(self, timeout: float = 10.0) -> bool:
        """
        Signal shutdown and wait for the worker thread.

        Args:
            timeout: Seconds to wait for the thread to exit

        Returns:
            True if the thread exited in time
        """
        self.monitor.stop()
        if not self.is_alive():
            self._reset()
            return True

        self._terminate.set()
        self._wake.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Connection worker did not exit within the timeout, abandoning it.")
            return False

        self._thread = None
        return True

    def is_alive(self) -> bool:
        """Check if the worker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def owns_thread(self, ident: Optional[int]) -> bool:
        """Check if ident belongs to the worker thread."""
        thread = self._thread
        return thread is not None and thread.ident == ident

    @property
    def connected(self) -> bool:
        """Result of the most recent connection check."""
        return self._connected

    # Caller side

    def submit(self, request: OutboundRequest) -> None:
        """
        Hand a request to the worker and wait until it has been written.

        Raises:
            NotOpenError: If the worker is not running
            RuntimeError: If another request is still pending
        """
        if not self.is_alive():
            raise NotOpenError("Connection worker is not running.")

        with self._request_lock:
            if self._request is not None:
                raise RuntimeError("An outbound request is already pending")
            self._request = request
        self._wake.set()

        while not request.done.wait(self.poll_interval * 10):
            if not self.is_alive():
                with self._request_lock:
                    self._request = None
                raise NotOpenError("Connection worker stopped before the request was written.")

    def wait_for_input(self, timeout: float) -> tuple[bool, str]:
        """
        Wait for the worker to report input or the absence of it.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            Tuple of (data received, drained input queue text)

        Raises:
            NotOpenError: If the worker is not running
        """
        if not self.is_alive():
            raise NotOpenError("Connection worker is not running.")

        text = ""
        with self._input_cond:
            self._input_cond.wait_for(lambda: self._data_ready or self._no_data, timeout)
            if self._data_ready:
                self._data_ready = False
                if self._input_queue:
                    text = "".join(self._input_queue)
                    self._input_queue.clear()
                else:
                    logger.warning("Nothing in input queue")
            self._no_data = False
        return len(text) > 0, text

    def check_connection(self) -> Optional[bool]:
        """
        Probe the phone if no transaction holds the gate.

        Returns:
            The probe result, or None if the check was skipped
        """
        token = self._gate.try_acquire()
        if token is None:
            self.checks_skipped += 1
            logger.debug("Session locked - connection check not performed.")
            return None

        try:
            self.checks_performed += 1
            connected = self._probe()
            self.set_connection_state(connected)
            return connected
        finally:
            token.release()

    def set_connection_state(self, connected: bool) -> Optional[ConnectionTransition]:
        """
        Record a connection check result.

        Returns:
            The transition if the state changed, otherwise None
        """
        if connected == self._connected:
            return None

        self._connected = connected
        if connected:
            transition = ConnectionTransition.CONNECTED
            logger.info("Phone connected.")
            self._dispatcher.publish(Event(EventKind.PHONE_CONNECTED))
        else:
            transition = ConnectionTransition.DISCONNECTED
            logger.info("Phone disconnected.")
            self._dispatcher.publish(Event(EventKind.PHONE_DISCONNECTED))

        self.last_transition = transition
        return transition

    # Worker side

    def _on_check_due(self) -> None:
        self._check_due.set()
        self._wake.set()

    def _run(self) -> None:
        logger.info("Communication thread started.")
        self.monitor.start()

        while True:
            cause = self._wait_any()
            if cause == WakeCause.SHUTDOWN:
                break

            try:
                if cause == WakeCause.SEND:
                    self._handle_send()
                elif cause == WakeCause.RECEIVE:
                    if self._handle_receive():
                        self._check_due.clear()
                        self.monitor.restart()
                else:
                    self._check_due.clear()
                    try:
                        self.check_connection()
                    finally:
                        self.monitor.restart()
            except Exception as e:
                logger.error(f"Unexpected error in communication thread ({cause.name}): {e}", exc_info=True)

        logger.info("Communication thread is terminating.")
        self.monitor.stop()
        self._reset()

    def _wait_any(self) -> WakeCause:
        while True:
            if self._terminate.is_set():
                return WakeCause.SHUTDOWN
            if self._request is not None:
                return WakeCause.SEND
            if self._input_pending():
                return WakeCause.RECEIVE
            if self._check_due.is_set():
                return WakeCause.CHECK_CONNECTION

            self._wake.wait(self.poll_interval)
            self._wake.clear()

    def _input_pending(self) -> bool:
        try:
            return self.transport.in_waiting() > 0
        except Exception as e:
            logger.debug(f"Input status query failed: {e}")
            return False

    def _handle_send(self) -> None:
        with self._request_lock:
            request = self._request

        with self._input_cond:
            self._input_queue.clear()
            self._data_ready = False
            self._no_data = False

        try:
            if request.log:
                logger.debug(f"<< {request.payload!r}")
            self.transport.discard_buffers()
            self.transport.write(request.payload)
        except Exception as e:
            logger.error(f"Error while sending data to the phone: {e}", exc_info=True)

        with self._request_lock:
            self._request = None
        request.done.set()

    def _handle_receive(self) -> bool:
        with self._input_cond:
            self._no_data = False

        buffer = ""
        retries = 0
        while True:
            try:
                chunk = self.transport.read_existing()
            except Exception as e:
                logger.error(f"Error while receiving data from the phone: {e}", exc_info=True)
                buffer = ""
                self._discard_input()
                break

            if chunk:
                buffer += chunk
                continue

            if has_incomplete_indication(buffer):
                if retries >= MAX_INCOMPLETE_RETRIES:
                    logger.warning("Unsolicited message still incomplete, passing data on as received.")
                    break
                retries += 1
                logger.info("Incomplete unsolicited message found, reading on after sleep.")
                if self._terminate.wait(self.timeout):
                    break
                continue

            break

        if not buffer:
            with self._input_cond:
                self._no_data = True
                self._input_cond.notify_all()
            return False

        logger.debug(f">> {buffer!r}")
        with self._input_cond:
            self._input_queue.append(buffer)
            remainder, found = dispatch_indications("".join(self._input_queue))
            if found:
                self._input_queue.clear()
                if remainder.strip():
                    self._input_queue.append(remainder)

            if self._input_queue:
                self._data_ready = True
            else:
                self._no_data = True
            self._input_cond.notify_all()

        for indication, description in found:
            self._dispatcher.publish_message(indication, description)
        return True

    def _discard_input(self) -> None:
        # Unreadable input would otherwise wake the worker again immediately
        try:
            self.transport.discard_buffers()
        except Exception as e:
            logger.debug(f"Discarding input failed: {e}")

    def _probe(self) -> bool:
        # Bypasses the outbound request path: runs on the worker thread, or
        # before the worker starts.
        try:
            self.transport.discard_buffers()
            self.transport.write(PROBE_COMMAND)

            text = ""
            while not is_final(text) and self._wait_for_transport(self.timeout):
                text += self.transport.read_existing()

            text, found = dispatch_indications(text)
            for indication, description in found:
                self._dispatcher.publish_message(indication, description)

            classify_response(text, PROBE_COMMAND)
            return True
        except Exception as e:
            logger.debug(f"Connection check failed: {e}")
            return False

    def _wait_for_transport(self, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while self.transport.in_waiting() <= 0:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            time.sleep(min(self.poll_interval, remaining))
        return True

    def _reset(self) -> None:
        self._wake.clear()
        self._check_due.clear()
        with self._request_lock:
            request, self._request = self._request, None
        if request is not None:
            request.done.set()
        with self._input_cond:
            self._input_queue.clear()
            self._data_ready = False
            self._no_data = False
