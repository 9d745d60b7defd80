"""
AT command protocol handler.

Blocking call surface on top of the connection worker: send raw text,
receive framed responses, execute commands and classify their results.
"""

import logging
import re
from contextlib import contextmanager
from typing import Iterator, Optional, Pattern, Union

from .events import EventDispatcher
from .gate import GateToken, SessionGate
from .indications import dispatch_indications
from .responses import COMMAND_TERMINATOR, classify_response, is_final, strip_echo
from .worker import ConnectionWorker, OutboundRequest
from ..exceptions import NotOpenError, ResponseTimeoutError
from ..types import Event, EventKind

logger = logging.getLogger(__name__)

# Consecutive empty receives tolerated while waiting for a complete response
MAX_EMPTY_RECEIVES = 6


class ATProtocol:
    """
    AT command protocol handler.

    Every operation holds the session gate for its whole duration, so a
    command and its response are never interleaved with another caller's
    traffic or with a connection check. Callers that need several raw
    steps in one transaction hold the gate themselves via raw_access().

    Example:

    .. code-block:: python

        manufacturer = protocol.exec_and_receive_until_terminator("AT+CGMI")

        with protocol.raw_access():
            protocol.exec_and_receive_until_pattern("AT+CMGS=24", "\\r\\n> ")
            protocol.send(pdu + "\\x1a")
            reply = protocol.receive_until_terminator()
    """

    def __init__(
        self,
        gate: SessionGate,
        dispatcher: EventDispatcher,
        receive_timeout: float = 5.0
    ) -> None:
        """
        Initialize AT protocol handler.

        Args:
            gate: Gate serializing transactions on the session
            dispatcher: Receives progress and message events
            receive_timeout: Seconds a single receive waits for input
        """
        self.gate = gate
        self.receive_timeout = receive_timeout
        self._dispatcher = dispatcher
        self._worker: Optional[ConnectionWorker] = None

    def attach(self, worker: ConnectionWorker) -> None:
        """Route traffic through a running worker."""
        self._worker = worker

    def detach(self) -> None:
        """Forget the worker; further operations raise NotOpenError."""
        self._worker = None

    @property
    def is_attached(self) -> bool:
        return self._worker is not None

    # Raw access

    def acquire_raw_access(self) -> GateToken:
        """
        Hold the session gate across several operations.

        Returns:
            Token to pass to release_raw_access()
        """
        self._require_worker()
        return self.gate.acquire()

    def release_raw_access(self, token: GateToken) -> None:
        """Release a token obtained from acquire_raw_access()."""
        self.gate.release(token)

    @contextmanager
    def raw_access(self) -> Iterator["ATProtocol"]:
        """Context manager form of acquire_raw_access()."""
        token = self.acquire_raw_access()
        try:
            yield self
        finally:
            token.release()

    # Primitive operations

    def send(self, payload: str, log: bool = True) -> None:
        """
        Write raw text to the phone.

        Blocks until the worker has written the payload.

        Args:
            payload: Exact text to write, terminator included
            log: Log the payload (disable for secrets such as PINs)

        Raises:
            NotOpenError: If the session is not open
        """
        with self.gate:
            worker = self._require_worker()
            worker.submit(OutboundRequest(payload, log=log))

    def receive(self) -> tuple[bool, str]:
        """
        Wait for input from the phone.

        Returns:
            Tuple of (data received, text); text is empty when nothing
            arrived within the receive timeout

        Raises:
            NotOpenError: If the session is not open
        """
        with self.gate:
            worker = self._require_worker()
            return worker.wait_for_input(self.receive_timeout)

    # Commands

    def exec_and_receive_once(self, command: str, log: bool = True) -> str:
        """
        Execute a command and classify the first piece of input received.

        Args:
            command: AT command without terminator (e.g. "AT+CSQ")
            log: Log the command

        Returns:
            Response with terminator and echo removed

        Raises:
            GsmCommError: If the phone reports an error or does not answer
        """
        sent = command + COMMAND_TERMINATOR
        with self.gate:
            self.send(sent, log=log)
            _, text = self.receive()
            return classify_response(text, sent)

    def exec_and_receive_until_terminator(self, command: str, log: bool = True) -> str:
        """
        Execute a command and collect input until a final result code.

        Args:
            command: AT command without terminator
            log: Log the command

        Returns:
            Response with terminator and echo removed

        Raises:
            GsmCommError: If the phone reports an error or does not answer
        """
        sent = command + COMMAND_TERMINATOR
        with self.gate:
            self.send(sent, log=log)
            text = self._receive_multiple(None, sent)
            return classify_response(text, sent)

    def exec_and_receive_until_pattern(
        self,
        command: str,
        pattern: Union[str, Pattern[str]],
        log: bool = True
    ) -> str:
        """
        Execute a command and collect input until pattern or a final result.

        Used for prompts such as the SMS input prompt, which is not a final
        result code.

        Args:
            command: AT command without terminator
            pattern: Regular expression that ends the exchange
            log: Log the command

        Returns:
            The text with echo removed if pattern matched, otherwise the
            classified response

        Raises:
            GsmCommError: If the phone reports an error or does not answer
        """
        sent = command + COMMAND_TERMINATOR
        with self.gate:
            self.send(sent, log=log)
            return self._finish_pattern(self._receive_multiple(pattern, sent), pattern, sent)

    def receive_until_terminator(self) -> str:
        """
        Collect input until a final result code without sending anything.

        Returns:
            Response with terminator removed

        Raises:
            GsmCommError: If the phone reports an error or does not answer
        """
        with self.gate:
            return classify_response(self._receive_multiple(None, None))

    def receive_until_pattern(self, pattern: Union[str, Pattern[str]]) -> str:
        """
        Collect input until pattern or a final result code without sending.

        Returns:
            The raw text if pattern matched, otherwise the classified response
        """
        with self.gate:
            return self._finish_pattern(self._receive_multiple(pattern, None), pattern, None)

    def _finish_pattern(self, text: str, pattern: Union[str, Pattern[str]], sent: Optional[str]) -> str:
        if re.search(pattern, text):
            return strip_echo(text, sent)
        return classify_response(text, sent)

    def _receive_multiple(self, pattern: Optional[Union[str, Pattern[str]]], sent: Optional[str]) -> str:
        text = ""
        empty = 0
        while True:
            received, chunk = self.receive()
            if received:
                text += chunk
                empty = 0
                self._dispatcher.publish(Event(EventKind.RECEIVE_PROGRESS, len(text)))
            else:
                empty += 1
                if empty >= MAX_EMPTY_RECEIVES:
                    logger.error(f"Gave up waiting for a response after {empty} empty receives.")
                    raise ResponseTimeoutError(
                        "No complete answer from phone.",
                        command=sent.rstrip(COMMAND_TERMINATOR) if sent else None,
                        response=text or None
                    )

            if is_final(text) or (pattern is not None and re.search(pattern, text)):
                break

        # The worker strips indications as they arrive; catch any split across reads
        text, found = dispatch_indications(text)
        for indication, description in found:
            self._dispatcher.publish_message(indication, description)

        self._dispatcher.publish(Event(EventKind.RECEIVE_COMPLETE, len(text)))
        return text

    def _require_worker(self) -> ConnectionWorker:
        worker = self._worker
        if worker is None or not worker.is_alive():
            raise NotOpenError("Port not open.")
        return worker
