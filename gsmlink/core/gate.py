"""
Session gate.

Serializes transactions on a session: one logical transaction at a time,
re-entrant for the thread that holds it.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class GateToken:
    """
    Proof of holding the session gate.

    Returned by SessionGate.acquire(). Release it exactly once, from the
    thread that acquired it, either explicitly or by leaving a ``with`` block.
    """

    def __init__(self, gate: "SessionGate") -> None:
        self._gate = gate
        self._owner = threading.get_ident()
        self._released = False

    @property
    def released(self) -> bool:
        """Whether this token has been released."""
        return self._released

    def release(self) -> None:
        """Release the gate held by this token."""
        self._gate.release(self)

    def __enter__(self) -> "GateToken":
        return self

    def __exit__(self, *exc) -> None:
        if not self._released:
            self.release()


class SessionGate:
    """
    Re-entrant mutual exclusion around a session's transactions.

    Public operations acquire the gate for their whole duration. Callers that
    need a multi-step raw exchange hold a token across several operations;
    nested acquisitions by the same thread succeed immediately.

    Example:

    .. code-block:: python

        with gate:
            protocol.send("AT+CMGS=24\\r")
            ...

        token = gate.acquire()
        try:
            ...
        finally:
            token.release()
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._count_lock = threading.Lock()
        self._depth = 0
        self._owner: Optional[int] = None
        self._local = threading.local()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> Optional[GateToken]:
        """
        Acquire the gate.

        Args:
            blocking: Wait until the gate is free
            timeout: Maximum seconds to wait when blocking (-1 = forever)

        Returns:
            A GateToken, or None if the gate could not be acquired
        """
        if not self._lock.acquire(blocking, timeout):
            return None
        with self._count_lock:
            self._depth += 1
            self._owner = threading.get_ident()
        return GateToken(self)

    def try_acquire(self) -> Optional[GateToken]:
        """Acquire the gate only if it is free right now."""
        return self.acquire(blocking=False)

    def release(self, token: GateToken) -> None:
        """
        Release a token.

        Raises:
            RuntimeError: If the token was already released, belongs to
                another gate, or is released from another thread
        """
        if token._gate is not self:
            raise RuntimeError("Token belongs to a different gate")
        if token._released:
            raise RuntimeError("Gate token already released")
        if token._owner != threading.get_ident():
            raise RuntimeError("Gate token released from a thread that does not own it")

        token._released = True
        with self._count_lock:
            self._depth -= 1
            if self._depth == 0:
                self._owner = None
        self._lock.release()

    def is_held(self) -> bool:
        """Check if any thread holds the gate."""
        with self._count_lock:
            return self._depth > 0

    def held_by_current_thread(self) -> bool:
        """Check if the calling thread holds the gate."""
        return self.held_by(threading.get_ident())

    def held_by(self, ident: Optional[int]) -> bool:
        """Check if the thread with the given ident holds the gate."""
        with self._count_lock:
            return self._depth > 0 and self._owner == ident


    def __enter__(self) -> GateToken:
        token = self.acquire()
        self._held_tokens().append(token)
        return token

    def __exit__(self, *exc) -> None:
        token = self._held_tokens().pop()
        if not token.released:
            self.release(token)

    def _held_tokens(self) -> list[GateToken]:
        stack = getattr(self._local, "tokens", None)
        if stack is None:
            stack = self._local.tokens = []
        return stack
