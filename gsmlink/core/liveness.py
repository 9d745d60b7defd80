"""
Liveness monitoring.

A restartable one-shot timer that tells the connection worker when the phone
should be probed again.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """
    Periodic trigger for connection checks.

    The timer fires once per period and must be re-armed with restart()
    after the check has been handled, so checks never pile up while the
    worker is busy.
    """

    def __init__(self, period: float, on_due: Callable[[], None]) -> None:
        """
        Initialize liveness monitor.

        Args:
            period: Seconds between checks
            on_due: Called on the timer thread when a check is due
        """
        if period <= 0:
            raise ValueError("period must be positive")

        self.period = period
        self._on_due = on_due
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """Arm the timer."""
        with self._lock:
            self._arm()
        logger.info(f"Connection to phone will be checked every {int(self.period * 1000)} ms.")

    def restart(self) -> None:
        """Cancel any pending firing and arm the timer for a full period."""
        with self._lock:
            self._cancel()
            self._arm()

    def stop(self) -> None:
        """Cancel the timer."""
        with self._lock:
            self._cancel()

    @property
    def running(self) -> bool:
        """Whether a firing is scheduled."""
        with self._lock:
            return self._timer is not None

    def _arm(self) -> None:
        timer = threading.Timer(self.period, self._fire)
        timer.daemon = True
        timer.name = "GsmLivenessTimer"
        self._timer = timer
        timer.start()

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        with self._lock:
            if self._timer is None or threading.current_thread() is not self._timer:
                return
            self._timer = None
        self._on_due()
