"""
Event dispatching.

The engine publishes events to a queue and never waits for subscribers. A
dispatcher thread drains the queue and calls the callbacks registered for
each event kind, so a slow or failing subscriber cannot stall protocol I/O.
"""

import logging
import queue
import threading
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional

from ..types import Event, EventKind, LogLine, MessageIndication, MessageReceived

logger = logging.getLogger(__name__)

# Type alias for event callbacks
EventCallback = Callable[[Event], None]


class EventDispatcher:
    """
    Delivers engine events to subscribers.

    Features:
    - Non-blocking publish from any thread
    - Callback registration per event kind
    - Bounded history of received message indications for polling
    - Error isolation for misbehaving callbacks
    """

    def __init__(self, max_message_queue_size: int = 1000) -> None:
        """
        Initialize event dispatcher.

        Args:
            max_message_queue_size: Maximum number of received message
                                    indications kept for polling
        """
        self._events: "queue.Queue[Optional[Event]]" = queue.Queue()
        self._messages: Deque[MessageReceived] = deque(maxlen=max_message_queue_size)

        # Callback registry: kind -> callbacks
        self._callbacks: Dict[EventKind, List[EventCallback]] = {}

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

        logger.debug(f"Initialized event dispatcher (max_message_queue_size={max_message_queue_size})")

    def start(self) -> None:
        """Start the dispatcher thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Event dispatcher already started")
            return

        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="GsmEventDispatcher"
        )
        self._thread.start()

    def stop(self, timeout: float = 10.0) -> None:
        """
        Deliver the events already published, then stop the dispatcher thread.

        Args:
            timeout: Seconds to wait for the thread to finish
        """
        if self._thread is None:
            return

        self._events.put(None)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Event dispatcher did not terminate in time")
        self._thread = None

    def subscribe(self, kind: EventKind, callback: EventCallback) -> None:
        """
        Register a callback for an event kind.

        Args:
            kind: Event kind to listen for
            callback: Function called on the dispatcher thread.
                     Signature: callback(event: Event) -> None

        Example:

        .. code-block:: python

            dispatcher.subscribe(
                EventKind.MESSAGE_RECEIVED,
                lambda event: print(event.payload.indication)
            )
        """
        with self._lock:
            self._callbacks.setdefault(kind, []).append(callback)

    def unsubscribe(self, kind: EventKind, callback: EventCallback) -> bool:
        """
        Unregister a callback.

        Returns:
            True if callback was removed, False if not found
        """
        with self._lock:
            callbacks = self._callbacks.get(kind, [])
            if callback in callbacks:
                callbacks.remove(callback)
                return True
            return False

    def has_subscribers(self, kind: EventKind) -> bool:
        """Check if any callback listens for an event kind."""
        with self._lock:
            return bool(self._callbacks.get(kind))

    def publish(self, event: Event) -> None:
        """Queue an event for delivery. Never blocks."""
        self._events.put_nowait(event)

    def publish_message(self, indication: MessageIndication, description: str) -> None:
        """Record a received message indication and queue its event."""
        payload = MessageReceived(indication=indication, description=description)
        with self._lock:
            self._messages.append(payload)
        if not self.has_subscribers(EventKind.MESSAGE_RECEIVED):
            logger.info("No subscribers for message-received, indication kept for polling only.")
        self.publish(Event(EventKind.MESSAGE_RECEIVED, payload))

    def pop_message(self) -> Optional[MessageReceived]:
        """
        Pop the oldest received message indication.

        Returns:
            Oldest MessageReceived or None if nothing was received
        """
        with self._lock:
            if self._messages:
                return self._messages.popleft()
            return None

    def message_count(self) -> int:
        """Number of message indications waiting to be popped."""
        with self._lock:
            return len(self._messages)

    def _run(self) -> None:
        while True:
            event = self._events.get()
            if event is None:
                break
            self._dispatch(event)

    def _dispatch(self, event: Event) -> None:
        # Copy callbacks so a slow callback never holds the registry lock
        with self._lock:
            callbacks = list(self._callbacks.get(event.kind, []))

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Event callback for {event.kind.value} failed: {e}", exc_info=True)


class EventLogHandler(logging.Handler):
    """
    Forwards log records as LOGLINE_ADDED events.

    Records from this module are skipped, so dispatching never feeds back
    into itself.
    """

    def __init__(self, dispatcher: EventDispatcher, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self.dispatcher = dispatcher
        self.addFilter(lambda record: record.name != __name__)

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        return f"{stamp} [gsmphone] {record.getMessage()}"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = LogLine(level=record.levelno, text=self.format(record))
            self.dispatcher.publish(Event(EventKind.LOGLINE_ADDED, line))
        except Exception:
            self.handleError(record)
