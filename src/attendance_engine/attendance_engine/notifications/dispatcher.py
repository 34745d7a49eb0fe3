from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Optional

from ..core.constants import DEFAULT_NOTIFY_MAX_RETRIES
from .model import NotificationEvent
from .notifier import Notifier

logger = logging.getLogger(__name__)

_STOP = object()


class NotificationDispatcher:
    """Fire-and-forget delivery of domain events.

    `dispatch` only enqueues; a daemon worker owns delivery, retries and
    failure logging. Nothing raised by a notifier ever reaches the request
    that produced the event.
    """

    def __init__(
        self,
        notifier: Notifier,
        *,
        max_retries: int = DEFAULT_NOTIFY_MAX_RETRIES,
        retry_delay: float = 0.5,
        queue_size: int = 1000,
        autostart: bool = True,
    ):
        self._notifier = notifier
        self._max_retries = max(0, int(max_retries))
        self._retry_delay = float(retry_delay)
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=queue_size)
        self._pending = 0
        self._idle = threading.Condition()
        self._worker: Optional[threading.Thread] = None
        self._closed = False
        if autostart:
            self.start()

    def start(self) -> None:
        if self._worker and self._worker.is_alive():
            return
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
        self._worker.start()

    def dispatch(self, event: NotificationEvent) -> None:
        if self._closed:
            logger.warning("Dispatcher closed, dropping %s notification for %s", event.kind.value, event.employee_id)
            return
        with self._idle:
            self._pending += 1
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._done()
            logger.error("Notification queue full, dropping %s notification for %s", event.kind.value, event.employee_id)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every dispatched event was handled; False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while self._pending:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True

    def close(self, timeout: Optional[float] = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        if self._worker and self._worker.is_alive():
            self._queue.put(_STOP)
            self._worker.join(timeout)

    def _done(self) -> None:
        with self._idle:
            self._pending -= 1
            if self._pending <= 0:
                self._pending = 0
                self._idle.notify_all()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            try:
                self._deliver(item)
            finally:
                self._done()

    def _deliver(self, event: NotificationEvent) -> None:
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self._notifier.notify(event.recipient, event.subject, event.body, event.metadata)
                return
            except Exception:
                if attempt == attempts:
                    logger.error(
                        "Failed to send %s notification employee=%s after %d attempt(s)",
                        event.kind.value,
                        event.employee_id,
                        attempts,
                        exc_info=True,
                    )
                    return
                logger.warning(
                    "Notification attempt %d/%d failed for %s, retrying",
                    attempt,
                    attempts,
                    event.employee_id,
                )
                time.sleep(self._retry_delay * attempt)
