from __future__ import annotations

import logging
from typing import Mapping, Protocol

from ..core.constants import NOTIFICATIONS
from ..store.repository import DocumentStore

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivery transport (email/push/in-app) behind the dispatcher."""

    def notify(self, recipient: str, subject: str, body: str, metadata: Mapping) -> None:
        raise NotImplementedError


class StoreNotifier(Notifier):
    """In-app notification: one document per event in the notifications collection."""

    def __init__(self, store: DocumentStore, *, collection: str = NOTIFICATIONS):
        self._store = store
        self._collection = collection

    def notify(self, recipient: str, subject: str, body: str, metadata: Mapping) -> None:
        self._store.insert(
            self._collection,
            {
                "userId": metadata.get("userId"),
                "recipient": recipient,
                "title": subject,
                "message": body,
                "type": metadata.get("type"),
                "read": False,
            },
        )


class LoggingNotifier(Notifier):
    def notify(self, recipient: str, subject: str, body: str, metadata: Mapping) -> None:
        logger.info("Notification to=%s subject=%r type=%s: %s", recipient, subject, metadata.get("type"), body)
