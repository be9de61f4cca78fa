"""stickychain.core.bus

In-process notifications after a mutation is committed.

Design goals:
- synchronous, no event loop
- glob matching on dotted topics (fnmatch)
- best-effort delivery: a failing subscriber never undoes a recorded mutation
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Any

from stickychain.core.models import HashRecord
from stickychain.core.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    topic: str
    actor_id: str
    data: Any
    record: HashRecord | None = None
    board_id: str | None = None
    ts: datetime = field(default_factory=utc_now)


Handler = Callable[[Notification], None]


@dataclass(frozen=True, slots=True)
class Subscription:
    id: int
    pattern: str
    handler: Handler

    def matches(self, topic: str) -> bool:
        return fnmatchcase(topic, self.pattern)


class EventBus:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subs: dict[int, Subscription] = {}

    def subscribe(self, pattern: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for topics matching `pattern`. Returns an unsubscribe callable."""

        with self._lock:
            sub = Subscription(id=next(self._ids), pattern=pattern, handler=handler)
            self._subs[sub.id] = sub

        def _unsubscribe() -> None:
            with self._lock:
                self._subs.pop(sub.id, None)

        return _unsubscribe

    def publish(self, notification: Notification) -> int:
        """Deliver to every matching subscriber. Returns the number delivered."""

        with self._lock:
            targets = [s for s in self._subs.values() if s.matches(notification.topic)]

        delivered = 0
        for sub in targets:
            try:
                sub.handler(notification)
                delivered += 1
            except Exception:  # noqa: BLE001 - subscriber isolation boundary
                logger.exception(
                    "subscriber_failed",
                    extra={"topic": notification.topic, "pattern": sub.pattern},
                )
        return delivered

    def stats(self) -> dict[str, int]:
        with self._lock:
            out: dict[str, int] = {}
            for s in self._subs.values():
                out[s.pattern] = out.get(s.pattern, 0) + 1
            return out


class AuditTrailObserver:
    """Keeps every notification it sees. Handy for demos and tests."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self.notifications.append(notification)


def log_notification(notification: Notification) -> None:
    logger.info(
        "notification",
        extra={
            "topic": notification.topic,
            "actor_id": notification.actor_id,
            "seq": notification.record.sequence_number if notification.record else None,
        },
    )
