"""Synchronous in-process event fan-out.

Subscribers are plain callables taking a :class:`RegistryEvent`. A failing
subscriber is logged and skipped; it never affects the mutation that
produced the event or the other subscribers.

Publishing is split in two steps. :meth:`EventNotifier.prepare` stamps the
sequence number and is called while the registry still holds its lock, so
numbering follows commit order. :meth:`EventNotifier.deliver` runs after the
lock is released and hands events to subscribers strictly by sequence
number, whichever thread ends up doing the delivery.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from appreg.events.models import EVENT_KINDS, RegistryEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[RegistryEvent], Any]


class EventNotifier:
    """Publishes registry events to registered subscribers, in commit order."""

    def __init__(self) -> None:
        self._subscribers: dict[str, tuple[Subscriber, Optional[frozenset[str]]]] = {}
        self._sequence = 0
        self._delivered = 0
        self._ready: dict[int, RegistryEvent] = {}
        self._lock = threading.Lock()
        self._delivery_lock = threading.RLock()

    def subscribe(self, callback: Subscriber, kinds: Optional[Iterable[str]] = None) -> str:
        """Register *callback* for *kinds* (all kinds when ``None``). Returns its id."""
        wanted = None
        if kinds is not None:
            wanted = frozenset(kinds)
            unknown = wanted.difference(EVENT_KINDS)
            if unknown:
                raise ValueError(f"Unknown event kinds: {sorted(unknown)}")
        subscription_id = uuid.uuid4().hex[:16]
        with self._lock:
            self._subscribers[subscription_id] = (callback, wanted)
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        with self._lock:
            return self._subscribers.pop(subscription_id, None) is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def prepare(self, kind: str, actor: str, **payload: Any) -> RegistryEvent:
        """Build the next event. Every prepared event must later be delivered."""
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind: {kind}")
        with self._lock:
            self._sequence += 1
            return RegistryEvent(
                kind=kind,
                actor=actor,
                payload=payload,
                sequence=self._sequence,
                emitted_at=datetime.now(timezone.utc).isoformat(),
            )

    def deliver(self, events: Iterable[RegistryEvent]) -> None:
        """Hand prepared events to subscribers in sequence order.

        An event whose predecessors are still being prepared elsewhere is
        parked; the thread delivering the predecessor drains it.
        """
        with self._lock:
            for event in events:
                self._ready[event.sequence] = event

        with self._delivery_lock:
            while True:
                with self._lock:
                    event = self._ready.pop(self._delivered + 1, None)
                    if event is None:
                        return
                    self._delivered = event.sequence
                    targets = list(self._subscribers.items())
                self._dispatch(event, targets)

    def publish(self, kind: str, actor: str, **payload: Any) -> RegistryEvent:
        """Prepare and deliver one event."""
        event = self.prepare(kind, actor, **payload)
        self.deliver([event])
        return event

    def _dispatch(self, event: RegistryEvent, targets) -> None:
        for subscription_id, (callback, wanted) in targets:
            if wanted is not None and event.kind not in wanted:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Subscriber %s failed on %s #%d", subscription_id, event.kind, event.sequence
                )
