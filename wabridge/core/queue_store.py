from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from wabridge.domain.models import MessageRecord
from wabridge.observability import metrics

@dataclass(eq=False)
class RecipientQueue:
    """Pending records for one recipient plus the lock guarding them."""
    records: list[MessageRecord] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

class QueueStore:
    """In-process message queues keyed by recipient (business WhatsApp number).

    - Queues exist only once registered; appends to unknown recipients are refused.
    - Append and drain hold the recipient's lock for the whole read/modify step.
    - Nothing is persisted and there is no capacity bound.
    """

    def __init__(self):
        self._queues: dict[str, RecipientQueue] = {}

    def register(self, recipient: str) -> bool:
        """Create an empty queue for recipient. Returns False if it already existed."""
        if recipient in self._queues:
            return False
        self._queues[recipient] = RecipientQueue()
        metrics.queue_depth.labels(recipient=recipient).set(0)
        return True

    def is_registered(self, recipient: str) -> bool:
        return recipient in self._queues

    def recipients(self) -> list[str]:
        return list(self._queues)

    def depth(self, recipient: str) -> int:
        q = self._queues.get(recipient)
        return len(q.records) if q else 0

    async def append(self, recipient: str, record: MessageRecord) -> bool:
        q = self._queues.get(recipient)
        if q is None:
            return False
        async with q.lock:
            q.records.append(record)
            metrics.queue_depth.labels(recipient=recipient).set(len(q.records))
        return True

    async def drain(self, recipient: str) -> list[MessageRecord]:
        """Return every pending record in receipt order and empty the queue."""
        q = self._queues.get(recipient)
        if q is None:
            return []
        async with q.lock:
            drained, q.records = q.records, []
            metrics.queue_depth.labels(recipient=recipient).set(0)
        return drained
