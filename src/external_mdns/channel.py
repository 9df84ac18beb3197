"""Bounded record channel shared by all controllers."""

from __future__ import annotations

import queue
from threading import Lock
from typing import Iterable, Optional

from .records import Action, Record

DEFAULT_CHANNEL_SIZE = 100


class RecordChannel:
    """Multi-producer, single-consumer queue of :class:`Record` values.

    Producers block while the channel is full, so a slow advertiser throttles
    the controllers instead of letting the backlog grow.  Records passed to a
    single :meth:`publish` call are enqueued back to back; another producer
    cannot slip records in between them.
    """

    def __init__(self, maxsize: int = DEFAULT_CHANNEL_SIZE) -> None:
        if maxsize <= 0:
            raise ValueError("channel size must be positive")
        self._queue: "queue.Queue[Record]" = queue.Queue(maxsize)
        self._producer_lock = Lock()

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def __len__(self) -> int:
        return self._queue.qsize()

    def publish(self, records: Iterable[Record]) -> int:
        """Enqueue ``records`` in order and return how many were sent."""

        batch = list(records)
        for record in batch:
            if record.action not in (Action.ADDED, Action.DELETED):
                raise ValueError(f"cannot publish {record.action.value} records")
        with self._producer_lock:
            for record in batch:
                self._queue.put(record)
        return len(batch)

    def get(self, timeout: Optional[float] = None) -> Optional[Record]:
        """Return the next record, or ``None`` if none arrived within ``timeout``."""

        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
