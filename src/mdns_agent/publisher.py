"""Record channel consumer."""

from __future__ import annotations

import json
import logging
from threading import Event, Thread
from typing import Callable, Optional

from external_mdns.channel import RecordChannel
from external_mdns.records import Record

LOG = logging.getLogger(__name__)

RecordSink = Callable[[Record], None]


def log_record(record: Record) -> None:
    if not record.ips:
        LOG.info("record %s has no addresses: %s", record.name, json.dumps(record.as_dict()))
        return
    LOG.info("record: %s", json.dumps(record.as_dict()))


class RecordPublisher(Thread):
    """Drain ``channel`` into ``sink`` until ``stop_event`` is set.

    The default sink only logs; a multicast DNS responder plugs in here.
    """

    def __init__(
        self,
        channel: RecordChannel,
        stop_event: Event,
        sink: Optional[RecordSink] = None,
        poll_interval: float = 0.5,
    ) -> None:
        super().__init__(daemon=True, name="record-publisher")
        self._channel = channel
        self._stop_event = stop_event
        self._sink = sink or log_record
        self._poll_interval = poll_interval

    def run(self) -> None:
        while not self._stop_event.is_set():
            self.drain_once(self._poll_interval)

    def drain_once(self, timeout: Optional[float] = None) -> bool:
        """Hand at most one record to the sink; return whether one arrived."""

        record = self._channel.get(timeout=timeout)
        if record is None:
            return False
        try:
            self._sink(record)
        except Exception:
            LOG.exception("record sink failed for %s", record.name)
        return True
