"""Record values handed to the mDNS advertiser and the builder producing them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple

from .exceptions import ExtractionError, ParseError
from .hosts import advertised_names
from .resources import IngressRoute

LOG = logging.getLogger(__name__)


class Action(str, Enum):
    """What the advertiser should do with a record.

    ``UPDATED`` only exists to describe the event that caused a record; update
    events are always split into ``DELETED`` followed by ``ADDED`` records
    before they reach the channel.
    """

    ADDED = "Added"
    DELETED = "Deleted"
    UPDATED = "Updated"


@dataclass(frozen=True)
class Record:
    """One hostname-to-address advertisement change.

    Attributes
    ----------
    source_type:
        Tag of the watcher kind that produced the record (``"ingress"``).
    action:
        :attr:`Action.ADDED` or :attr:`Action.DELETED`.
    name:
        Canonical hostname without the ``.local`` suffix.
    namespace:
        Namespace of the route object the hostname came from.
    ips:
        Addresses to advertise, in discovery order.  May be empty.
    """

    source_type: str
    action: Action
    name: str
    namespace: str
    ips: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "source_type": self.source_type,
            "action": self.action.value,
            "name": self.name,
            "namespace": self.namespace,
            "ips": list(self.ips),
        }


class RecordBuilder:
    """Turn route objects into records for a fixed set of addresses."""

    def __init__(self, source_type: str, ips: Iterable[str]) -> None:
        self._source_type = source_type
        self._ips = tuple(ips)

    @property
    def source_type(self) -> str:
        return self._source_type

    @property
    def ips(self) -> Tuple[str, ...]:
        return self._ips

    def build_entry(self, namespace: str, match: str, action: Action) -> List[Record]:
        """Build records for a single route entry.

        Raises :class:`ParseError` or :class:`ExtractionError` when the rule
        cannot be used; no records are returned for the entry in that case.
        """

        return [
            Record(
                source_type=self._source_type,
                action=action,
                name=name,
                namespace=namespace,
                ips=self._ips,
            )
            for name in advertised_names(match)
        ]

    def build(self, route: IngressRoute, action: Action) -> List[Record]:
        """Build records for every entry of ``route``, skipping broken entries."""

        records: List[Record] = []
        for index, entry in enumerate(route.routes):
            try:
                records.extend(self.build_entry(route.namespace, entry.match, action))
            except (ParseError, ExtractionError) as exc:
                LOG.warning(
                    "Skipping route %d of %s %s: %s",
                    index,
                    route.kind,
                    route.key,
                    exc,
                )
        return records

