"""Translate Traefik routes into mDNS address records.

The package watches ``IngressRoute`` objects and turns every ``.local`` host
found in their rules into :class:`~external_mdns.records.Record` values on a
shared :class:`~external_mdns.channel.RecordChannel`.  The pieces are:

* :mod:`external_mdns.rules` parsing rule expressions into a small tree;
* :mod:`external_mdns.hosts` picking advertisable hostnames out of that tree;
* :mod:`external_mdns.resolver` looking up the load balancer addresses once;
* :mod:`external_mdns.controller` ordering add/update/delete records.

Advertising the records over multicast DNS is left to the consumer of the
channel.
"""

from .channel import RecordChannel  # noqa: F401
from .controller import RouteSyncController, create_ingress_route_controller  # noqa: F401
from .exceptions import (  # noqa: F401
    CanonicalizationError,
    ExternalMDNSError,
    ExtractionError,
    ParseError,
    ResolutionError,
)
from .records import Action, Record  # noqa: F401

__all__ = [
    "Action",
    "CanonicalizationError",
    "ExternalMDNSError",
    "ExtractionError",
    "ParseError",
    "Record",
    "RecordChannel",
    "ResolutionError",
    "RouteSyncController",
    "create_ingress_route_controller",
]
