"""Hostname extraction and canonicalisation for ``.local`` advertisements."""

from __future__ import annotations

import logging
from typing import Iterable, List
from urllib.parse import urlsplit

from .exceptions import CanonicalizationError, ExtractionError
from .rules import Node, clauses, parse

LOG = logging.getLogger(__name__)

LOCAL_SUFFIX = ".local"


def extract_hosts(tree: Node) -> List[str]:
    """Return the first argument of every non-negated ``Host`` clause.

    ``&&`` and ``||`` are treated alike: every reachable ``Host`` clause
    contributes.  A non-negated ``HostRegexp`` clause makes the whole rule
    unusable and raises :class:`ExtractionError`.
    """

    hosts: List[str] = []
    for clause in clauses(tree):
        if clause.negated:
            continue
        if clause.matcher == "Host":
            hosts.append(clause.args[0])
        elif clause.matcher == "HostRegexp":
            raise ExtractionError("HostRegexp not supported")
    return hosts


def local_hosts(hosts: Iterable[str]) -> List[str]:
    return [host for host in hosts if host.endswith(LOCAL_SUFFIX)]


def canonical_name(host: str) -> str:
    """Strip the ``local`` top-level label from ``host``.

    ``svc.ns.local`` becomes ``svc.ns`` (subdomain ``svc``, domain ``ns``) and
    ``a.local`` becomes ``a``.  The host is read as a URL authority, so
    userinfo and ports are dropped and the name is lower-cased.
    """

    try:
        hostname = urlsplit(f"http://{host}").hostname
    except ValueError as exc:
        raise CanonicalizationError(f"invalid host {host!r}: {exc}") from exc
    if not hostname:
        raise CanonicalizationError(f"invalid host {host!r}: no hostname")

    labels = hostname.split(".")
    if any(not label for label in labels):
        raise CanonicalizationError(f"invalid host {host!r}: empty label")
    if any(char.isspace() for char in hostname):
        raise CanonicalizationError(f"invalid host {host!r}: whitespace in name")
    if len(labels) < 2 or labels[-1] != LOCAL_SUFFIX[1:]:
        raise CanonicalizationError(
            f"cannot derive domain for {host!r} under {LOCAL_SUFFIX}"
        )

    *subdomain, domain, _tld = labels
    if subdomain:
        return f"{'.'.join(subdomain)}.{domain}"
    return domain


def advertised_names(match: str) -> List[str]:
    """Canonical names to advertise for a single rule expression.

    Parse and extraction errors propagate; a host that cannot be
    canonicalised is logged and skipped.
    """

    names: List[str] = []
    for host in local_hosts(extract_hosts(parse(match))):
        try:
            names.append(canonical_name(host))
        except CanonicalizationError as exc:
            LOG.warning("Unable to parse hostname %s: %s", host, exc)
    return names
