"""Exception hierarchy shared by the record pipeline."""

from __future__ import annotations

from typing import Optional


class ExternalMDNSError(Exception):
    """Base class for errors raised by :mod:`external_mdns`."""


class ParseError(ExternalMDNSError, ValueError):
    """A rule expression could not be parsed."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)
        self.position = position


class ExtractionError(ExternalMDNSError, ValueError):
    """A parsed rule uses a construct hostnames cannot be derived from."""


class CanonicalizationError(ExternalMDNSError, ValueError):
    """A single ``.local`` host could not be split into its labels."""


class ResolutionError(ExternalMDNSError, RuntimeError):
    """Load balancer addresses could not be fetched from the cluster."""
