"""Lifecycle events published by the informer.

Each event knows which handler capability it maps to, so the registry never
has to inspect event or object types.
"""

from __future__ import annotations

from dataclasses import dataclass

from .handlers import RouteEventHandler
from .resources import IngressRoute


@dataclass(frozen=True)
class RouteAdded:
    """A route object appeared in the cache."""

    route: IngressRoute

    def apply(self, handler: RouteEventHandler) -> None:
        handler.on_add(self.route)


@dataclass(frozen=True)
class RouteUpdated:
    """A cached route object changed.

    ``old`` is the cached state prior to the change so handlers can withdraw
    whatever they derived from it.
    """

    old: IngressRoute
    new: IngressRoute

    def apply(self, handler: RouteEventHandler) -> None:
        handler.on_update(self.old, self.new)


@dataclass(frozen=True)
class RouteDeleted:
    """A route object left the cache."""

    route: IngressRoute

    def apply(self, handler: RouteEventHandler) -> None:
        handler.on_delete(self.route)
