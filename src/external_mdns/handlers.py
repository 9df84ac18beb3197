"""Abstract interface for route lifecycle handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .resources import IngressRoute


class RouteEventHandler(ABC):
    """Base class for handlers managed by :class:`HandlerRegistry`."""

    @abstractmethod
    def on_add(self, route: IngressRoute) -> None:
        """React to ``route`` being observed for the first time."""

    @abstractmethod
    def on_update(self, old: IngressRoute, new: IngressRoute) -> None:
        """React to ``old`` being replaced by ``new``."""

    @abstractmethod
    def on_delete(self, route: IngressRoute) -> None:
        """Withdraw whatever was derived from ``route``."""
