"""Dispatch route events to the registered handlers."""

from __future__ import annotations

import logging
from typing import Dict, Union

from .events import RouteAdded, RouteDeleted, RouteUpdated
from .handlers import RouteEventHandler

LOG = logging.getLogger(__name__)

RouteEvent = Union[RouteAdded, RouteUpdated, RouteDeleted]


class HandlerRegistry:
    """Fan route events out to named handlers.

    A failing handler is logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, RouteEventHandler] = {}

    def register(self, name: str, handler: RouteEventHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"handler '{name}' already registered")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def __len__(self) -> int:
        return len(self._handlers)

    def handle(self, event: RouteEvent) -> None:
        for name, handler in list(self._handlers.items()):
            try:
                event.apply(handler)
            except Exception:
                LOG.exception("handler %s failed to process %r", name, event)
