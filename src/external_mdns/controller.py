"""Route sync controller: route lifecycle events in, ordered records out."""

from __future__ import annotations

import logging
from threading import Event
from typing import Any, List, Optional, Tuple

from .channel import RecordChannel
from .handlers import RouteEventHandler
from .informer import RouteInformer, wait_for_cache_sync
from .records import Action, Record, RecordBuilder
from .resolver import DEFAULT_TIMEOUT, ServiceIPResolver
from .resources import IngressRoute

LOG = logging.getLogger(__name__)

INGRESS_SOURCE_TYPE = "ingress"


class RouteSyncController(RouteEventHandler):
    """Translate route events of one kind into records on ``channel``.

    The advertised addresses are resolved once, when the controller is
    created; a :class:`~external_mdns.exceptions.ResolutionError` there means
    the controller cannot be built.  Later changes to the load balancer are
    not picked up.
    """

    def __init__(
        self,
        informer: RouteInformer,
        channel: RecordChannel,
        resolver: ServiceIPResolver,
        *,
        source_type: str = INGRESS_SOURCE_TYPE,
    ) -> None:
        self._informer = informer
        self._channel = channel
        ips = resolver.resolve()
        if not ips:
            LOG.warning(
                "No load balancer addresses found; %s records will carry no IPs",
                source_type,
            )
        self._builder = RecordBuilder(source_type, ips)
        informer.registry.register(source_type, self)

    @property
    def informer(self) -> RouteInformer:
        return self._informer

    @property
    def ips(self) -> Tuple[str, ...]:
        return self._builder.ips

    @property
    def source_type(self) -> str:
        return self._builder.source_type

    def build_records(self, route: IngressRoute, action: Action) -> List[Record]:
        return self._builder.build(route, action)

    # ------------------------------------------------------------------
    # RouteEventHandler
    # ------------------------------------------------------------------
    def on_add(self, route: IngressRoute) -> None:
        self._forward(self.build_records(route, Action.ADDED))

    def on_delete(self, route: IngressRoute) -> None:
        self._forward(self.build_records(route, Action.DELETED))

    def on_update(self, old: IngressRoute, new: IngressRoute) -> None:
        # One batch: every Deleted record precedes every Added record.
        withdrawn = self.build_records(old, Action.DELETED)
        advertised = self.build_records(new, Action.ADDED)
        self._forward(withdrawn + advertised)

    def _forward(self, records: List[Record]) -> None:
        if not records:
            return
        sent = self._channel.publish(records)
        LOG.debug("Forwarded %d %s record(s)", sent, self.source_type)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def run(self, stop_event: Event, sync_timeout: Optional[float] = None) -> bool:
        """Start the watch and wait for the initial cache sync.

        A sync that does not finish within ``sync_timeout`` is logged and the
        controller keeps running unsynced.  Returns whether the cache synced.
        """

        if not self._informer.is_alive():
            self._informer.start()
        synced = wait_for_cache_sync(stop_event, self._informer.has_synced, sync_timeout)
        if not synced and not stop_event.is_set():
            LOG.error("timed out waiting for %s caches to sync", self.source_type)
        return synced


def create_ingress_route_controller(
    core_api: Any,
    custom_api: Any,
    channel: RecordChannel,
    stop_event: Event,
    *,
    namespace: str = "",
    group: str = IngressRoute.group,
    version: str = IngressRoute.version,
    watch_timeout: float = 300.0,
    label_name: Optional[str] = None,
    label_value: Optional[str] = None,
    service_type: Optional[str] = None,
    resolve_timeout: float = DEFAULT_TIMEOUT,
) -> RouteSyncController:
    """Wire resolver, informer and controller for Traefik ``IngressRoute``."""

    resolver_kwargs = {
        key: value
        for key, value in (
            ("label_name", label_name),
            ("label_value", label_value),
            ("service_type", service_type),
        )
        if value
    }
    resolver = ServiceIPResolver(core_api, timeout=resolve_timeout, **resolver_kwargs)
    informer = RouteInformer(
        custom_api,
        stop_event=stop_event,
        namespace=namespace,
        group=group,
        version=version,
        plural=IngressRoute.plural,
        watch_timeout=watch_timeout,
    )
    return RouteSyncController(
        informer, channel, resolver, source_type=INGRESS_SOURCE_TYPE
    )
