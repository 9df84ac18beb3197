"""List+watch loop over a custom resource with a local object cache."""

from __future__ import annotations

import logging
import time
from threading import Event, Thread
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from kubernetes import watch
from kubernetes.client.rest import ApiException

from .events import RouteAdded, RouteDeleted, RouteUpdated
from .registry import HandlerRegistry
from .resources import IngressRoute

LOG = logging.getLogger(__name__)

HTTP_GONE = 410


class WatchExpired(Exception):
    """The resource version a watch resumed from is no longer available."""


def wait_for_cache_sync(
    stop_event: Event,
    has_synced: Callable[[], bool],
    timeout: Optional[float] = None,
    interval: float = 0.1,
) -> bool:
    """Block until ``has_synced()`` is true, ``stop_event`` fires or time runs out.

    Returns whether the cache synced.
    """

    deadline = None if timeout is None else time.monotonic() + timeout
    while not has_synced():
        if stop_event.is_set():
            return False
        if deadline is not None and time.monotonic() >= deadline:
            return False
        stop_event.wait(interval)
    return True


class RouteInformer(Thread):
    """Keep a cache of ``IngressRoute`` objects and publish their changes.

    The informer lists the resource, reconciles the listing with its cache,
    then watches from the listed resource version.  Events are handed to
    :attr:`registry`.
    """

    def __init__(
        self,
        custom_api: Any,
        *,
        stop_event: Event,
        namespace: str = "",
        group: str = IngressRoute.group,
        version: str = IngressRoute.version,
        plural: str = IngressRoute.plural,
        watch_timeout: float = 300.0,
        retry_interval: float = 5.0,
        registry: Optional[HandlerRegistry] = None,
    ) -> None:
        super().__init__(daemon=True, name=f"informer-{plural}")
        self._api = custom_api
        self._stop_event = stop_event
        self._namespace = namespace
        self._group = group
        self._version = version
        self._plural = plural
        self._watch_timeout = watch_timeout
        self._retry_interval = retry_interval
        self._registry = registry if registry is not None else HandlerRegistry()
        self._cache: Dict[str, IngressRoute] = {}
        self._synced = Event()

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    def has_synced(self) -> bool:
        return self._synced.is_set()

    def cached(self) -> Iterable[IngressRoute]:
        return list(self._cache.values())

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self) -> None:
        LOG.info(
            "Starting %s informer (namespace=%s)", self._plural, self._namespace or "*"
        )
        while not self._stop_event.is_set():
            try:
                resource_version = self.resync()
                while not self._stop_event.is_set():
                    resource_version = self.watch_once(resource_version)
            except WatchExpired:
                LOG.info("%s watch expired, relisting", self._plural)
                continue
            except Exception:
                LOG.exception("%s informer failed, retrying", self._plural)
            self._stop_event.wait(self._retry_interval)
        LOG.info("Stopping %s informer", self._plural)

    def _list_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "group": self._group,
            "version": self._version,
            "plural": self._plural,
        }
        if self._namespace:
            kwargs["namespace"] = self._namespace
        return kwargs

    def _list_func(self) -> Callable[..., Any]:
        if self._namespace:
            return self._api.list_namespaced_custom_object
        return self._api.list_cluster_custom_object

    def resync(self) -> str:
        """List the resource, reconcile the cache and return the list version."""

        response = self._list_func()(**self._list_kwargs())
        items = response.get("items") or []

        desired: Dict[str, IngressRoute] = {}
        for obj in items:
            route = self._convert(obj)
            if route is not None:
                desired[route.key] = route

        for key, route in desired.items():
            previous = self._cache.get(key)
            if previous is None:
                self._registry.handle(RouteAdded(route))
            elif previous != route:
                self._registry.handle(RouteUpdated(previous, route))

        for key in set(self._cache) - set(desired):
            self._registry.handle(RouteDeleted(self._cache[key]))

        self._cache = desired
        if not self._synced.is_set():
            LOG.info("%s cache synced with %d objects", self._plural, len(desired))
            self._synced.set()

        return str((response.get("metadata") or {}).get("resourceVersion") or "")

    def watch_once(self, resource_version: str) -> str:
        """Consume one watch stream and return the last version seen."""

        stream = watch.Watch()
        try:
            for event in stream.stream(
                self._list_func(),
                resource_version=resource_version,
                timeout_seconds=int(self._watch_timeout),
                **self._list_kwargs(),
            ):
                resource_version = self.handle_event(event) or resource_version
                if self._stop_event.is_set():
                    break
        except ApiException as exc:
            if exc.status == HTTP_GONE:
                raise WatchExpired(str(exc)) from exc
            raise
        finally:
            stream.stop()
        return resource_version

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------
    def handle_event(self, event: Mapping[str, Any]) -> Optional[str]:
        """Apply one watch event to the cache.

        Returns the object's resource version when the event carried one.
        """

        event_type = event.get("type")
        obj = event.get("object") or {}

        if event_type == "ERROR":
            if obj.get("code") == HTTP_GONE:
                raise WatchExpired(str(obj.get("message", "")))
            LOG.warning("%s watch reported error: %s", self._plural, obj)
            return None
        if event_type == "BOOKMARK":
            return (obj.get("metadata") or {}).get("resourceVersion")

        route = self._convert(obj)
        if route is None:
            return None

        previous = self._cache.get(route.key)
        if event_type in ("ADDED", "MODIFIED"):
            self._cache[route.key] = route
            if previous is None:
                self._registry.handle(RouteAdded(route))
            elif previous != route:
                self._registry.handle(RouteUpdated(previous, route))
            else:
                LOG.debug("%s %s changed without route changes", route.kind, route.key)
        elif event_type == "DELETED":
            self._cache.pop(route.key, None)
            self._registry.handle(RouteDeleted(previous or route))
        else:
            LOG.debug("ignoring %s watch event %s", self._plural, event_type)
        return route.resource_version or None

    def _convert(self, obj: Mapping[str, Any]) -> Optional[IngressRoute]:
        try:
            return IngressRoute.from_object(obj)
        except ValueError as exc:
            LOG.warning("Ignoring malformed %s object: %s", self._plural, exc)
            return None
