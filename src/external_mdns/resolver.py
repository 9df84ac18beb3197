"""Look up the addresses the routing layer is reachable on."""

from __future__ import annotations

import ipaddress
import logging
from typing import Any, Iterable, List

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from .exceptions import ResolutionError

LOG = logging.getLogger(__name__)

DEFAULT_LABEL_NAME = "app.kubernetes.io/name"
DEFAULT_LABEL_VALUE = "traefik"
DEFAULT_SERVICE_TYPE = "LoadBalancer"
DEFAULT_TIMEOUT = 30.0


def _ingress_ips(service: Any) -> Iterable[Any]:
    status = getattr(service, "status", None)
    load_balancer = getattr(status, "load_balancer", None)
    return getattr(load_balancer, "ingress", None) or []


class ServiceIPResolver:
    """Collect load balancer ingress IPs of the routing layer's services.

    Services in every namespace are considered when they carry
    ``label_name=label_value`` and are of ``service_type``.  The lookup is a
    single request bounded by ``timeout`` seconds and is never retried.
    """

    def __init__(
        self,
        core_api: Any,
        *,
        label_name: str = DEFAULT_LABEL_NAME,
        label_value: str = DEFAULT_LABEL_VALUE,
        service_type: str = DEFAULT_SERVICE_TYPE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api = core_api
        self._label_name = label_name
        self._label_value = label_value
        self._service_type = service_type
        self._timeout = timeout

    @property
    def label_selector(self) -> str:
        return f"{self._label_name}={self._label_value}"

    def resolve(self) -> List[str]:
        """Return IP strings in discovery order.

        Raises :class:`ResolutionError` if the API cannot be reached in time.
        Malformed addresses are logged and skipped.
        """

        try:
            services = self._api.list_service_for_all_namespaces(
                label_selector=self.label_selector,
                _request_timeout=self._timeout,
            )
        except ApiException as exc:
            raise ResolutionError(
                f"listing services failed with status {exc.status}: {exc.reason}"
            ) from exc
        except (HTTPError, OSError) as exc:
            raise ResolutionError(f"listing services failed: {exc}") from exc

        ips: List[str] = []
        for service in services.items or []:
            labels = (service.metadata.labels if service.metadata else None) or {}
            if labels.get(self._label_name) != self._label_value:
                continue
            if service.spec is None or service.spec.type != self._service_type:
                continue

            for ingress in _ingress_ips(service):
                try:
                    ips.append(str(ipaddress.ip_address(ingress.ip)))
                except ValueError:
                    LOG.warning(
                        "Unable to parse IP address %s of service %s/%s",
                        ingress.ip,
                        service.metadata.namespace,
                        service.metadata.name,
                    )

        LOG.info("%s service IP addresses: %s", self._label_value, ips)
        return ips
