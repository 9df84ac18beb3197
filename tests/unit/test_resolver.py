import logging

import pytest
from kubernetes.client import (
    V1LoadBalancerIngress,
    V1LoadBalancerStatus,
    V1ObjectMeta,
    V1Service,
    V1ServiceList,
    V1ServiceSpec,
    V1ServiceStatus,
)
from kubernetes.client.rest import ApiException
from urllib3.exceptions import ReadTimeoutError

from external_mdns.exceptions import ResolutionError
from external_mdns.resolver import ServiceIPResolver


def service(name, *ips, namespace="traefik", app="traefik", type_="LoadBalancer", hostnames=()):
    ingress = [V1LoadBalancerIngress(ip=ip) for ip in ips]
    ingress.extend(V1LoadBalancerIngress(hostname=h) for h in hostnames)
    return V1Service(
        metadata=V1ObjectMeta(
            name=name,
            namespace=namespace,
            labels={"app.kubernetes.io/name": app} if app else None,
        ),
        spec=V1ServiceSpec(type=type_),
        status=V1ServiceStatus(load_balancer=V1LoadBalancerStatus(ingress=ingress or None)),
    )


class FakeCoreV1Api:
    def __init__(self, services=None, error=None):
        self.services = list(services or [])
        self.error = error
        self.calls = []

    def list_service_for_all_namespaces(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return V1ServiceList(items=list(self.services))


def test_resolve_collects_load_balancer_ips_in_order():
    api = FakeCoreV1Api(
        [
            service("traefik", "10.0.0.1"),
            service("traefik-internal", "10.0.0.2", namespace="infra"),
        ]
    )

    assert ServiceIPResolver(api).resolve() == ["10.0.0.1", "10.0.0.2"]


def test_resolve_uses_label_selector_and_timeout():
    api = FakeCoreV1Api()

    ServiceIPResolver(api).resolve()

    assert api.calls == [
        {"label_selector": "app.kubernetes.io/name=traefik", "_request_timeout": 30.0}
    ]


def test_resolve_filters_services_client_side():
    api = FakeCoreV1Api(
        [
            service("traefik", "10.0.0.1", type_="ClusterIP"),
            service("nginx", "10.0.0.9", app="nginx"),
            service("unlabelled", "10.0.0.8", app=None),
            service("traefik-lb", "10.0.0.2"),
        ]
    )

    assert ServiceIPResolver(api).resolve() == ["10.0.0.2"]


def test_resolve_keeps_duplicates():
    api = FakeCoreV1Api([service("a", "10.0.0.1"), service("b", "10.0.0.1")])

    assert ServiceIPResolver(api).resolve() == ["10.0.0.1", "10.0.0.1"]


def test_resolve_skips_invalid_ips(caplog):
    api = FakeCoreV1Api(
        [service("traefik", "10.0.0.1", "not-an-ip", "fd00::1", hostnames=("lb.example.com",))]
    )

    with caplog.at_level(logging.WARNING):
        ips = ServiceIPResolver(api).resolve()

    assert ips == ["10.0.0.1", "fd00::1"]
    assert "not-an-ip" in caplog.text


def test_resolve_normalises_addresses():
    api = FakeCoreV1Api([service("traefik", "FD00:0:0::1")])

    assert ServiceIPResolver(api).resolve() == ["fd00::1"]


def test_resolve_without_matching_services_is_empty():
    assert ServiceIPResolver(FakeCoreV1Api()).resolve() == []


def test_service_without_ingress_contributes_nothing():
    assert ServiceIPResolver(FakeCoreV1Api([service("traefik")])).resolve() == []


def test_custom_label_and_type():
    api = FakeCoreV1Api(
        [
            service("ingress", "10.1.0.1", app="ingress-nginx", type_="NodePort"),
            service("traefik", "10.0.0.1"),
        ]
    )
    resolver = ServiceIPResolver(
        api, label_value="ingress-nginx", service_type="NodePort", timeout=5
    )

    assert resolver.resolve() == ["10.1.0.1"]
    assert api.calls[0]["_request_timeout"] == 5


def test_api_error_is_fatal():
    api = FakeCoreV1Api(error=ApiException(status=403, reason="Forbidden"))

    with pytest.raises(ResolutionError, match="403"):
        ServiceIPResolver(api).resolve()


def test_timeout_is_fatal():
    api = FakeCoreV1Api(
        error=ReadTimeoutError(None, "/api/v1/services", "Read timed out.")
    )

    with pytest.raises(ResolutionError):
        ServiceIPResolver(api).resolve()

    assert len(api.calls) == 1
