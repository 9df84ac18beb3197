"""Kubernetes client bootstrap."""

from __future__ import annotations

import logging
from typing import Tuple

from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.config.config_exception import ConfigException

from .config import KubernetesConfig

LOG = logging.getLogger(__name__)


def create_api_client(settings: KubernetesConfig) -> client.ApiClient:
    """Load cluster credentials and return an API client.

    With ``in_cluster`` unset the service account configuration is tried
    first and the kubeconfig file is used as a fallback.
    """

    if settings.in_cluster is not False:
        try:
            k8s_config.load_incluster_config()
            LOG.info("Using in-cluster Kubernetes configuration")
            return client.ApiClient()
        except ConfigException:
            if settings.in_cluster:
                raise
            LOG.debug("In-cluster configuration unavailable, trying kubeconfig")

    config_file = str(settings.kubeconfig) if settings.kubeconfig else None
    api_client = k8s_config.new_client_from_config(
        config_file=config_file, context=settings.context
    )
    LOG.info(
        "Using kubeconfig %s (context=%s)",
        config_file or "<default>",
        settings.context or "<current>",
    )
    return api_client


def build_apis(api_client: client.ApiClient) -> Tuple[client.CoreV1Api, client.CustomObjectsApi]:
    return client.CoreV1Api(api_client), client.CustomObjectsApi(api_client)
