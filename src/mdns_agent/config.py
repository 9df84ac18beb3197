"""YAML configuration loader for the external-mdns agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from external_mdns.channel import DEFAULT_CHANNEL_SIZE
from external_mdns.resolver import (
    DEFAULT_LABEL_NAME,
    DEFAULT_LABEL_VALUE,
    DEFAULT_SERVICE_TYPE,
    DEFAULT_TIMEOUT,
)
from external_mdns.resources import IngressRoute

WATCHER_TYPES = ("ingressroute",)


@dataclass
class KubernetesConfig:
    kubeconfig: Optional[Path] = None
    context: Optional[str] = None
    in_cluster: Optional[bool] = None


@dataclass
class ResolverConfig:
    label_name: str = DEFAULT_LABEL_NAME
    label_value: str = DEFAULT_LABEL_VALUE
    service_type: str = DEFAULT_SERVICE_TYPE
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class WatcherConfig:
    type: str
    namespace: str = ""
    group: str = IngressRoute.group
    version: str = IngressRoute.version
    sync_timeout: float = 30.0
    watch_timeout: float = 300.0


@dataclass
class AgentConfig:
    kubernetes: KubernetesConfig = field(default_factory=KubernetesConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    watchers: Sequence[WatcherConfig] = field(default_factory=list)
    channel_size: int = DEFAULT_CHANNEL_SIZE


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_kubernetes(section: dict) -> KubernetesConfig:
    kubeconfig = section.get("kubeconfig")
    in_cluster = section.get("in_cluster")
    return KubernetesConfig(
        kubeconfig=Path(kubeconfig).expanduser() if kubeconfig else None,
        context=section.get("context"),
        in_cluster=None if in_cluster is None else bool(in_cluster),
    )


def _parse_resolver(section: dict) -> ResolverConfig:
    return ResolverConfig(
        label_name=str(section.get("label_name", DEFAULT_LABEL_NAME)),
        label_value=str(section.get("label_value", DEFAULT_LABEL_VALUE)),
        service_type=str(section.get("service_type", DEFAULT_SERVICE_TYPE)),
        timeout=float(section.get("timeout", DEFAULT_TIMEOUT)),
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("watcher entries must be mappings")
        watcher_type = str(entry["type"]).lower()
        if watcher_type not in WATCHER_TYPES:
            raise ValueError(f"unsupported watcher type '{entry['type']}'")
        watchers.append(
            WatcherConfig(
                type=watcher_type,
                namespace=str(entry.get("namespace") or ""),
                group=str(entry.get("group", IngressRoute.group)),
                version=str(entry.get("version", IngressRoute.version)),
                sync_timeout=float(entry.get("sync_timeout", 30.0)),
                watch_timeout=float(entry.get("watch_timeout", 300.0)),
            )
        )
    return watchers


def parse_config(data: dict) -> AgentConfig:
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    watchers_section = data.get("watchers")
    if watchers_section is None:
        watchers = [WatcherConfig(type="ingressroute")]
    elif isinstance(watchers_section, list):
        watchers = _parse_watchers(watchers_section)
    else:
        raise ValueError("'watchers' section must be a list")

    channel_size = int(data.get("channel_size", DEFAULT_CHANNEL_SIZE))
    if channel_size <= 0:
        raise ValueError("'channel_size' must be positive")

    return AgentConfig(
        kubernetes=_parse_kubernetes(_section(data, "kubernetes")),
        resolver=_parse_resolver(_section(data, "resolver")),
        watchers=watchers,
        channel_size=channel_size,
    )


def load_config(path: Optional[Path]) -> AgentConfig:
    """Load ``path``; ``None`` yields the built-in defaults."""

    if path is None:
        return parse_config({})
    data = yaml.safe_load(path.read_text())
    return parse_config(data if data is not None else {})
