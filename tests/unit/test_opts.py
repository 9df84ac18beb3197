from pathlib import Path

import pytest
from oslo_config import cfg

from mdns_agent.opts import GROUP, config_from_opts, list_opts, register_mdns_opts


def build_conf(tmp_path: Path, content: str) -> cfg.ConfigOpts:
    config_path = tmp_path / "external-mdns.conf"
    config_path.write_text(content)
    conf = register_mdns_opts(cfg.ConfigOpts())
    conf(["--config-file", str(config_path)], project="external-mdns")
    return conf


def test_defaults(tmp_path: Path):
    agent_cfg = config_from_opts(build_conf(tmp_path, "[mdns]\n"))

    assert agent_cfg.kubernetes.kubeconfig is None
    assert agent_cfg.resolver.label_name == "app.kubernetes.io/name"
    assert agent_cfg.resolver.label_value == "traefik"
    assert agent_cfg.resolver.service_type == "LoadBalancer"
    assert agent_cfg.resolver.timeout == pytest.approx(30.0)
    assert agent_cfg.channel_size == 100
    assert len(agent_cfg.watchers) == 1
    assert agent_cfg.watchers[0].namespace == ""
    assert agent_cfg.watchers[0].group == "traefik.io"


def test_values_from_file(tmp_path: Path):
    conf = build_conf(
        tmp_path,
        """
[mdns]
kubeconfig = /etc/external-mdns/kubeconfig
kube_context = lab
service_label_value = traefik-internal
resolve_timeout = 12.5
channel_size = 10
watch_namespaces = apps, infra, apps
sync_timeout = 3
""",
    )

    agent_cfg = config_from_opts(conf)

    assert agent_cfg.kubernetes.kubeconfig == Path("/etc/external-mdns/kubeconfig")
    assert agent_cfg.kubernetes.context == "lab"
    assert agent_cfg.resolver.label_value == "traefik-internal"
    assert agent_cfg.resolver.timeout == pytest.approx(12.5)
    assert agent_cfg.channel_size == 10
    assert [w.namespace for w in agent_cfg.watchers] == ["apps", "infra"]
    assert all(w.sync_timeout == pytest.approx(3.0) for w in agent_cfg.watchers)


def test_invalid_channel_size_is_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        config_from_opts(build_conf(tmp_path, "[mdns]\nchannel_size = 0\n"))


def test_list_opts():
    groups = dict(list_opts())

    assert GROUP in groups
    assert {opt.name for opt in groups[GROUP]} >= {"kubeconfig", "channel_size"}
