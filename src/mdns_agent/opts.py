"""oslo.config options for running the agent inside oslo-configured services.

The standalone agent reads YAML (see :mod:`mdns_agent.config`).  Services that
already configure themselves through oslo.config can register these options
under the ``[mdns]`` group instead and convert them with
:func:`config_from_opts`.
"""

from pathlib import Path

from oslo_config import cfg

from external_mdns.channel import DEFAULT_CHANNEL_SIZE
from external_mdns.resolver import (
    DEFAULT_LABEL_NAME,
    DEFAULT_LABEL_VALUE,
    DEFAULT_SERVICE_TYPE,
    DEFAULT_TIMEOUT,
)
from external_mdns.resources import IngressRoute

from .config import AgentConfig, KubernetesConfig, ResolverConfig, WatcherConfig

GROUP = 'mdns'

mdns_opts = [
    cfg.StrOpt('kubeconfig',
               default=None,
               help='Path to a kubeconfig file. In-cluster configuration is '
                    'tried first when unset.'),
    cfg.StrOpt('kube_context',
               default=None,
               help='kubeconfig context to use.'),
    cfg.StrOpt('service_label_name',
               default=DEFAULT_LABEL_NAME,
               help='Label identifying the routing layer services.'),
    cfg.StrOpt('service_label_value',
               default=DEFAULT_LABEL_VALUE,
               help='Value of service_label_name on routing layer services.'),
    cfg.StrOpt('service_type',
               default=DEFAULT_SERVICE_TYPE,
               help='Service type whose load balancer IPs are advertised.'),
    cfg.FloatOpt('resolve_timeout',
                 default=DEFAULT_TIMEOUT,
                 min=0,
                 help='Seconds to wait when looking up service addresses.'),
    cfg.IntOpt('channel_size',
               default=DEFAULT_CHANNEL_SIZE,
               min=1,
               help='Records buffered before watchers block.'),
    cfg.ListOpt('watch_namespaces',
                default=[''],
                help='Namespaces to watch for IngressRoute objects. '
                     'An empty entry watches all namespaces. '
                     'Example: ["apps", "infra"]'),
    cfg.StrOpt('ingressroute_group',
               default=IngressRoute.group,
               help='API group of the IngressRoute resource.'),
    cfg.FloatOpt('sync_timeout',
                 default=30.0,
                 min=0,
                 help='Seconds to wait for the initial cache sync.'),
]


def register_mdns_opts(conf=None):
    """Register the agent options with ``conf`` (global CONF by default)."""
    conf = conf if conf is not None else cfg.CONF
    conf.register_opts(mdns_opts, group=GROUP)
    return conf


def list_opts():
    return [(GROUP, mdns_opts)]


def config_from_opts(conf=None):
    """Build an :class:`AgentConfig` from registered oslo.config options.

    Args:
        conf: ConfigOpts instance the options were registered on.

    Returns:
        AgentConfig with one ingressroute watcher per namespace entry.
    """
    conf = conf if conf is not None else cfg.CONF
    group = conf[GROUP]
    namespaces = [ns.strip() for ns in group.watch_namespaces] or ['']
    return AgentConfig(
        kubernetes=KubernetesConfig(
            kubeconfig=(Path(group.kubeconfig).expanduser()
                        if group.kubeconfig else None),
            context=group.kube_context,
        ),
        resolver=ResolverConfig(
            label_name=group.service_label_name,
            label_value=group.service_label_value,
            service_type=group.service_type,
            timeout=group.resolve_timeout,
        ),
        watchers=[
            WatcherConfig(
                type='ingressroute',
                namespace=namespace,
                group=group.ingressroute_group,
                sync_timeout=group.sync_timeout,
            )
            for namespace in dict.fromkeys(namespaces)
        ],
        channel_size=group.channel_size,
    )
