"""Entry point for the external-mdns agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from oslo_config import cfg

from external_mdns import RecordChannel, ResolutionError, create_ingress_route_controller

from .config import AgentConfig, load_config
from .kube import build_apis, create_api_client
from .opts import config_from_opts, register_mdns_opts
from .publisher import RecordPublisher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _load(args: argparse.Namespace) -> AgentConfig:
    if args.config_file:
        conf = register_mdns_opts(cfg.ConfigOpts())
        conf(["--config-file", str(args.config_file)], project="external-mdns")
        return config_from_opts(conf)
    config_path = args.config if args.config and args.config.exists() else None
    if args.config and config_path is None:
        LOG.warning("config file %s not found, using defaults", args.config)
    return load_config(config_path)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Advertise Traefik .local routes")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/external-mdns/config.yaml"),
        help="Path to the YAML agent configuration",
    )
    source.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="oslo.config INI file with an [mdns] section, used instead of YAML",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = _load(args)

    core_api, custom_api = build_apis(create_api_client(config.kubernetes))
    channel = RecordChannel(config.channel_size)
    stop_event = Event()

    publisher = RecordPublisher(channel, stop_event)
    publisher.start()

    controllers = []
    for watcher_cfg in config.watchers:
        try:
            controller = create_ingress_route_controller(
                core_api,
                custom_api,
                channel,
                stop_event,
                namespace=watcher_cfg.namespace,
                group=watcher_cfg.group,
                version=watcher_cfg.version,
                watch_timeout=watcher_cfg.watch_timeout,
                label_name=config.resolver.label_name,
                label_value=config.resolver.label_value,
                service_type=config.resolver.service_type,
                resolve_timeout=config.resolver.timeout,
            )
        except ResolutionError as exc:
            LOG.error("Failed to get %s service IP addresses: %s",
                      config.resolver.label_value, exc)
            stop_event.set()
            return 1
        controller.run(stop_event, sync_timeout=watcher_cfg.sync_timeout)
        controllers.append(controller)

    if not controllers:
        LOG.warning("no watchers configured; agent will idle")

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for controller in controllers:
        controller.informer.join(timeout=5)
    publisher.join(timeout=5)

    LOG.info("external-mdns agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
