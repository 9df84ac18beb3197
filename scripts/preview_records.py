#!/usr/bin/env python3
"""Print the records an IngressRoute manifest would produce, without a cluster."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List

import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from external_mdns.controller import INGRESS_SOURCE_TYPE  # noqa: E402
from external_mdns.records import Action, Record, RecordBuilder  # noqa: E402
from external_mdns.resources import IngressRoute  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "manifests",
        type=Path,
        nargs="+",
        help="YAML files holding IngressRoute objects (multi-document allowed)",
    )
    parser.add_argument(
        "--ip",
        dest="ips",
        action="append",
        default=[],
        help="Load balancer address to attach; repeat for several",
    )
    parser.add_argument(
        "--action",
        choices=[Action.ADDED.value, Action.DELETED.value],
        default=Action.ADDED.value,
        help="Action to stamp on the records",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def load_routes(paths: Iterable[Path]) -> List[IngressRoute]:
    routes: List[IngressRoute] = []
    for path in paths:
        with path.open() as fh:
            for document in yaml.safe_load_all(fh):
                if not isinstance(document, dict):
                    continue
                if document.get("kind") != IngressRoute.kind:
                    LOG.info("skipping %s object in %s", document.get("kind"), path)
                    continue
                routes.append(IngressRoute.from_object(document))
    return routes


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )

    builder = RecordBuilder(INGRESS_SOURCE_TYPE, args.ips)
    action = Action(args.action)
    records: List[Record] = []
    for route in load_routes(args.manifests):
        records.extend(builder.build(route, action))

    for record in records:
        print(json.dumps(record.as_dict()))


if __name__ == "__main__":
    main()
