"""Typed views of the custom resources watched by the agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Tuple


@dataclass(frozen=True)
class Route:
    """One entry of ``spec.routes``."""

    match: str


@dataclass(frozen=True)
class IngressRoute:
    """Traefik ``IngressRoute`` reduced to the fields records are built from.

    ``resource_version`` is carried for watch bookkeeping only and does not
    take part in equality, so two versions with identical routes compare
    equal.
    """

    kind: ClassVar[str] = "IngressRoute"
    group: ClassVar[str] = "traefik.io"
    version: ClassVar[str] = "v1alpha1"
    plural: ClassVar[str] = "ingressroutes"

    name: str
    namespace: str
    routes: Tuple[Route, ...] = ()
    resource_version: str = field(default="", compare=False)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    @classmethod
    def from_object(cls, obj: Mapping[str, Any]) -> "IngressRoute":
        """Build an instance from the raw API dictionary.

        Raises :class:`ValueError` when the object has no name or its routes
        are malformed.
        """

        metadata = obj.get("metadata") or {}
        name = metadata.get("name")
        if not name:
            raise ValueError(f"{cls.kind} object missing metadata.name")

        spec = obj.get("spec") or {}
        routes_data = spec.get("routes") or []
        if not isinstance(routes_data, list):
            raise ValueError(f"{cls.kind} {name}: spec.routes must be a list")

        if not all(isinstance(entry, Mapping) for entry in routes_data):
            raise ValueError(f"{cls.kind} {name}: spec.routes entries must be mappings")

        routes = tuple(Route(match=str(entry.get("match") or "")) for entry in routes_data)
        return cls(
            name=str(name),
            namespace=str(metadata.get("namespace") or ""),
            routes=routes,
            resource_version=str(metadata.get("resourceVersion") or ""),
        )
