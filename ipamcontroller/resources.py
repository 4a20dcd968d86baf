"""The IPAM custom resource kept by the orchestrator, and its JSON form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

GROUP = "fic.f5.com"
VERSION = "v1"
KIND = "IPAM"
LIST_KIND = "IPAMList"
API_VERSION = f"{GROUP}/{VERSION}"


class GroupResource(NamedTuple):
    """A resource qualified by its API group."""

    group: str
    resource: str

    def __str__(self) -> str:
        return f"{self.resource}.{self.group}" if self.group else self.resource


def group_resource(resource: str) -> GroupResource:
    """Qualify *resource* with the IPAM API group."""
    return GroupResource(GROUP, resource)


def _omit_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value}


def _text(data: dict[str, Any], name: str) -> str:
    return data.get(name) or ""


@dataclass(frozen=True)
class HostSpec:
    """A host name or key that wants an address from an IPAM label."""

    host: str = ""
    key: str = ""
    ipam_label: str = ""


@dataclass(frozen=True)
class IPSpec:
    """An address handed out for a host name or key."""

    ip: str = ""
    host: str = ""
    key: str = ""
    ipam_label: str = ""


def _host_spec_to_dict(spec: HostSpec) -> dict[str, str]:
    return _omit_empty(
        {"host": spec.host, "key": spec.key, "ipamLabel": spec.ipam_label}
    )


def _host_spec_from_dict(data: dict[str, Any]) -> HostSpec:
    return HostSpec(
        host=_text(data, "host"),
        key=_text(data, "key"),
        ipam_label=_text(data, "ipamLabel"),
    )


def _ip_spec_to_dict(spec: IPSpec) -> dict[str, str]:
    return _omit_empty(
        {
            "ip": spec.ip,
            "host": spec.host,
            "key": spec.key,
            "ipamLabel": spec.ipam_label,
        }
    )


def _ip_spec_from_dict(data: dict[str, Any]) -> IPSpec:
    return IPSpec(
        ip=_text(data, "ip"),
        host=_text(data, "host"),
        key=_text(data, "key"),
        ipam_label=_text(data, "ipamLabel"),
    )


@dataclass
class IPAMSpec:
    """Desired state: the hosts that need addresses."""

    host_specs: list[HostSpec] = field(default_factory=list)


@dataclass
class IPAMStatus:
    """Observed state: the addresses handed out."""

    ip_status: list[IPSpec] = field(default_factory=list)


@dataclass
class IPAM:
    """An IPAM custom resource."""

    name: str = ""
    namespace: str = ""
    spec: IPAMSpec = field(default_factory=IPAMSpec)
    status: IPAMStatus = field(default_factory=IPAMStatus)
    labels: dict[str, str] = field(default_factory=dict)
    resource_version: str = ""
    uid: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the resource in its JSON form."""
        metadata = _omit_empty(
            {
                "name": self.name,
                "namespace": self.namespace,
                "labels": dict(self.labels),
                "resourceVersion": self.resource_version,
                "uid": self.uid,
            }
        )
        spec = _omit_empty(
            {"hostSpecs": [_host_spec_to_dict(s) for s in self.spec.host_specs]}
        )
        status = _omit_empty(
            {"IPStatus": [_ip_spec_to_dict(s) for s in self.status.ip_status]}
        )
        return {
            "apiVersion": API_VERSION,
            "kind": KIND,
            "metadata": metadata,
            "spec": spec,
            "status": status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IPAM:
        """Build a resource from its JSON form; null entries are skipped."""
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        return cls(
            name=_text(metadata, "name"),
            namespace=_text(metadata, "namespace"),
            labels=dict(metadata.get("labels") or {}),
            resource_version=_text(metadata, "resourceVersion"),
            uid=_text(metadata, "uid"),
            spec=IPAMSpec(
                host_specs=[
                    _host_spec_from_dict(item)
                    for item in spec.get("hostSpecs") or []
                    if item is not None
                ]
            ),
            status=IPAMStatus(
                ip_status=[
                    _ip_spec_from_dict(item)
                    for item in status.get("IPStatus") or []
                    if item is not None
                ]
            ),
        )


@dataclass
class IPAMList:
    """A list of IPAM resources as returned by the API server."""

    items: list[IPAM] = field(default_factory=list)
    resource_version: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IPAMList:
        """Build a list from its JSON form."""
        metadata = data.get("metadata") or {}
        return cls(
            items=[IPAM.from_dict(item) for item in data.get("items") or []],
            resource_version=_text(metadata, "resourceVersion"),
        )