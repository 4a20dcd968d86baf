"""Manager that allocates addresses through an Infoblox WAPI server."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from . import vlogger as log
from .ipamspec import IPAMRequest
from .utils import is_ip_addr

EA_KEY = "F5IPAM"
EA_VAL = "managed"

_HTTP_TIMEOUT = 20
_POOL_CONNECTIONS = 10
_ZERO_MAC = "00:00:00:00:00:00"
_FIXED_ADDRESS_FIELDS = "ipv4addr,name,network,network_view"
_CLIENT_ERRORS = (requests.RequestException, LookupError, ValueError)


@dataclass(frozen=True)
class IBConfig:
    """Where an IPAM label's addresses live on the Infoblox server."""

    cidr: str = ""
    dns_view: str = ""


@dataclass
class InfobloxParams:
    """Connection settings and label map for the Infoblox manager."""

    host: str = ""
    version: str = ""
    port: str = ""
    username: str = ""
    password: str = ""
    ib_label_map: str = ""
    net_view: str = ""
    ssl_verify: str = ""


def _ssl_verify(value: str) -> bool | str:
    lowered = value.strip().lower()
    if lowered in ("", "true"):
        return True
    if lowered == "false":
        return False
    return value


def _extattrs(ea: dict[str, str]) -> dict[str, dict[str, str]]:
    return {key: {"value": value} for key, value in ea.items()}


def _ea_search(ea: dict[str, str]) -> dict[str, str]:
    return {f"*{key}": value for key, value in ea.items()}


class WapiClient:
    """Minimal client for the Infoblox WAPI REST interface."""

    def __init__(
        self,
        host: str,
        version: str,
        port: str,
        username: str,
        password: str,
        ssl_verify: bool | str = True,
        timeout: float = _HTTP_TIMEOUT,
        session: Any = None,
    ) -> None:
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=_POOL_CONNECTIONS, pool_maxsize=_POOL_CONNECTIONS
            )
            session.mount("https://", adapter)
        session.auth = (username, password)
        session.verify = ssl_verify
        self._session = session
        self._timeout = timeout
        self._base = f"https://{host}:{port}/wapi/v{version}/"

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        payload: Any = None,
    ) -> Any:
        response = self._session.request(
            method,
            self._base + path,
            params=params,
            json=payload,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()

    def get_ea_definition(self, name: str) -> dict | None:
        """Return the extensible attribute definition called *name*, if any."""
        found = self._request("GET", "extensibleattributedef", params={"name": name})
        return found[0] if found else None

    def create_ea_definition(self, name: str, ea_type: str, comment: str) -> str:
        """Create an extensible attribute definition and return its reference."""
        return self._request(
            "POST",
            "extensibleattributedef",
            payload={"name": name, "type": ea_type, "comment": comment},
        )

    def get_network_view(self, name: str) -> dict:
        """Return the network view *name*; raise LookupError if absent."""
        found = self._request("GET", "networkview", params={"name": name})
        if not found:
            raise LookupError(f"network view {name!r} not found")
        return found[0]

    def get_network(self, net_view: str, cidr: str, ea: dict[str, str]) -> dict:
        """Return the network *cidr* in *net_view* carrying *ea*; raise LookupError if absent."""
        params = {"network_view": net_view, "network": cidr, **_ea_search(ea)}
        found = self._request("GET", "network", params=params)
        if not found:
            raise LookupError(f"network {cidr!r} not found in view {net_view!r}")
        return found[0]

    def allocate_ip(
        self, net_view: str, cidr: str, name: str, ea: dict[str, str]
    ) -> dict:
        """Reserve the next free address of *cidr* as a fixed address named *name*."""
        payload = {
            "network_view": net_view,
            "ipv4addr": f"func:nextavailableip:{cidr},{net_view}",
            "mac": _ZERO_MAC,
            "name": name,
            "extattrs": _extattrs(ea),
        }
        return self._request(
            "POST",
            "fixedaddress",
            params={"_return_fields": _FIXED_ADDRESS_FIELDS},
            payload=payload,
        )

    def release_ip(self, net_view: str, cidr: str, ip_addr: str) -> str:
        """Delete the fixed address holding *ip_addr* and return its reference."""
        found = self._request(
            "GET",
            "fixedaddress",
            params={"network_view": net_view, "ipv4addr": ip_addr},
        )
        if not found:
            raise LookupError(f"fixed address {ip_addr!r} not found in {cidr!r}")
        return self._request("DELETE", found[0]["_ref"])

    def create_a_record(
        self,
        net_view: str,
        dns_view: str,
        name: str,
        cidr: str,
        ip_addr: str,
        ea: dict[str, str],
    ) -> dict:
        """Create an 'A' record; without *ip_addr* the next free address of *cidr* is used."""
        payload: dict[str, Any] = {
            "name": name,
            "ipv4addr": ip_addr or f"func:nextavailableip:{cidr},{net_view}",
            "extattrs": _extattrs(ea),
        }
        if dns_view:
            payload["view"] = dns_view
        return self._request(
            "POST",
            "record:a",
            params={"_return_fields": "name,ipv4addr,view"},
            payload=payload,
        )

    def delete_a_record(self, ref: str) -> str:
        """Delete the 'A' record *ref* and return its reference."""
        return self._request("DELETE", ref)

    def get_a_records(self, name: str, dns_view: str) -> list[dict]:
        """Return the 'A' records called *name*, within *dns_view* if given."""
        params = {"name": name}
        if dns_view:
            params["view"] = dns_view
        return self._request("GET", "record:a", params=params) or []

    def get_fixed_addresses(self, net_view: str, cidr: str) -> list[dict]:
        """Return every fixed address of network *cidr* in *net_view*."""
        params = {
            "network_view": net_view,
            "network": cidr,
            "_return_fields": _FIXED_ADDRESS_FIELDS,
        }
        return self._request("GET", "fixedaddress", params=params) or []


def parse_labels(params: str) -> dict[str, IBConfig]:
    """Parse a JSON map of label to ``{"cidr": ...}``; raise ValueError if malformed."""
    raw = json.loads(params)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("IPAM label map must be a JSON object")
    labels: dict[str, IBConfig] = {}
    for label, config in raw.items():
        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ValueError(f"configuration of label {label!r} must be a JSON object")
        cidr = config.get("cidr") or ""
        if not isinstance(cidr, str):
            raise ValueError(f"cidr of label {label!r} must be a string")
        # DNS views are not supported yet, so any given view is dropped.
        labels[label] = IBConfig(cidr=cidr, dns_view="")
    return labels


class InfobloxManager:
    """IPAM manager that keeps its addresses on an Infoblox server."""

    def __init__(
        self,
        client: WapiClient,
        net_view: str,
        ib_labels: dict[str, IBConfig] | None = None,
        ea: dict[str, str] | None = None,
    ) -> None:
        self.client = client
        self.net_view = net_view
        self.ib_labels = dict(ib_labels or {})
        self.ea = {EA_KEY: EA_VAL} if ea is None else dict(ea)

    def _name(self, req: IPAMRequest) -> str:
        return req.key or req.host_name

    def create_a_record(self, req: IPAMRequest) -> bool:
        """Create an 'A' record for the request's host name and address."""
        if not req.ip_addr or not req.host_name:
            log.error("[IPMG] Invalid Request to Create A Record: %s", req)
            return False
        if not is_ip_addr(req.ip_addr):
            log.error("[IPMG] Unable to Create 'A' Record, as Invalid IP Address Provided")
            return False
        label = self.ib_labels.get(req.ipam_label)
        if label is None:
            return False
        try:
            self.client.create_a_record(
                self.net_view, label.dns_view, req.host_name, label.cidr, req.ip_addr,
                self.ea,
            )
        except _CLIENT_ERRORS as exc:
            log.error("[IPMG] Unable to Create 'A' Record. Error: %s", exc)
            return False
        return True

    def delete_a_record(self, req: IPAMRequest) -> None:
        """Delete the first 'A' record found for the request's host name."""
        records = self.get_a_records(req)
        if not records:
            return
        try:
            self.client.delete_a_record(records[0]["_ref"])
        except _CLIENT_ERRORS:
            log.error("[IPMG] 'A' Record not available, %s", req)

    def get_ip_address(self, req: IPAMRequest) -> str | None:
        """Return the fixed address named after the request's key or host name."""
        if not req.host_name and not req.key:
            log.error("[IPMG] Invalid Request to get IPAddress: %s", req)
            return None
        label = self.ib_labels.get(req.ipam_label)
        if label is None:
            return None
        try:
            fixed_addresses = self.client.get_fixed_addresses(self.net_view, label.cidr)
        except _CLIENT_ERRORS:
            fixed_addresses = []
        if not fixed_addresses:
            log.error("[Infoblox] IP not available, %s", req)
            return None
        name = self._name(req)
        return next(
            (entry.get("ipv4addr") for entry in fixed_addresses if entry.get("name") == name),
            None,
        )

    def allocate_next_ip_address(self, req: IPAMRequest) -> str | None:
        """Reserve the next free address of the request's label."""
        label = self.ib_labels.get(req.ipam_label)
        if label is None:
            return None
        try:
            fixed = self.client.allocate_ip(
                self.net_view, label.cidr, self._name(req), self.ea
            )
        except _CLIENT_ERRORS:
            log.error("[IPMG] Unable to Get a New IP Address: %s", req)
            return None
        return fixed.get("ipv4addr")

    def release_ip_address(self, req: IPAMRequest) -> None:
        """Release the request's address within its label's network."""
        label = self.ib_labels.get(req.ipam_label)
        if label is None:
            return
        try:
            self.client.release_ip(self.net_view, label.cidr, req.ip_addr)
        except _CLIENT_ERRORS:
            log.error("[IPMG] Unable to Release IP Address: %s", req)

    def get_a_records(self, req: IPAMRequest) -> list[dict]:
        """Return the 'A' records of the request's host name, or an empty list."""
        label = self.ib_labels.get(req.ipam_label)
        if label is None:
            return []
        try:
            records = self.client.get_a_records(req.host_name, label.dns_view)
        except _CLIENT_ERRORS:
            records = []
        if not records:
            log.error("[IPMG] 'A' Record not available, %s", req)
            return []
        return records

    def validate_ipam_label(self, dns_view: str, cidr: str) -> dict:
        """Return the server's network for *cidr*; the client's error if it has none."""
        return self.client.get_network(self.net_view, cidr, self.ea)


def new_infoblox_manager(params: InfobloxParams) -> InfobloxManager:
    """Connect to the Infoblox server and check that every label's network exists.

    Raises ValueError for a malformed label map, LookupError when a network
    view or network is missing and requests errors when the server fails.
    """
    labels = parse_labels(params.ib_label_map)
    client = WapiClient(
        params.host,
        params.version,
        params.port,
        params.username,
        params.password,
        ssl_verify=_ssl_verify(params.ssl_verify),
    )
    try:
        definition = client.get_ea_definition(EA_KEY)
    except _CLIENT_ERRORS:
        definition = None
    if definition is None:
        client.create_ea_definition(EA_KEY, "STRING", "Managed by the F5 IPAM Controller")

    manager = InfobloxManager(client, params.net_view, labels)
    client.get_network_view(manager.net_view)
    for config in labels.values():
        manager.validate_ipam_label(config.dns_view, config.cidr)
    return manager