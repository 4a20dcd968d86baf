"""Static address provider: pools of addresses per IPAM label."""

from __future__ import annotations

import ipaddress
import json

from . import vlogger as log
from .store import DBStore, StoreError, new_store
from .utils import is_ip_addr


class ProviderError(Exception):
    """Raised when the provider cannot be set up from its configuration."""


def _parse_ip(text: str, role: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    if not is_ip_addr(text):
        raise ProviderError(f"invalid {role} IP {text}")
    address = ipaddress.ip_address(text)
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        return address.ipv4_mapped
    return address


def expand_ip_range(ip_range: str) -> list[str]:
    """Expand ``"a-b,c-d"`` into every address from a to b and from c to d."""
    ips: list[str] = []
    for item in ip_range.split(","):
        bounds = item.split("-")
        if len(bounds) != 2:
            raise ProviderError(f"invalid IP range {item!r}")
        start = _parse_ip(bounds[0], "starting")
        end = _parse_ip(bounds[1], "ending")
        if start.version != end.version or start > end:
            raise ProviderError(f"invalid IP range {item!r}")
        ips.extend(str(start + offset) for offset in range(int(end) - int(start) + 1))
    return ips


class IPAMProvider:
    """Allocates addresses from the pools kept in a store."""

    def __init__(self, store: DBStore) -> None:
        self.store = store
        self.ipam_labels: set[str] = set()

    def init(self, ip_range: str) -> None:
        """Bring the store in line with *ip_range*, a JSON map of label to range."""
        try:
            range_map = json.loads(ip_range)
        except json.JSONDecodeError as exc:
            log.error("[PROV] Invalid IP range provided")
            raise ProviderError("invalid IP range provided") from exc
        if range_map is None:
            range_map = {}
        if not isinstance(range_map, dict) or not all(
            isinstance(value, str) for value in range_map.values()
        ):
            log.error("[PROV] Invalid IP range provided")
            raise ProviderError("invalid IP range provided")

        label_map = self.store.get_label_map()
        for label in label_map:
            if label not in range_map:
                self.store.clean_up_label(label)

        for label, label_range in range_map.items():
            if label in label_map:
                if label_map[label] == label_range:
                    self.ipam_labels.add(label)
                    continue
                self.store.clean_up_label(label)
            try:
                ips = expand_ip_range(label_range)
            except ProviderError as exc:
                log.error("[PROV] Invalid IP range provided for %s label: %s", label, exc)
                raise ProviderError(f"label {label}: {exc}") from exc

            self.ipam_labels.add(label)
            log.debug("Added Label: %s", label)
            self.store.add_label(label, label_range)
            self.store.insert_ips(ips, label)

        self.store.display_ip_records()

    def create_a_record(self, hostname: str, ip_addr: str) -> bool:
        self.store.create_a_record(hostname, ip_addr)
        log.debug("[PROV] Created 'A' Record. Host:%s, IP:%s", hostname, ip_addr)
        return True

    def delete_a_record(self, hostname: str, ip_addr: str) -> None:
        self.store.delete_a_record(hostname, ip_addr)
        log.debug("[PROV] Deleted 'A' Record. Host:%s, IP:%s", hostname, ip_addr)

    def get_ip_address_from_a_record(self, ipam_label: str, hostname: str) -> str | None:
        if ipam_label not in self.ipam_labels:
            log.debug("[PROV] IPAM LABEL: %s Not Found", ipam_label)
            return None
        return self.store.get_ip_address_from_a_record(ipam_label, hostname)

    def get_ip_address_from_reference(self, ipam_label: str, reference: str) -> str | None:
        if ipam_label not in self.ipam_labels:
            log.debug("[PROV] IPAM LABEL: %s Not Found", ipam_label)
            return None
        return self.store.get_ip_address_from_reference(ipam_label, reference)

    def allocate_next_ip_address(self, ipam_label: str, reference: str) -> str | None:
        """Reserve the next free address of *ipam_label* for *reference*."""
        if ipam_label not in self.ipam_labels:
            log.debug("[PROV] Unsupported IPAM LABEL: %s", ipam_label)
            return None
        return self.store.allocate_ip(ipam_label, reference)

    def release_addr(self, ip_addr: str) -> None:
        self.store.release_ip(ip_addr)


def new_provider(ip_range: str, store: DBStore | None = None) -> IPAMProvider:
    """Create a provider over *store* (the default database if None)."""
    if store is None:
        try:
            store = new_store()
        except StoreError as exc:
            log.error("[PROV] Store not initialized")
            raise ProviderError("store not initialized") from exc
    provider = IPAMProvider(store)
    try:
        provider.init(ip_range)
    except ProviderError:
        log.error("[PROV] Failed to Initialize Provider")
        raise
    log.debug("[PROV] Provider Initialised")
    return provider