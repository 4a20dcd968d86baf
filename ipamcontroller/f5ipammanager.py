"""Manager that hands out addresses from the static address provider."""

from __future__ import annotations

from . import vlogger as log
from .ipamspec import IPAMRequest
from .provider import IPAMProvider, new_provider
from .store import DBStore
from .utils import is_ipv4_addr


class IPAMManager:
    """IPAM manager backed by an :class:`IPAMProvider`."""

    def __init__(self, provider: IPAMProvider) -> None:
        self.provider = provider

    def create_a_record(self, req: IPAMRequest) -> bool:
        """Create an 'A' record for the request's key, or its host name."""
        if not req.ip_addr or (not req.host_name and not req.key):
            log.error("[IPMG] Invalid Request to Create A Record: %s", req)
            return False
        if not is_ipv4_addr(req.ip_addr):
            log.error("[IPMG] Unable to Create 'A' Record, as Invalid IP Address Provided")
            return False
        self.provider.create_a_record(req.key or req.host_name, req.ip_addr)
        return True

    def delete_a_record(self, req: IPAMRequest) -> None:
        """Delete the 'A' record of the request's key, or its host name."""
        if not req.ip_addr or (not req.host_name and not req.key):
            log.error("[IPMG] Invalid Request to Delete A Record: %s", req)
        if not is_ipv4_addr(req.ip_addr):
            log.error("[IPMG] Unable to Delete 'A' Record, as Invalid IP Address Provided")
            return
        self.provider.delete_a_record(req.key or req.host_name, req.ip_addr)

    def get_ip_address(self, req: IPAMRequest) -> str | None:
        """Return the address already allocated to the request's host name or key."""
        if not req.ipam_label or (not req.host_name and not req.key):
            log.error("[IPMG] Invalid request to get IPAddress: %s", req)
            return None
        reference = req.host_name or req.key
        return self.provider.get_ip_address_from_reference(req.ipam_label, reference)

    def allocate_next_ip_address(self, req: IPAMRequest) -> str | None:
        """Reserve the next available address for the request's host name or key."""
        reference = req.host_name or req.key
        return self.provider.allocate_next_ip_address(req.ipam_label, reference)

    def release_ip_address(self, req: IPAMRequest) -> None:
        """Return the request's address to its pool."""
        if not is_ipv4_addr(req.ip_addr):
            log.error("[IPMG] Unable to Release IP Address, as Invalid IP Address Provided")
            return
        self.provider.release_addr(req.ip_addr)


def new_ipam_manager(ip_range: str, store: DBStore | None = None) -> IPAMManager:
    """Create a manager over a provider set up from *ip_range*.

    Raises ProviderError when the provider cannot be created.
    """
    return IPAMManager(new_provider(ip_range, store))