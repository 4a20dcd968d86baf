"""Choice of IPAM back end and the interface every manager offers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import requests

from . import vlogger as log
from .f5ipammanager import new_ipam_manager
from .infobloxmanager import InfobloxParams, new_infoblox_manager
from .ipamspec import IPAMRequest
from .provider import ProviderError
from .store import DBStore

F5_IPAM_PROVIDER = "f5-ip-provider"
INFOBLOX_PROVIDER = "infoblox"


class ManagerError(Exception):
    """Raised when no manager can be created from the given parameters."""


@runtime_checkable
class Manager(Protocol):
    """Operations an IPAM back end provides."""

    def create_a_record(self, req: IPAMRequest) -> bool:
        """Create an 'A' record."""

    def delete_a_record(self, req: IPAMRequest) -> None:
        """Delete an 'A' record."""

    def get_ip_address(self, req: IPAMRequest) -> str | None:
        """Return the address associated with the host name or key."""

    def allocate_next_ip_address(self, req: IPAMRequest) -> str | None:
        """Reserve and return the next available address."""

    def release_ip_address(self, req: IPAMRequest) -> None:
        """Release an address."""


@dataclass
class Params:
    """Settings for every supported back end; ``provider`` picks one."""

    provider: str = ""
    ip_range: str = ""
    store: DBStore | None = None
    host: str = ""
    version: str = ""
    port: str = ""
    username: str = ""
    password: str = ""
    ib_label_map: str = ""
    net_view: str = ""
    ssl_verify: str = ""


def new_manager(params: Params) -> Manager:
    """Create the manager named by ``params.provider``; raise ManagerError on failure."""
    try:
        if params.provider == F5_IPAM_PROVIDER:
            log.debug("[MGR] Creating Manager with Provider: %s", F5_IPAM_PROVIDER)
            return new_ipam_manager(params.ip_range, params.store)
        if params.provider == INFOBLOX_PROVIDER:
            log.debug("[MGR] Creating Manager with Provider: %s", INFOBLOX_PROVIDER)
            return new_infoblox_manager(
                InfobloxParams(
                    host=params.host,
                    version=params.version,
                    port=params.port,
                    username=params.username,
                    password=params.password,
                    ib_label_map=params.ib_label_map,
                    net_view=params.net_view,
                    ssl_verify=params.ssl_verify,
                )
            )
    except (ProviderError, ValueError, LookupError, requests.RequestException) as exc:
        raise ManagerError(f"manager cannot be initialized: {exc}") from exc
    log.error("[MGR] Unknown Provider: %s", params.provider)
    raise ManagerError("manager cannot be initialized")