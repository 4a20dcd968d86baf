"""Requests and responses exchanged between the orchestrator and the controller."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Operation(str, Enum):
    """Kind of IPAM request."""

    CREATE = "Create"
    DELETE = "Delete"

    def __str__(self) -> str:
        return self.value


@dataclass
class IPAMRequest:
    """A request to allocate or release an address for a host or key."""

    metadata: Any = None
    operation: Operation | str = ""
    host_name: str = ""
    ip_addr: str = ""
    key: str = ""
    ipam_label: str = ""

    def __str__(self) -> str:
        operation = (
            self.operation.value
            if isinstance(self.operation, Operation)
            else self.operation
        )
        return (
            f"\nHostname: {self.host_name}\tKey: {self.key}"
            f"\tIPAMLabel: {self.ipam_label}\tIPAddr: {self.ip_addr}"
            f"\tOperation: {operation}\n"
        )


@dataclass
class IPAMResponse:
    """The controller's answer to an :class:`IPAMRequest`."""

    request: IPAMRequest
    ip_addr: str = ""
    status: bool = False