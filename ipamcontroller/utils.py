"""Address validation and random identifier helpers."""

from __future__ import annotations

import ipaddress
import uuid

_UUID_TEXT_LENGTH = 36


def is_ip_addr(ip_addr: str) -> bool:
    """Return True if *ip_addr* is a textual IPv4 or IPv6 address."""
    if not ip_addr or "%" in ip_addr:
        return False
    try:
        ipaddress.ip_address(ip_addr)
    except ValueError:
        return False
    return True


def is_ipv4_addr(ip_addr: str) -> bool:
    """Return True if *ip_addr* is an address written without colons."""
    return is_ip_addr(ip_addr) and ":" not in ip_addr


def is_ipv6_addr(ip_addr: str) -> bool:
    """Return True if *ip_addr* is an address written without dots."""
    return is_ip_addr(ip_addr) and "." not in ip_addr


def random_string(length: int) -> str:
    """Return the first *length* characters of a fresh random UUID.

    Non-positive lengths give an empty string; lengths beyond a UUID's
    textual form raise ValueError.
    """
    if length <= 0:
        return ""
    if length > _UUID_TEXT_LENGTH:
        raise ValueError(
            f"length {length} exceeds the {_UUID_TEXT_LENGTH} characters of a UUID"
        )
    return str(uuid.uuid4())[:length]