"""Allocate IP addresses to hosts and keys from static ranges or an Infoblox server."""

__version__ = "0.1.0"