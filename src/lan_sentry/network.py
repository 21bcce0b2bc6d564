"""
Local network identity.

Determines this machine's IPv4 address and netmask, which the scan engine
uses to derive the /24 it sweeps.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Optional

import psutil

logger = logging.getLogger(__name__)

# Any non-local address works; connecting a UDP socket sends no packet.
_ROUTE_PROBE_TARGET = ("10.255.255.255", 1)


@dataclass(frozen=True)
class LocalInterface:
    """An up, non-loopback IPv4 interface."""
    name: str
    address: str
    netmask: Optional[str] = None

    @property
    def network(self) -> Optional[str]:
        """CIDR of the attached network, if the netmask is known."""
        if not self.netmask:
            return None
        try:
            return str(ipaddress.IPv4Network(f"{self.address}/{self.netmask}", strict=False))
        except ValueError:
            return None


def _route_probe_address() -> Optional[str]:
    """Source address the kernel would use for the default route."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(_ROUTE_PROBE_TARGET)
            return s.getsockname()[0]
    except OSError as e:
        logger.debug(f"Route probe failed: {e}")
        return None


def list_ipv4_interfaces() -> list[LocalInterface]:
    """Return all up, non-loopback IPv4 interfaces."""
    interfaces = []
    stats = psutil.net_if_stats()

    for name, addrs in psutil.net_if_addrs().items():
        if name in stats and not stats[name].isup:
            continue
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if addr.address.startswith("127."):
                continue
            interfaces.append(LocalInterface(
                name=name,
                address=addr.address,
                netmask=addr.netmask,
            ))

    return interfaces


def get_local_interface(interface: Optional[str] = None) -> Optional[LocalInterface]:
    """
    Find the interface to scan from.

    Args:
        interface: Interface name to use (None for the default-route interface)

    Returns:
        LocalInterface, or None when there is no usable IPv4 interface
    """
    interfaces = list_ipv4_interfaces()

    if interface:
        for candidate in interfaces:
            if candidate.name == interface:
                return candidate
        logger.warning(f"Interface {interface} has no IPv4 address")
        return None

    primary = _route_probe_address()
    if primary:
        for candidate in interfaces:
            if candidate.address == primary:
                return candidate

    if interfaces:
        return interfaces[0]

    logger.warning("No active IPv4 interface found")
    return None


def get_local_ipv4(interface: Optional[str] = None) -> Optional[str]:
    """This machine's IPv4 address, or None when not connected."""
    local = get_local_interface(interface)
    return local.address if local else None
