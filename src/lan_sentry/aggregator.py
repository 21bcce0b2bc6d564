"""
Result aggregation and ordering.

Devices are ordered by a composite numeric key of their address;
vulnerabilities by the plain string form of the device address, which is
enough to keep each device's findings together.
"""

from __future__ import annotations

from typing import Iterable

from ._types import DiscoveredDevice, NO_MAC, Vulnerability


def numeric_ip_key(ip: str) -> int:
    """
    Composite sort key for a dotted quad: a*10^6 + b*10^4 + c*100 + d.

    Raises:
        ValueError: if ip is not four integer segments
    """
    octets = [int(part) for part in ip.split(".")]
    if len(octets) != 4:
        raise ValueError(f"Not a dotted-quad address: {ip}")
    a, b, c, d = octets
    return a * 1000000 + b * 10000 + c * 100 + d


def dedupe_by_ip(devices: Iterable[DiscoveredDevice]) -> list[DiscoveredDevice]:
    """Keep the first record per IP, preferring one that carries a MAC."""
    by_ip: dict[str, DiscoveredDevice] = {}

    for device in devices:
        existing = by_ip.get(device.ip)
        if existing is None:
            by_ip[device.ip] = device
        elif existing.mac == NO_MAC and device.mac != NO_MAC:
            by_ip[device.ip] = device

    return list(by_ip.values())


def order_devices(devices: Iterable[DiscoveredDevice]) -> tuple[DiscoveredDevice, ...]:
    """One record per host, ascending by numeric address."""
    return tuple(sorted(dedupe_by_ip(devices), key=lambda d: numeric_ip_key(d.ip)))


def order_vulnerabilities(vulnerabilities: Iterable[Vulnerability]) -> tuple[Vulnerability, ...]:
    """Findings grouped by device, devices in string order."""
    return tuple(sorted(vulnerabilities, key=lambda v: v.device_ip))
