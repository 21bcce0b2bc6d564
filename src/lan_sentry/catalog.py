"""
Static lookup tables: risk ports and MAC vendor prefixes.

Both tables are read-only mappings built once at import time. Components
receive them by reference (constructor argument) so tests can substitute
their own tables without mutating these.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from ._types import Severity, UNKNOWN_DEVICE, VulnerabilityInfo


VULNERABILITY_CATALOG: Mapping[int, VulnerabilityInfo] = MappingProxyType({
    21: VulnerabilityInfo(
        "FTP",
        Severity.MEDIUM,
        "FTP is an unencrypted protocol for file transfer. An attacker could "
        "potentially intercept data or credentials.",
    ),
    22: VulnerabilityInfo(
        "SSH",
        Severity.LOW,
        "SSH provides secure remote access. Ensure it is protected with a "
        "strong password or key-based authentication.",
    ),
    23: VulnerabilityInfo(
        "Telnet",
        Severity.HIGH,
        "Telnet is an unencrypted remote access protocol. An attacker can "
        "easily intercept all communication, including passwords.",
    ),
    80: VulnerabilityInfo(
        "HTTP",
        Severity.LOW,
        "An unencrypted web server is running. While common, sensitive "
        "information should always be sent over HTTPS (port 443).",
    ),
    445: VulnerabilityInfo(
        "SMB",
        Severity.MEDIUM,
        "SMB is used for file sharing. Ensure that shares are protected with "
        "strong passwords to prevent unauthorized access.",
    ),
    3389: VulnerabilityInfo(
        "RDP",
        Severity.HIGH,
        "Remote Desktop Protocol allows full remote control of a computer. If "
        "exposed to the internet, it is a very high-risk target for attackers.",
    ),
    5900: VulnerabilityInfo(
        "VNC",
        Severity.HIGH,
        "VNC provides remote control of a computer's screen. Like RDP, it "
        "should not be exposed to the internet without a secure tunnel.",
    ),
})

# First three octets (upper-case, colon separated) -> display label
VENDOR_PREFIXES: Mapping[str, str] = MappingProxyType({
    "FC:DB:B3": "Samsung Device",
    "DC:85:DE": "Xiaomi Device",
    "F4:0F:24": "Apple Device",
    "00:1A:2B": "Cisco Router",
    "3C:5A:B4": "OnePlus Device",
    "5C:AA:FD": "Realme Device",
    "40:9C:28": "Dell Laptop",
    "AC:37:43": "HP Laptop",
})


def mac_prefix(mac_address: str) -> str:
    """Normalize a MAC address to its zero-padded OUI prefix (``AA:BB:CC``)."""
    octets = mac_address.strip().upper().replace("-", ":").split(":")
    return ":".join(octet.zfill(2) for octet in octets[:3])


def guess_vendor(
    mac_address: Optional[str],
    prefixes: Mapping[str, str] = VENDOR_PREFIXES,
) -> str:
    """
    Look up a display label from the MAC OUI.

    This is a small table of common consumer devices; anything else is
    reported as "Unknown Device".
    """
    if not mac_address:
        return UNKNOWN_DEVICE
    return prefixes.get(mac_prefix(mac_address), UNKNOWN_DEVICE)
