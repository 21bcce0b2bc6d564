"""
LAN Sentry - Local subnet device discovery and risk-port screening.

Sweeps the local /24 for live hosts, names them via mDNS or their MAC
vendor, and checks each for a fixed set of commonly-exploited TCP ports.

Two flows:
    discover_devices()          - live hosts with a display identity
    discover_vulnerabilities()  - open risk ports, severity ranked

Scanning is read-only: ping, an mDNS query and TCP connects that are closed
as soon as they are established. Nothing is stored between runs.
"""

__version__ = "1.0.0"

from ._types import (
    DeviceType,
    DiscoveredDevice,
    ProbeOutcome,
    ProbeResult,
    ScanStatus,
    SecurityScanResult,
    Severity,
    Subnet,
    Vulnerability,
    VulnerabilityInfo,
)
from .catalog import VENDOR_PREFIXES, VULNERABILITY_CATALOG, guess_vendor
from .engine import ScanEngine
from .exceptions import LanSentryError, NotConnectedError

__all__ = [
    "__version__",
    "DeviceType",
    "DiscoveredDevice",
    "ProbeOutcome",
    "ProbeResult",
    "ScanStatus",
    "SecurityScanResult",
    "Severity",
    "Subnet",
    "Vulnerability",
    "VulnerabilityInfo",
    "VENDOR_PREFIXES",
    "VULNERABILITY_CATALOG",
    "guess_vendor",
    "ScanEngine",
    "LanSentryError",
    "NotConnectedError",
]
