"""
Type definitions for the LAN scanner.

These dataclasses define the core domain model for subnet discovery,
identity resolution, and risk-port findings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def now_utc() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


NO_MAC = "N/A"
UNKNOWN_DEVICE = "Unknown Device"


class Severity(str, Enum):
    """
    Qualitative risk ranking of a catalog port.

    Ordered Low < Medium < High. The str comparison operators are
    overridden so ordering follows rank, not the label text.
    """
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


class ScanStatus(str, Enum):
    """Lifecycle of a scan as seen by its state holder."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
    NOT_CONNECTED = "not_connected"  # No local IPv4 address


class ProbeOutcome(str, Enum):
    """Outcome of a single liveness probe, resolver query or port connect."""
    SUCCESS = "success"    # Host answered / port open / name found
    NEGATIVE = "negative"  # Determined negative: timeout, refused, no record
    ERROR = "error"        # Probe itself failed (permission, missing tool, ...)


class DeviceType(str, Enum):
    """Display classification of a discovered device."""
    ROUTER = "router"
    DESKTOP = "desktop"
    PHONE = "phone"
    TV = "tv"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Subnet:
    """A /24 scan target derived from the local address."""
    base_address: str  # First three octets, e.g. "192.168.1"
    candidate_count: int = 254

    def candidates(self) -> list[str]:
        """All host addresses base.1 .. base.254."""
        return [f"{self.base_address}.{i}" for i in range(1, self.candidate_count + 1)]

    def __contains__(self, ip: object) -> bool:
        if not isinstance(ip, str):
            return False
        prefix, _, last = ip.rpartition(".")
        return (
            prefix == self.base_address
            and last.isdigit()
            and 1 <= int(last) <= self.candidate_count
        )


@dataclass(frozen=True)
class ProbeResult:
    """
    Per-item result of a probe.

    Unreachable hosts and probes that errored both count as negative for
    the scan, but stay distinguishable here for diagnostics.
    """
    target: str
    outcome: ProbeOutcome
    port: Optional[int] = None
    value: str = ""   # Payload of a successful probe, e.g. a resolved name
    detail: str = ""  # Why a probe was negative or errored

    @property
    def ok(self) -> bool:
        return self.outcome == ProbeOutcome.SUCCESS


@dataclass(frozen=True)
class DiscoveredDevice:
    """A live host with its resolved identity."""
    ip: str
    mac: str = NO_MAC
    name: str = UNKNOWN_DEVICE
    open_ports: tuple[int, ...] = ()

    def to_dict(self) -> dict:
        return {
            "ip": self.ip,
            "mac": self.mac,
            "name": self.name,
            "open_ports": list(self.open_ports),
        }


@dataclass(frozen=True)
class VulnerabilityInfo:
    """Catalog entry describing why an open port is risky."""
    description: str
    severity: Severity
    risk_info: str


@dataclass(frozen=True)
class Vulnerability:
    """An open catalog port found on a live host."""
    device_ip: str
    port: int
    description: str
    severity: Severity
    risk_info: str

    @classmethod
    def from_catalog(cls, device_ip: str, port: int, info: VulnerabilityInfo) -> "Vulnerability":
        return cls(
            device_ip=device_ip,
            port=port,
            description=info.description,
            severity=info.severity,
            risk_info=info.risk_info,
        )

    def to_dict(self) -> dict:
        return {
            "device_ip": self.device_ip,
            "port": self.port,
            "description": self.description,
            "severity": self.severity.value,
            "risk_info": self.risk_info,
        }


@dataclass(frozen=True)
class SecurityScanResult:
    """Ordered findings of a security scan plus the number of hosts probed."""
    vulnerabilities: tuple[Vulnerability, ...] = ()
    hosts_scanned: int = 0
    completed_at: datetime = field(default_factory=now_utc)
