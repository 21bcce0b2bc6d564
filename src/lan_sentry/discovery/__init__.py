"""
Probes used by the scan engine.

Each scan phase fans out one probe per host (or per host and port) and
collects the results once all of them have finished:
- Subnet: enumerate the /24 candidates around the local address
- Liveness: ping sweep with a fixed per-host timeout
- Identity: mDNS name, else ARP table MAC + vendor prefix
- Port scan: TCP connect against the risk-port catalog
"""

from .base import Prober, run_phase
from .subnet import subnet_from_ip, enumerate_candidates
from .liveness import LivenessProber
from .arp_table import NeighborTable, normalize_mac
from .mdns import ZeroconfResolver, ZeroconfSession
from .identity import IdentityResolver
from .port_scanner import PortScanner

__all__ = [
    "Prober",
    "run_phase",
    "subnet_from_ip",
    "enumerate_candidates",
    "LivenessProber",
    "NeighborTable",
    "normalize_mac",
    "ZeroconfResolver",
    "ZeroconfSession",
    "IdentityResolver",
    "PortScanner",
]
