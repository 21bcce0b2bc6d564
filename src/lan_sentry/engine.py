"""
Scan engine - the two scan flows.

Dashboard flow:  subnet -> ping sweep (500 ms) -> identity -> ordered devices
Security flow:   subnet -> ping sweep (1000 ms) -> port scan -> ordered findings

Phases run strictly one after another; inside a phase every probe runs
concurrently and only per-probe timeouts bound the wall-clock time.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ._types import DiscoveredDevice, SecurityScanResult, Subnet
from .aggregator import order_devices, order_vulnerabilities
from .config import ScannerConfig
from .discovery import (
    IdentityResolver,
    LivenessProber,
    NeighborTable,
    PortScanner,
    ZeroconfResolver,
    subnet_from_ip,
)
from .exceptions import NotConnectedError
from .network import get_local_ipv4

logger = logging.getLogger(__name__)


class ScanEngine:
    """
    Discovers devices and risk ports on the local /24.

    Per-host failures never surface; the only error a scan raises is
    NotConnectedError when there is no local IPv4 address to scan from.
    """

    def __init__(
        self,
        config: Optional[ScannerConfig] = None,
        local_ip_provider: Callable[[Optional[str]], Optional[str]] = get_local_ipv4,
    ):
        """
        Initialize scan engine.

        Args:
            config: Scanner configuration (defaults if None)
            local_ip_provider: Returns this machine's IPv4 for an interface name
        """
        self.config = config or ScannerConfig()
        self._local_ip_provider = local_ip_provider

        self.discovery_prober = LivenessProber(timeout_ms=self.config.discovery_ping_timeout_ms)
        self.security_prober = LivenessProber(timeout_ms=self.config.security_ping_timeout_ms)
        self.identity = IdentityResolver(
            zeroconf=ZeroconfResolver(timeout_ms=self.config.mdns_timeout_ms),
            neighbors=NeighborTable(self.config.neighbor_table_path),
        )
        self.port_scanner = PortScanner(timeout_ms=self.config.port_timeout_ms)

    def local_subnet(self) -> Subnet:
        """
        Derive the scan subnet from the local address.

        Raises:
            NotConnectedError: if no local IPv4 address is available
        """
        local_ip = self.config.local_ip or self._local_ip_provider(self.config.interface)
        if not local_ip:
            raise NotConnectedError()
        return subnet_from_ip(local_ip)

    @staticmethod
    def _within(subnet: Subnet, hosts: Iterable[str]) -> list[str]:
        """Unique hosts that belong to subnet."""
        return list(dict.fromkeys(ip for ip in hosts if ip in subnet))

    async def find_live_hosts(self, prober: LivenessProber) -> list[str]:
        """Ping sweep of the local subnet with the given prober."""
        subnet = self.local_subnet()
        if not await prober.is_available():
            logger.warning(f"{prober.name} is not available; every host will count as unreachable")
        logger.info(
            f"Sweeping {subnet.base_address}.0/24 "
            f"({subnet.candidate_count} candidates, {prober.timeout_ms} ms budget)"
        )
        live = await prober.sweep(subnet.candidates())
        return self._within(subnet, live)

    async def discover_devices(self) -> tuple[DiscoveredDevice, ...]:
        """
        Find live hosts and resolve a display identity for each.

        Returns devices ordered by numeric address; empty if nothing answered.

        Raises:
            NotConnectedError: if no local IPv4 address is available
        """
        live_hosts = await self.find_live_hosts(self.discovery_prober)
        if not live_hosts:
            logger.info("Device discovery complete: no live hosts")
            return ()

        devices = await self.identity.resolve_all(live_hosts)
        ordered = order_devices(devices)

        logger.info(f"Device discovery complete: {len(ordered)} devices")
        return ordered

    async def discover_vulnerabilities(
        self,
        on_hosts_found: Optional[Callable[[int], None]] = None,
    ) -> SecurityScanResult:
        """
        Find live hosts, then probe each for open risk ports.

        Args:
            on_hosts_found: Called with the live-host count between phases

        Returns:
            Findings ordered by device address and the number of hosts scanned

        Raises:
            NotConnectedError: if no local IPv4 address is available
        """
        live_hosts = await self.find_live_hosts(self.security_prober)
        if on_hosts_found:
            on_hosts_found(len(live_hosts))

        vulnerabilities = await self.port_scanner.scan(live_hosts)
        result = SecurityScanResult(
            vulnerabilities=order_vulnerabilities(vulnerabilities),
            hosts_scanned=len(live_hosts),
        )

        logger.info(
            f"Security scan complete: {len(result.vulnerabilities)} findings "
            f"on {result.hosts_scanned} hosts"
        )
        return result
