"""
Identity resolution for live hosts.

Names come from mDNS first; hosts that do not advertise anything are
labelled from their MAC vendor prefix, or "Unknown Device".
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from .._types import DiscoveredDevice, NO_MAC, UNKNOWN_DEVICE
from ..catalog import VENDOR_PREFIXES, guess_vendor
from .arp_table import NeighborTable
from .base import run_phase
from .mdns import ZeroconfResolver

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Turns live addresses into DiscoveredDevice records.

    Each host is resolved independently; resolve_all runs them
    concurrently and collects the records once every host is done.
    """

    def __init__(
        self,
        zeroconf: Optional[ZeroconfResolver] = None,
        neighbors: Optional[NeighborTable] = None,
        vendor_prefixes: Mapping[str, str] = VENDOR_PREFIXES,
    ):
        self.zeroconf = zeroconf or ZeroconfResolver()
        self.neighbors = neighbors or NeighborTable()
        self.vendor_prefixes = vendor_prefixes

    async def resolve(self, ip: str) -> DiscoveredDevice:
        """
        Resolve one live host.

        The MAC is looked up regardless so it can be shown next to an mDNS
        name; the vendor guess is only used when mDNS gave nothing. Either
        step failing degrades the identity but never loses the host.
        """
        try:
            name_result = await self.zeroconf.resolve_name(ip)
            name = name_result.value if name_result.ok else ""
        except Exception as e:
            logger.debug(f"mDNS lookup failed for {ip}: {e}")
            name = ""

        try:
            mac = await self.neighbors.lookup(ip)
        except Exception as e:
            logger.debug(f"Neighbor lookup failed for {ip}: {e}")
            mac = None

        if not name:
            name = guess_vendor(mac, self.vendor_prefixes) if mac else UNKNOWN_DEVICE

        return DiscoveredDevice(ip=ip, mac=mac or NO_MAC, name=name)

    async def resolve_all(self, hosts: Iterable[str]) -> list[DiscoveredDevice]:
        """Resolve all hosts concurrently (unordered)."""
        devices = await run_phase(self.resolve(ip) for ip in hosts)
        named = sum(1 for d in devices if d.name != UNKNOWN_DEVICE)
        logger.info(f"Identity resolution: {named}/{len(devices)} hosts named")
        return devices
