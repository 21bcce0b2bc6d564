"""
Link-layer neighbor table lookup.

Maps an IP address to its MAC address using the kernel's ARP cache.
Linux exposes it as /proc/net/arp; elsewhere the `arp -an` command is
parsed instead. The table is read fresh on every lookup.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Optional

from .base import Prober

logger = logging.getLogger(__name__)

# Linux:  ? (192.168.1.1) at aa:bb:cc:dd:ee:ff [ether] on eth0
# macOS:  gateway (192.168.88.1) at 0:50:56:c0:0:8 on en0 ifscope [ethernet]
_ARP_LINE_RE = re.compile(r"(?:(\S+)\s+)?\((\d+\.\d+\.\d+\.\d+)\)\s+at\s+([0-9a-fA-F:]+)")
_MAC_RE = re.compile(r"^[0-9A-F]{2}(:[0-9A-F]{2}){5}$")

# Entries the kernel keeps for unresolved neighbors
_INCOMPLETE_MACS = {"00:00:00:00:00:00", "FF:FF:FF:FF:FF:FF"}


def normalize_mac(mac_address: str) -> Optional[str]:
    """
    Normalize to upper-case, zero-padded, colon-separated form.

    Returns None if the value is not a complete MAC address.
    """
    octets = mac_address.strip().replace("-", ":").split(":")
    if len(octets) != 6 or not all(1 <= len(o) <= 2 for o in octets):
        return None
    mac = ":".join(o.zfill(2) for o in octets).upper()
    if not _MAC_RE.match(mac) or mac in _INCOMPLETE_MACS:
        return None
    return mac


class NeighborTable(Prober):
    """
    IP to MAC lookups against the local ARP cache.

    Passive: only hosts this machine has talked to recently are present,
    which after a ping sweep covers the live hosts on the subnet.
    """

    def __init__(self, path: Path = Path("/proc/net/arp")):
        """
        Initialize neighbor table.

        Args:
            path: Kernel ARP table file (falls back to `arp -an` if missing)
        """
        self.path = Path(path)

    @property
    def name(self) -> str:
        return "arp"

    async def lookup(self, ip_address: str) -> Optional[str]:
        """
        Find the MAC address for ip_address.

        Returns upper-case MAC, or None if there is no complete entry.
        A malformed table line is skipped and an unreadable table means no
        entry. A missing table file falls back to `arp -an`.
        """
        entries = await asyncio.to_thread(self._read_proc_table)
        if entries is None:
            entries = await self._read_arp_command()

        for entry_ip, mac in entries:
            if entry_ip == ip_address:
                return mac
        return None

    def _read_proc_table(self) -> Optional[list[tuple[str, str]]]:
        """
        Read /proc/net/arp style table.

        Returns None if the table file does not exist. Undecodable bytes are
        replaced, so a garbled line only fails its own MAC check.
        """
        entries = []
        try:
            with open(self.path, errors="replace") as f:
                lines = f.read().splitlines()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug(f"Cannot read neighbor table {self.path}: {e}")
            return entries

        # First line is the column header
        for line in lines[1:]:
            entry = self._parse_proc_line(line)
            if entry:
                entries.append(entry)
        return entries

    def _parse_proc_line(self, line: str) -> Optional[tuple[str, str]]:
        """
        Parse one /proc/net/arp line.

        Columns: IP address, HW type, Flags, HW address, Mask, Device
        """
        parts = line.split()
        if len(parts) < 4:
            return None
        mac = normalize_mac(parts[3])
        if not mac:
            return None
        return parts[0], mac

    async def _read_arp_command(self) -> list[tuple[str, str]]:
        """Read the ARP cache through `arp -an`."""
        entries = []
        try:
            result = await asyncio.create_subprocess_exec(
                "arp", "-an",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await result.communicate()
        except OSError as e:
            logger.debug(f"arp command unavailable: {e}")
            return entries

        if result.returncode != 0:
            logger.debug(f"ARP command failed: {stderr.decode(errors='replace')}")
            return entries

        for line in stdout.decode(errors="replace").splitlines():
            entry = self._parse_arp_line(line)
            if entry:
                entries.append(entry)
        return entries

    def _parse_arp_line(self, line: str) -> Optional[tuple[str, str]]:
        """Parse a single `arp -an` output line."""
        match = _ARP_LINE_RE.search(line)
        if not match:
            return None

        mac = normalize_mac(match.group(3))
        if not mac:
            return None
        return match.group(2), mac
