"""
Risk-port scanning.

One TCP connect attempt per (host, catalog port). An established
connection is closed immediately without reading or writing; nothing
else is inferred about the service.

Known limitation: with a short timeout and no retry, a port that is open
but slow to answer under congestion is reported as closed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping

from .._types import ProbeOutcome, ProbeResult, Vulnerability, VulnerabilityInfo
from ..catalog import VULNERABILITY_CATALOG
from .base import Prober, run_phase

logger = logging.getLogger(__name__)


class PortScanner(Prober):
    """Concurrent TCP connect scan of the catalog ports."""

    def __init__(
        self,
        timeout_ms: int = 200,
        catalog: Mapping[int, VulnerabilityInfo] = VULNERABILITY_CATALOG,
    ):
        """
        Initialize port scanner.

        Args:
            timeout_ms: Per-connect budget in milliseconds
            catalog: Ports to probe and the finding each one produces
        """
        self.timeout_ms = timeout_ms
        self.catalog = catalog

    @property
    def name(self) -> str:
        return "tcp-connect"

    async def check_port(self, host: str, port: int) -> ProbeResult:
        """Attempt one connect; never raises."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            return ProbeResult(host, ProbeOutcome.NEGATIVE, port=port, detail="timeout")
        except ConnectionRefusedError:
            return ProbeResult(host, ProbeOutcome.NEGATIVE, port=port, detail="refused")
        except OSError as e:
            return ProbeResult(host, ProbeOutcome.ERROR, port=port, detail=str(e))

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            # Peer reset on close; the port was still open
            pass
        return ProbeResult(host, ProbeOutcome.SUCCESS, port=port)

    async def scan(self, hosts: Iterable[str]) -> list[Vulnerability]:
        """
        Probe every catalog port on every host concurrently.

        Returns one Vulnerability per open (host, port) pair, unordered
        across hosts.
        """
        pairs = [(host, port) for host in hosts for port in self.catalog]
        if not pairs:
            return []

        results = await run_phase(self.check_port(host, port) for host, port in pairs)

        vulnerabilities = [
            Vulnerability.from_catalog(r.target, r.port, self.catalog[r.port])
            for r in results
            if r.ok and r.port in self.catalog
        ]

        logger.info(
            f"Port scan: {len(vulnerabilities)} open risk ports "
            f"across {len(pairs)} connect attempts"
        )
        return vulnerabilities
