"""
Liveness probing.

Sends one ICMP echo per candidate through the system ping command and
waits at most the configured budget. Anything short of a reply inside
the budget counts as "not live"; there is no retry.
"""

from __future__ import annotations

import asyncio
import logging
import math
import shutil
import sys
from typing import Iterable

from .._types import ProbeOutcome, ProbeResult
from .base import Prober, run_phase

logger = logging.getLogger(__name__)


class LivenessProber(Prober):
    """
    Concurrent ping sweep with a fixed per-host timeout.

    One unreachable or misbehaving host never delays or aborts the probes
    of the others: every probe runs as its own task under its own deadline.
    """

    def __init__(self, timeout_ms: int = 500, ping_command: str = "ping"):
        """
        Initialize the prober.

        Args:
            timeout_ms: Per-host reply budget in milliseconds
            ping_command: ping binary to execute
        """
        self.timeout_ms = timeout_ms
        self.ping_command = ping_command

    @property
    def name(self) -> str:
        return "ping"

    async def is_available(self) -> bool:
        """Check if the ping binary is on PATH."""
        return shutil.which(self.ping_command) is not None

    def _build_command(self, address: str) -> list[str]:
        """Build a single-echo ping command line."""
        if sys.platform == "darwin":
            # BSD ping takes -W in milliseconds
            wait = str(self.timeout_ms)
        else:
            # iputils ping takes -W in whole seconds
            wait = str(max(1, math.ceil(self.timeout_ms / 1000)))
        return [self.ping_command, "-n", "-c", "1", "-W", wait, address]

    async def probe(self, address: str) -> ProbeResult:
        """Ping one address; never raises."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._build_command(address),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            return ProbeResult(address, ProbeOutcome.ERROR, detail=str(e))

        try:
            returncode = await asyncio.wait_for(proc.wait(), timeout=self.timeout_ms / 1000)
        except asyncio.TimeoutError:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
            return ProbeResult(address, ProbeOutcome.NEGATIVE, detail="timeout")

        if returncode == 0:
            return ProbeResult(address, ProbeOutcome.SUCCESS)
        if returncode == self._no_reply_exit_code():
            return ProbeResult(address, ProbeOutcome.NEGATIVE, detail=f"ping exit {returncode}")
        return ProbeResult(address, ProbeOutcome.ERROR, detail=f"ping exit {returncode}")

    @staticmethod
    def _no_reply_exit_code() -> int:
        """Exit status ping uses for "sent, but no reply"."""
        # BSD ping: 2 = no reply; iputils: 1 = no reply, 2 = other error
        return 2 if sys.platform == "darwin" else 1

    async def sweep(self, candidates: Iterable[str]) -> list[str]:
        """
        Probe all candidates concurrently.

        Returns the addresses that replied within budget, in no particular order.
        """
        targets = list(candidates)
        if not targets:
            return []

        results = await run_phase(self.probe(address) for address in targets)

        live = [r.target for r in results if r.ok]
        errored = [r for r in results if r.outcome == ProbeOutcome.ERROR]
        if errored:
            logger.debug(
                f"{len(errored)} ping probes errored (first: {errored[0].target}: "
                f"{errored[0].detail})"
            )

        logger.info(f"Liveness sweep: {len(live)}/{len(targets)} hosts responded")
        return live
