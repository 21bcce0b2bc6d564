"""
Base classes for probes.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Prober(ABC):
    """Base class for a network probe (ping, mDNS, TCP connect)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this probe."""
        pass

    async def is_available(self) -> bool:
        """Check if this probe can run on this machine."""
        return True


async def run_phase(probes: Iterable[Awaitable[T]]) -> list[T]:
    """
    Run one scan phase: all probes concurrently, results collected at the end.

    Each probe returns its own result instead of appending to shared state.
    A probe that raises is dropped without affecting its siblings.
    """
    results = await asyncio.gather(*probes, return_exceptions=True)

    collected: list[T] = []
    for result in results:
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.debug(f"Probe task failed: {result!r}")
            continue
        collected.append(result)
    return collected
