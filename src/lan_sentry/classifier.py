"""
Device type hinting for display.

Classification is purely cosmetic: it picks an icon category and label
from the address and resolved name, and never affects what is scanned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ._types import DeviceType, DiscoveredDevice

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    """Result of device classification."""
    device_type: DeviceType
    label: str
    reason: str


def classify_device(
    device: DiscoveredDevice,
    local_hostname: Optional[str] = None,
) -> ClassificationResult:
    """
    Classify a device from its address and name.

    Args:
        device: Discovered device
        local_hostname: This machine's hostname, to flag the scanning host

    Returns:
        ClassificationResult with device type and display label
    """
    # The .1 address is conventionally the gateway
    if device.ip.endswith(".1"):
        return ClassificationResult(
            device_type=DeviceType.ROUTER,
            label="Gateway Router",
            reason="Gateway address (.1)",
        )

    name = device.name or ""
    name_lower = name.lower()

    if name and local_hostname and name_lower == local_hostname.lower():
        return ClassificationResult(
            device_type=DeviceType.DESKTOP,
            label=f"This Device ({name})",
            reason="Name matches local hostname",
        )

    for detect in (_detect_phone, _detect_tv, _detect_desktop):
        result = detect(name, name_lower)
        if result:
            return result

    if name:
        return ClassificationResult(
            device_type=DeviceType.UNKNOWN,
            label=name,
            reason="No type hint in name",
        )

    return ClassificationResult(
        device_type=DeviceType.UNKNOWN,
        label="Network Device",
        reason="No name",
    )


def _detect_phone(name: str, name_lower: str) -> Optional[ClassificationResult]:
    if "android" in name_lower or "phone" in name_lower:
        return ClassificationResult(
            device_type=DeviceType.PHONE,
            label=name,
            reason="Phone name pattern",
        )
    return None


def _detect_tv(name: str, name_lower: str) -> Optional[ClassificationResult]:
    if "tv" in name_lower or "chromecast" in name_lower:
        return ClassificationResult(
            device_type=DeviceType.TV,
            label=name,
            reason="TV name pattern",
        )
    return None


def _detect_desktop(name: str, name_lower: str) -> Optional[ClassificationResult]:
    hints = ["pc", "desktop", "laptop"]
    if any(hint in name_lower for hint in hints):
        return ClassificationResult(
            device_type=DeviceType.DESKTOP,
            label=name,
            reason="Computer name pattern",
        )
    return None
