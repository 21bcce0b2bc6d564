"""
Exceptions raised by the scan engine.

Only environment-level failures are exceptions. Per-host and per-port
failures never propagate; they are recorded as ProbeResult outcomes.
"""


class LanSentryError(Exception):
    """Base class for scanner errors."""


class NotConnectedError(LanSentryError):
    """The local IPv4 address could not be determined (no active interface)."""

    def __init__(self, message: str = "Not connected to a network"):
        super().__init__(message)
