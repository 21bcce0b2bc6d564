"""
Zero-configuration (mDNS / DNS-SD) name resolution.

Asks a single host's mDNS responder, by unicast to UDP 5353, for its
service enumeration record. Responders answer such "legacy unicast"
queries directly to the sender, so no multicast group membership is
needed and only the target host is consulted.
"""

from __future__ import annotations

import logging
import socket
from typing import Optional

import dns.asyncbackend
import dns.asyncquery
import dns.exception
import dns.message
import dns.name
import dns.rdatatype

from .._types import ProbeOutcome, ProbeResult
from .base import Prober

logger = logging.getLogger(__name__)

MDNS_PORT = 5353
SERVICES_ENUMERATION = "_services._dns-sd._udp.local."


def service_label(ptr_target: dns.name.Name) -> str:
    """
    Display name for a PTR target.

    Takes the first label: the instance name for a service instance
    ("Living Room._googlecast._tcp.local." -> "Living Room") or the bare
    service for a service type ("_airplay._tcp.local." -> "airplay").
    """
    if not ptr_target.labels:
        return ""
    label = ptr_target.labels[0].decode("utf-8", errors="replace")
    return label.lstrip("_")


class ZeroconfSession:
    """
    Short-lived mDNS session bound to one host.

    Use as an async context manager; the socket is released on every exit
    path, including timeouts and protocol errors.
    """

    def __init__(
        self,
        host: str,
        timeout_ms: int = 1000,
        backend: Optional[dns.asyncbackend.Backend] = None,
    ):
        self.host = host
        self.timeout_ms = timeout_ms
        self._backend = backend
        self._sock = None

    async def __aenter__(self) -> "ZeroconfSession":
        if self._backend is None:
            self._backend = dns.asyncbackend.get_default_backend()
        destination = None
        if self._backend.datagram_connection_required():
            destination = (self.host, MDNS_PORT)
        self._sock = await self._backend.make_socket(
            socket.AF_INET, socket.SOCK_DGRAM, 0, None, destination,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._sock is not None:
            sock, self._sock = self._sock, None
            await sock.close()

    async def list_services(self, service_type: str = SERVICES_ENUMERATION) -> list[str]:
        """
        Query PTR records for service_type.

        Returns display names in answer order (possibly empty).

        Raises:
            dns.exception.Timeout: no answer within the session timeout
            dns.exception.DNSException: malformed or unexpected response
        """
        if self._sock is None:
            raise RuntimeError("ZeroconfSession used outside 'async with'")

        query = dns.message.make_query(service_type, dns.rdatatype.PTR)
        response = await dns.asyncquery.udp(
            query,
            self.host,
            timeout=self.timeout_ms / 1000,
            port=MDNS_PORT,
            sock=self._sock,
            backend=self._backend,
        )

        names = []
        for rrset in response.answer:
            if rrset.rdtype != dns.rdatatype.PTR:
                continue
            for rdata in rrset:
                label = service_label(rdata.target)
                if label:
                    names.append(label)
        return names


class ZeroconfResolver(Prober):
    """Resolve a host's advertised name over mDNS."""

    def __init__(self, timeout_ms: int = 1000, service_type: str = SERVICES_ENUMERATION):
        """
        Initialize resolver.

        Args:
            timeout_ms: Time to wait for the host's responder
            service_type: DNS-SD record to query
        """
        self.timeout_ms = timeout_ms
        self.service_type = service_type

    @property
    def name(self) -> str:
        return "mdns"

    def session(self, host: str) -> ZeroconfSession:
        return ZeroconfSession(host, timeout_ms=self.timeout_ms)

    async def list_services(self, host: str) -> list[str]:
        """Open a session to host, list its services, close the session."""
        async with self.session(host) as session:
            return await session.list_services(self.service_type)

    async def resolve_name(self, host: str) -> ProbeResult:
        """
        Resolve host to the name of its first advertised service.

        Never raises: timeouts and protocol errors come back as a negative
        or errored ProbeResult with an empty value.
        """
        try:
            services = await self.list_services(host)
        except dns.exception.Timeout:
            return ProbeResult(host, ProbeOutcome.NEGATIVE, detail="mdns timeout")
        except (dns.exception.DNSException, OSError, ValueError) as e:
            return ProbeResult(host, ProbeOutcome.ERROR, detail=f"mdns: {e}")

        if not services:
            return ProbeResult(host, ProbeOutcome.NEGATIVE, detail="no services")

        logger.debug(f"mDNS name for {host}: {services[0]}")
        return ProbeResult(host, ProbeOutcome.SUCCESS, value=services[0])
