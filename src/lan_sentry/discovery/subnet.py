"""
Address space enumeration.

The scan assumes a /24: the subnet is the first three octets of the local
address, and every host .1 through .254 is a candidate, the local address
included.
"""

from __future__ import annotations

import ipaddress
from typing import Optional

from .._types import Subnet


def subnet_from_ip(local_ip: str) -> Subnet:
    """
    Derive the /24 scan target from a local IPv4 address.

    Raises:
        ValueError: if local_ip is not a dotted-quad IPv4 address
    """
    address = ipaddress.IPv4Address(local_ip.strip())
    base_address = str(address).rsplit(".", 1)[0]
    return Subnet(base_address=base_address)


def enumerate_candidates(local_ip: Optional[str]) -> list[str]:
    """
    Return the 254 candidate addresses for the subnet of local_ip.

    Returns an empty list when the local address is unknown; callers report
    that as "not connected" rather than as an empty scan.
    """
    if not local_ip:
        return []
    return subnet_from_ip(local_ip).candidates()
