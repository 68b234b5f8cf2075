"""
core/targets.py
Target range expansion.

Accepts:
  "192.168.1.10-20"          → 192.168.1.10 .. 192.168.1.20
  "10.0.0.1-10.0.0.3"        → 10.0.0.1 .. 10.0.0.3   (bound given as address)

Yields an empty list (never raises) for:
  missing/extra "-", non-numeric octets, bound < base, bound > 255,
  bound address in a different /24
"""

from __future__ import annotations

import socket
from typing import List, Optional

from utils.constants import OCTET_MAX
from utils.logger import get_logger
from utils.validators import is_decimal, parse_octets

log = get_logger("netsweep.targets")


def _parse_bound(token: str, base: List[int]) -> Optional[int]:
    token = token.strip()
    if is_decimal(token):
        bound = int(token)
        if bound < 1 or bound > OCTET_MAX:
            return None
        return bound
    octets = parse_octets(token)
    if octets is None or octets[:3] != base[:3]:
        return None
    return octets[3]


def expand_range(spec: str) -> List[str]:
    """
    Expand "A.B.C.d-bound" into the ordered list of addresses A.B.C.d..bound.

    Callers must treat an empty list as "no valid targets".
    """
    if not isinstance(spec, str):
        return []
    parts = spec.strip().split("-")
    if len(parts) != 2:
        return []

    base = parse_octets(parts[0])
    if base is None:
        return []

    bound = _parse_bound(parts[1], base)
    if bound is None:
        return []

    prefix = ".".join(str(o) for o in base[:3])
    return [f"{prefix}.{i}" for i in range(base[3], bound + 1)]


def detect_local_range(probe_host: str = "10.255.255.255") -> Optional[str]:
    """
    Guess the local /24 sweep range from the primary IPv4 address.

    Connecting a UDP socket only selects a route; no packet is sent.
    Returns None when no IPv4 route is available.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect((probe_host, 1))
        local_ip = sock.getsockname()[0]
    except OSError as exc:
        log.debug(f"Local range detection failed: {exc}")
        return None
    finally:
        sock.close()

    octets = parse_octets(local_ip)
    if octets is None or local_ip.startswith("0."):
        return None
    return f"{octets[0]}.{octets[1]}.{octets[2]}.1-254"
