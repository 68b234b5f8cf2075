"""
utils/validators.py
Input validation helpers shared by the target expander and port parser
"""

import ipaddress
from typing import List, Optional, Tuple

from utils.constants import PORT_MAX, PORT_MIN, SPEED_MAX, SPEED_MIN


def validate_port(port: int) -> Tuple[bool, str]:
    """
    Validate that port number is in valid range [1-65535].

    Args:
        port: Port number to validate

    Returns:
        (is_valid, error_message) tuple
    """
    if not isinstance(port, int) or isinstance(port, bool):
        return (False, "Port must be an integer")

    if port < PORT_MIN or port > PORT_MAX:
        return (False, f"Port {port} out of valid range [{PORT_MIN}-{PORT_MAX}]")

    return (True, "")


def parse_octets(address: str) -> Optional[List[int]]:
    """
    Split a dotted IPv4 address into its four octets.

    Returns None for anything ipaddress.IPv4Address refuses
    (short forms, zero-padded octets, non-ASCII digits).
    """
    if not isinstance(address, str):
        return None
    try:
        addr = ipaddress.IPv4Address(address.strip())
    except ValueError:
        return None
    return list(addr.packed)


def is_decimal(token: str) -> bool:
    """True for a non-empty run of ASCII digits."""
    return token.isascii() and token.isdigit()


def clamp_speed(level) -> int:
    """Coerce a speed level into [1, 5]; unparsable input falls to the minimum."""
    try:
        value = int(level)
    except (TypeError, ValueError):
        return SPEED_MIN
    return max(SPEED_MIN, min(SPEED_MAX, value))


def parse_flag(value) -> bool:
    """
    Interpret a boolean option from JSON, YAML or form input.

    Strings are read by word ("false", "0", "no", "off" and "" are False);
    anything else falls back to truthiness.
    """
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


__all__ = ["validate_port", "parse_octets", "is_decimal", "clamp_speed", "parse_flag"]
