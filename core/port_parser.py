"""
core/port_parser.py
Lenient port list parser.

Accepts:
  "80"                 → [80]
  "80,443"             → [80, 443]
  "443, 22 ,80"        → [443, 22, 80]      input order kept
  "80,80,443"          → [80, 443]          duplicates collapse
  "web"                → named preset (common, web, mail, database)

Silently drops:
  "abc", "80000", "-1", "0", "", "80.5", "1-100"
"""

from __future__ import annotations

from typing import List, Tuple

from utils.constants import PORT_PRESETS, PORT_MIN, PORT_MAX
from utils.validators import is_decimal, validate_port


# ─── Parser ───────────────────────────────────────────────────────────────────

class PortParser:
    """
    Parse a comma-separated port list into an ordered, de-duplicated list.

    Never raises on bad tokens: invalid entries are dropped and an empty
    result means "no valid ports".
    """

    def __init__(self, presets: dict[str, str] | None = None):
        self._presets = {k.lower(): v for k, v in (presets or PORT_PRESETS).items()}

    # ── Public API ────────────────────────────────────────────────────────────

    def parse(self, spec: str) -> List[int]:
        """Parse port spec → list in first-occurrence order."""
        if not isinstance(spec, str):
            return []

        spec = spec.strip()
        preset = self._presets.get(spec.lower())
        if preset is not None:
            spec = preset

        ports: List[int] = []
        seen: set[int] = set()
        for part in spec.split(","):
            port = self._parse_token(part.strip())
            if port is None or port in seen:
                continue
            seen.add(port)
            ports.append(port)
        return ports

    def validate(self, spec: str) -> Tuple[bool, str]:
        """Return (ok, error_message). Never raises."""
        if not isinstance(spec, str) or not spec.strip():
            return False, "Port specification is empty"
        if not self.parse(spec):
            return False, f"No valid ports in {spec!r} (expected {PORT_MIN}-{PORT_MAX})"
        return True, ""

    @property
    def presets(self) -> dict[str, str]:
        return dict(self._presets)

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _parse_token(token: str) -> int | None:
        if not is_decimal(token):
            return None
        port = int(token)
        ok, _ = validate_port(port)
        return port if ok else None


# ── Module-level convenience ──────────────────────────────────────────────────

_default_parser = PortParser()


def parse_ports(spec: str) -> List[int]:
    return _default_parser.parse(spec)
