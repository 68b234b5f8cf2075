"""
core/os_detect.py
Coarse OS guessing for scanned hosts.

Returns one label from a fixed candidate set; there is no correctness
guarantee. Two strategies:
  • PortHintOSDetector   — well-known open ports point at an OS family
                           (RDP/SMB → Windows, AFP → macOS, SSH → Linux …)
  • SimulatedOSDetector  — random pick, paired with SimulatedProber
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from core.models import ProbeOutcome
from utils.constants import OS_CANDIDATES, UNKNOWN_OS


class OSDetector(ABC):
    """Produce one OS label for a host from its probe outcomes."""

    candidates: Sequence[str] = tuple(OS_CANDIDATES)

    @abstractmethod
    def guess(self, address: str, outcomes: Sequence[ProbeOutcome]) -> str:
        """Return a label from `candidates` or "Unknown"."""


# ─── Service-level OS hints ────────────────────────────────────────────────────

_PORT_HINTS: list[tuple[int, str, float]] = [
    # (port, os_label, confidence)
    (3389,  "Windows 10",          0.95),
    (5985,  "Windows Server 2019", 0.90),
    (445,   "Windows 10",          0.90),
    (1433,  "Windows Server 2019", 0.85),
    (135,   "Windows 10",          0.80),
    (548,   "macOS",               0.85),
    (5900,  "macOS",               0.40),
    (111,   "CentOS 8",            0.45),
    (22,    "Ubuntu 20.04",        0.40),  # SSH runs everywhere
]


class PortHintOSDetector(OSDetector):
    """
    Infer OS from the set of open ports.
    Highest-confidence hint wins; no open hinted port → "Unknown".
    """

    def guess(self, address: str, outcomes: Sequence[ProbeOutcome]) -> str:
        open_ports = {o.port for o in outcomes if o.open}
        best: Optional[tuple[str, float]] = None
        for port, label, conf in _PORT_HINTS:
            if port in open_ports and (best is None or conf > best[1]):
                best = (label, conf)
        return best[0] if best else UNKNOWN_OS


class SimulatedOSDetector(OSDetector):
    """Uniform random pick from the candidate set."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def guess(self, address: str, outcomes: Sequence[ProbeOutcome]) -> str:
        return self._rng.choice(self.candidates)
