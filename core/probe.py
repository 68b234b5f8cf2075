"""
core/probe.py
Single (address, port) classification.

Two implementations of the same contract:
  • TcpConnectProber — asyncio.open_connection within a bounded timeout
  • SimulatedProber  — randomized stand-in with calibrated open/filtered rates

Contract for any Prober:
  - returns within timeout_s(aggressive)
  - never raises for network conditions; uncertainty is a ProbeOutcome value
  - holds no mutable state shared between calls (safe to run concurrently)
"""

from __future__ import annotations

import asyncio
import random
from abc import ABC, abstractmethod
from typing import Optional

from core.models import ProbeOutcome
from utils.constants import (
    AGGRESSIVE_PROBE_TIMEOUT_S, PROBE_TIMEOUT_S,
    SIM_AGGRESSIVE_OPEN_RATE, SIM_FILTERED_RATE, SIM_OPEN_RATE,
)
from utils.logger import get_logger

log = get_logger("netsweep.probe")


class Prober(ABC):
    """Abstract probe capability driven by the scan engine."""

    def timeout_s(self, aggressive: bool) -> float:
        return AGGRESSIVE_PROBE_TIMEOUT_S if aggressive else PROBE_TIMEOUT_S

    @abstractmethod
    async def probe(self, address: str, port: int, aggressive: bool = False) -> ProbeOutcome:
        """Classify one (address, port) pair."""


# ─── Real TCP connect ─────────────────────────────────────────────────────────

class TcpConnectProber(Prober):
    """
    Full three-way handshake; no raw sockets or root needed.

      connected            → open
      ConnectionRefused    → closed
      timeout / OSError    → filtered
    """

    def __init__(self, timeout_s: Optional[float] = None,
                 aggressive_timeout_s: Optional[float] = None):
        self._timeout = timeout_s or PROBE_TIMEOUT_S
        self._aggressive_timeout = aggressive_timeout_s or AGGRESSIVE_PROBE_TIMEOUT_S

    def timeout_s(self, aggressive: bool) -> float:
        return self._aggressive_timeout if aggressive else self._timeout

    async def probe(self, address: str, port: int, aggressive: bool = False) -> ProbeOutcome:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(address, port),
                timeout=self.timeout_s(aggressive),
            )
        except asyncio.TimeoutError:
            return ProbeOutcome.for_port(port, open=False, filtered=True)
        except ConnectionRefusedError:
            return ProbeOutcome.for_port(port, open=False)
        except OSError as exc:
            log.debug(f"{address}:{port} unreachable: {exc}")
            return ProbeOutcome.for_port(port, open=False, filtered=True)

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return ProbeOutcome.for_port(port, open=True)


# ─── Simulated stand-in ───────────────────────────────────────────────────────

class SimulatedProber(Prober):
    """
    Randomized prober: waits U(0, timeout) × time_scale, then reports open
    with 25% (aggressive) / 15% probability and filtered with 10%,
    independently.

    time_scale=0 removes the latency entirely (tests, dry runs).
    """

    def __init__(self, seed: Optional[int] = None, time_scale: float = 1.0):
        self._rng = random.Random(seed)
        self._time_scale = max(0.0, time_scale)

    async def probe(self, address: str, port: int, aggressive: bool = False) -> ProbeOutcome:
        # Draw everything up front so concurrent calls never interleave RNG use
        latency = self._rng.random() * self.timeout_s(aggressive) * self._time_scale
        open_rate = SIM_AGGRESSIVE_OPEN_RATE if aggressive else SIM_OPEN_RATE
        is_open = self._rng.random() < open_rate
        filtered = self._rng.random() < SIM_FILTERED_RATE

        await asyncio.sleep(latency)
        return ProbeOutcome.for_port(port, open=is_open, filtered=filtered)


def make_prober(kind: str, **kwargs) -> Prober:
    """Factory used by the CLI and dashboard: "tcp" or "simulated"."""
    kind = (kind or "tcp").lower()
    if kind == "tcp":
        return TcpConnectProber(**kwargs)
    if kind in ("simulated", "sim"):
        return SimulatedProber(**kwargs)
    raise ValueError(f"Unknown prober {kind!r}. Choose from: ['tcp', 'simulated']")
