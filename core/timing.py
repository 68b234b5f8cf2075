"""
core/timing.py
Pacing and progress accounting.

Pacing: the speed slider (1..5) sets a fixed delay between hosts,
  delay_ms = max(50, 500 - speed × 80)
so the host-to-host advance is throttled independently of probe latency.

Progress: after every host,
  elapsed = now - start
  rate    = scanned / elapsed                (0 while elapsed == 0)
  eta     = (total - scanned) / rate         (0 when done or rate == 0)
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from core.events import ProgressEvent
from utils.constants import (
    PACING_BASE_MS, PACING_FLOOR_MS, PACING_STEP_MS, SPEED_LABELS, SPEED_MIN,
)
from utils.validators import clamp_speed


# ─── Pacing ───────────────────────────────────────────────────────────────────

def pacing_delay_ms(speed_level: int) -> int:
    return max(PACING_FLOOR_MS, PACING_BASE_MS - clamp_speed(speed_level) * PACING_STEP_MS)


def pacing_delay_s(speed_level: int) -> float:
    return pacing_delay_ms(speed_level) / 1000.0


def speed_label(speed_level: int) -> str:
    return SPEED_LABELS[clamp_speed(speed_level) - SPEED_MIN]


def format_duration(seconds: float) -> str:
    """Seconds → "MM:SS" (minutes keep growing past 59)."""
    seconds = max(0.0, seconds)
    mins, secs = divmod(int(seconds), 60)
    return f"{mins:02d}:{secs:02d}"


# ─── Progress meter ───────────────────────────────────────────────────────────

class ProgressMeter:
    """
    Elapsed / throughput / ETA calculator for one session.
    Thread-safe; the clock is injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._start: Optional[float] = None
        self._stop: Optional[float] = None

    def start(self) -> float:
        with self._lock:
            self._start = self._clock()
            self._stop = None
            return self._start

    def stop(self) -> None:
        """Freeze elapsed time once the session is terminal."""
        with self._lock:
            if self._start is not None and self._stop is None:
                self._stop = self._clock()

    @property
    def started(self) -> bool:
        with self._lock:
            return self._start is not None

    def elapsed(self) -> float:
        with self._lock:
            if self._start is None:
                return 0.0
            end = self._stop if self._stop is not None else self._clock()
            return max(0.0, end - self._start)

    def measure(self, scanned: int, total: int, active: int = 0) -> ProgressEvent:
        elapsed = self.elapsed()
        rate = scanned / elapsed if elapsed > 0 else 0.0
        eta = (total - scanned) / rate if scanned < total and rate > 0 else 0.0
        return ProgressEvent(
            scanned_count=scanned,
            total_targets=total,
            active_count=active,
            rate=rate,
            elapsed=elapsed,
            eta=eta,
        )
