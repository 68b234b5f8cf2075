"""
core/models.py
Scan data model: probe outcomes, host records, options and the live session.

HostRecord and ProbeOutcome are frozen; the only mutable object is
ScanSession, whose counters change under its own lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from core.results import ResultStore
from utils.constants import (
    DEFAULT_PORTS, DEFAULT_SPEED, PortState, ScanState,
    SERVICE_NAMES, UNKNOWN_SERVICE,
)
from utils.validators import clamp_speed, parse_flag


class ScanValidationError(ValueError):
    """Raised when a scan configuration cannot produce any work."""


def service_name(port: int) -> str:
    return SERVICE_NAMES.get(port, UNKNOWN_SERVICE)


# ─── Probe / host results ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProbeOutcome:
    port:      int
    open:      bool
    filtered:  bool = False
    service:   str = UNKNOWN_SERVICE

    @classmethod
    def for_port(cls, port: int, open: bool, filtered: bool = False) -> "ProbeOutcome":
        return cls(port=port, open=open, filtered=filtered, service=service_name(port))

    @property
    def state(self) -> PortState:
        if self.open:
            return PortState.OPEN
        if self.filtered:
            return PortState.FILTERED
        return PortState.CLOSED

    def to_dict(self) -> dict:
        return {
            "port":     self.port,
            "open":     self.open,
            "filtered": self.filtered,
            "service":  self.service,
        }


@dataclass(frozen=True)
class HostRecord:
    address:   str
    ports:     Tuple[ProbeOutcome, ...]
    os_guess:  Optional[str] = None
    active:    bool = field(default=False, init=False)

    def __post_init__(self):
        # active is derived, never passed in
        object.__setattr__(self, "ports", tuple(self.ports))
        object.__setattr__(self, "active", any(p.open for p in self.ports))

    @classmethod
    def build(
        cls,
        address: str,
        outcomes: Iterable[ProbeOutcome],
        os_guess: Optional[str] = None,
    ) -> "HostRecord":
        return cls(address=address, ports=tuple(outcomes), os_guess=os_guess)

    @property
    def open_ports(self) -> list[ProbeOutcome]:
        return [p for p in self.ports if p.open]

    def to_dict(self) -> dict:
        return {
            "address":  self.address,
            "ports":    [p.to_dict() for p in self.ports],
            "os_guess": self.os_guess,
            "active":   self.active,
        }


# ─── Configuration input ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScanOptions:
    aggressive:    bool = False
    os_detection:  bool = False
    speed_level:   int = DEFAULT_SPEED

    def __post_init__(self):
        object.__setattr__(self, "speed_level", clamp_speed(self.speed_level))


@dataclass(frozen=True)
class ScanConfig:
    range_spec:    str
    ports_spec:    str = DEFAULT_PORTS
    aggressive:    bool = False
    os_detection:  bool = False
    speed_level:   int = DEFAULT_SPEED

    @property
    def options(self) -> ScanOptions:
        return ScanOptions(
            aggressive=self.aggressive,
            os_detection=self.os_detection,
            speed_level=self.speed_level,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ScanConfig":
        """Build from dashboard JSON or YAML; camelCase and snake_case keys both work."""
        def pick(*keys, default=None):
            for k in keys:
                if k in data and data[k] is not None:
                    return data[k]
            return default

        return cls(
            range_spec=str(pick("range_spec", "rangeSpec", "range", default="")),
            ports_spec=str(pick("ports_spec", "portsSpec", "ports", default="")),
            aggressive=parse_flag(pick("aggressive", default=False)),
            os_detection=parse_flag(pick("os_detection", "osDetectionEnabled", "os_detect",
                                         default=False)),
            speed_level=clamp_speed(pick("speed_level", "speedLevel", "speed",
                                         default=DEFAULT_SPEED)),
        )


# ─── Session ──────────────────────────────────────────────────────────────────

@dataclass
class ScanSession:
    """
    Mutable state of one scan run.

    The engine owns the lifecycle; callers may hold a reference and read
    counters or take snapshots from any thread.
    """

    state:          ScanState = ScanState.IDLE
    options:        ScanOptions = field(default_factory=ScanOptions)
    total_targets:  int = 0
    scanned_count:  int = 0
    active_count:   int = 0
    started_at:     Optional[float] = None       # monotonic clock
    started_wall:   Optional[datetime] = None
    store:          ResultStore = field(default_factory=ResultStore)
    _lock:          threading.Lock = field(default_factory=threading.Lock, init=False,
                                           repr=False, compare=False)

    def record_host(self, record: Optional[HostRecord]) -> None:
        """Count one scanned host and append its record when it was retained."""
        with self._lock:
            if record is not None:
                self.store.append(record)
                if record.active:
                    self.active_count += 1
            self.scanned_count += 1

    def counters(self) -> Tuple[int, int]:
        with self._lock:
            return self.scanned_count, self.active_count

    def export_snapshot(self, timestamp: Optional[datetime] = None) -> dict:
        with self._lock:
            return self.store.export_snapshot(
                total_hosts=self.scanned_count,
                active_hosts=self.active_count,
                timestamp=timestamp,
            )

    def to_dict(self) -> dict:
        scanned, active = self.counters()
        return {
            "state":         self.state.value,
            "total_targets": self.total_targets,
            "scanned_count": scanned,
            "active_count":  active,
            "started_at":    self.started_wall.isoformat() if self.started_wall else None,
            "options": {
                "aggressive":   self.options.aggressive,
                "os_detection": self.options.os_detection,
                "speed_level":  self.options.speed_level,
            },
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
