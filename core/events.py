"""
core/events.py
Typed events the engine emits to its UI sink.

A sink is any callable taking one event. The engine never renders anything;
presentation layers (CLI, dashboard) subscribe through a sink.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List, Tuple, Union

from core.models import HostRecord
from utils.constants import ScanState


class EventKind(str, Enum):
    STARTED    = "started"
    PAUSED     = "paused"
    RESUMED    = "resumed"
    ABORTED    = "aborted"
    COMPLETED  = "completed"
    PROGRESS   = "progress"
    HOST       = "host"
    VALIDATION = "validation_error"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LifecycleEvent:
    kind:     EventKind
    state:    ScanState
    message:  str = ""
    at:       datetime = field(default_factory=_now)


@dataclass(frozen=True)
class ProgressEvent:
    scanned_count:  int
    total_targets:  int
    active_count:   int
    rate:           float     # hosts / second
    elapsed:        float     # seconds
    eta:            float     # seconds, 0 when unknown or done
    kind:           EventKind = EventKind.PROGRESS

    @property
    def percent(self) -> float:
        if self.total_targets <= 0:
            return 0.0
        return 100.0 * self.scanned_count / self.total_targets


@dataclass(frozen=True)
class HostRecordEvent:
    record:  HostRecord
    index:   int              # position in the target list
    kind:    EventKind = EventKind.HOST


@dataclass(frozen=True)
class ValidationFailed:
    message:  str
    kind:     EventKind = EventKind.VALIDATION


ScanEvent = Union[LifecycleEvent, ProgressEvent, HostRecordEvent, ValidationFailed]
EventSink = Callable[[ScanEvent], None]


def event_to_dict(event: ScanEvent) -> dict:
    """JSON-friendly representation of any engine event."""
    if isinstance(event, LifecycleEvent):
        return {
            "kind":    event.kind.value,
            "state":   event.state.value,
            "message": event.message,
            "at":      event.at.isoformat(),
        }
    if isinstance(event, ProgressEvent):
        return {
            "kind":          event.kind.value,
            "scanned_count": event.scanned_count,
            "total_targets": event.total_targets,
            "active_count":  event.active_count,
            "rate":          round(event.rate, 3),
            "elapsed":       round(event.elapsed, 3),
            "eta":           round(event.eta, 3),
            "percent":       round(event.percent, 1),
        }
    if isinstance(event, HostRecordEvent):
        return {"kind": event.kind.value, "index": event.index,
                "record": event.record.to_dict()}
    if isinstance(event, ValidationFailed):
        return {"kind": event.kind.value, "message": event.message}
    raise TypeError(f"Not a scan event: {event!r}")


# ─── Buffered sink ────────────────────────────────────────────────────────────

class EventLog:
    """
    Thread-safe sink that keeps the most recent events with sequence numbers,
    so pollers can ask for everything after the last sequence they saw.
    """

    def __init__(self, maxlen: int = 1000):
        self._lock = threading.Lock()
        self._events: Deque[Tuple[int, ScanEvent]] = deque(maxlen=maxlen)
        self._seq = 0

    def __call__(self, event: ScanEvent) -> None:
        with self._lock:
            self._seq += 1
            self._events.append((self._seq, event))

    @property
    def last_seq(self) -> int:
        with self._lock:
            return self._seq

    def since(self, seq: int = 0) -> List[Tuple[int, ScanEvent]]:
        with self._lock:
            return [(s, e) for s, e in self._events if s > seq]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


def fan_out(*sinks: EventSink) -> EventSink:
    """Combine several sinks into one; None entries are skipped."""
    targets = [s for s in sinks if s is not None]

    def _emit(event: ScanEvent) -> None:
        for sink in targets:
            sink(event)
    return _emit
