"""
core/results.py
Append-only result store for one scan session.

Filtering is a pure view over the stored records; the store itself is never
filtered in place. Thread-safe so a dashboard thread can read while the
engine appends.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from utils.constants import StatusFilter

if TYPE_CHECKING:
    from core.models import HostRecord


class ResultStore:
    """Ordered collection of HostRecord, in host-list order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List["HostRecord"] = []

    def append(self, record: "HostRecord") -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> List["HostRecord"]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self):
        return iter(self.records())

    # ── Views ─────────────────────────────────────────────────────────────────

    def filter(
        self,
        search_term: str = "",
        status_filter: str | StatusFilter = StatusFilter.ALL,
    ) -> List["HostRecord"]:
        """
        Records whose address contains search_term and whose activity matches
        status_filter ("all", "active" or "inactive").

        Raises ValueError for an unknown status filter.
        """
        status = StatusFilter(status_filter)
        needle = (search_term or "").strip().lower()

        def keep(r: "HostRecord") -> bool:
            if needle and needle not in r.address.lower():
                return False
            if status is StatusFilter.ACTIVE:
                return r.active
            if status is StatusFilter.INACTIVE:
                return not r.active
            return True

        return [r for r in self.records() if keep(r)]

    def export_snapshot(
        self,
        total_hosts: int,
        active_hosts: int,
        timestamp: Optional[datetime] = None,
    ) -> dict:
        """Structured export document for the export sink."""
        ts = timestamp or datetime.now(timezone.utc)
        return {
            "scan_timestamp": ts.isoformat(),
            "total_hosts":    total_hosts,
            "active_hosts":   active_hosts,
            "results":        [r.to_dict() for r in self.records()],
        }
