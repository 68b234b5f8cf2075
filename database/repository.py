"""
database/repository.py
Pure sqlite3 history store for exported scan snapshots.

Layering: dashboard and CLI save snapshots through this.
repository does NOT import core, dashboard, or reporting; it only
understands the snapshot dict layout.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from typing import Generator, List, Optional

from database.models import SCHEMA_SQL


class Repository:
    """Thread-safe sqlite3 repository."""

    def __init__(self, db_path: str = "netsweep.db"):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            for stmt in SCHEMA_SQL.strip().split(";"):
                s = stmt.strip()
                if s:
                    conn.execute(s)
            conn.commit()
        finally:
            conn.close()

    @contextmanager
    def _tx(self) -> Generator[sqlite3.Connection, None, None]:
        with self._lock:
            conn = self._connect()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    # ── Snapshot writes ───────────────────────────────────────────────────────

    def save_snapshot(self, snapshot: dict, label: Optional[str] = None) -> int:
        """Persist one snapshot document atomically. Returns the export id."""
        with self._tx() as c:
            export_id = c.execute(
                "INSERT INTO exports(scan_timestamp,label,total_hosts,active_hosts) VALUES(?,?,?,?)",
                (snapshot["scan_timestamp"], label,
                 snapshot.get("total_hosts", 0), snapshot.get("active_hosts", 0)),
            ).lastrowid

            for pos, host in enumerate(snapshot.get("results", [])):
                host_id = c.execute(
                    "INSERT INTO hosts(export_id,position,address,os_guess,active) VALUES(?,?,?,?,?)",
                    (export_id, pos, host["address"], host.get("os_guess"),
                     int(bool(host.get("active")))),
                ).lastrowid
                for ppos, p in enumerate(host.get("ports", [])):
                    c.execute("""
                        INSERT OR IGNORE INTO ports
                          (host_id,position,port_number,open,filtered,service)
                        VALUES(?,?,?,?,?,?)
                    """, (host_id, ppos, p["port"], int(bool(p.get("open"))),
                          int(bool(p.get("filtered"))), p.get("service", "Unknown")))
            return export_id

    def delete_export(self, export_id: int) -> bool:
        with self._tx() as c:
            n = c.execute("DELETE FROM exports WHERE id=?", (export_id,)).rowcount
            return n > 0

    def clear_all(self) -> None:
        with self._tx() as c:
            c.execute("DELETE FROM ports")
            c.execute("DELETE FROM hosts")
            c.execute("DELETE FROM exports")

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_export(self, export_id: int) -> Optional[dict]:
        """Rebuild the stored snapshot document, plus id/label/saved_at."""
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM exports WHERE id=?", (export_id,)).fetchone()
            if not row:
                return None
            return self._build_snapshot(conn, dict(row))
        finally:
            conn.close()

    def list_exports(self, limit: int = 50) -> List[dict]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM exports ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [dict(r) for r in rows]
        finally:
            conn.close()

    def stats(self) -> dict:
        conn = self._connect()
        try:
            def q(sql): return conn.execute(sql).fetchone()[0] or 0
            return {
                "total_exports":  q("SELECT COUNT(*) FROM exports"),
                "total_hosts":    q("SELECT COUNT(*) FROM hosts"),
                "active_hosts":   q("SELECT COUNT(*) FROM hosts WHERE active=1"),
                "open_ports":     q("SELECT COUNT(*) FROM ports WHERE open=1"),
                "unique_ips":     q("SELECT COUNT(DISTINCT address) FROM hosts"),
            }
        finally:
            conn.close()

    # ── Serialization helpers ─────────────────────────────────────────────────

    @staticmethod
    def _build_snapshot(conn: sqlite3.Connection, export: dict) -> dict:
        results = []
        for h in conn.execute(
            "SELECT * FROM hosts WHERE export_id=? ORDER BY position", (export["id"],)
        ).fetchall():
            port_rows = conn.execute(
                "SELECT * FROM ports WHERE host_id=? ORDER BY position", (h["id"],)
            ).fetchall()
            results.append({
                "address":  h["address"],
                "ports": [
                    {"port": p["port_number"], "open": bool(p["open"]),
                     "filtered": bool(p["filtered"]), "service": p["service"]}
                    for p in port_rows
                ],
                "os_guess": h["os_guess"],
                "active":   bool(h["active"]),
            })
        return {
            "id":             export["id"],
            "label":          export["label"],
            "saved_at":       export["saved_at"],
            "scan_timestamp": export["scan_timestamp"],
            "total_hosts":    export["total_hosts"],
            "active_hosts":   export["active_hosts"],
            "results":        results,
        }
