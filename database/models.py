"""
database/models.py
Pure sqlite3 schema definition — zero external dependencies.

Schema:
  exports    — one row per saved snapshot
  hosts      — one row per recorded host of a snapshot
  ports      — one row per probe outcome of a host

WAL mode, proper indexes, FK enforcement.
"""

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS exports (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_timestamp  TEXT    NOT NULL,
    label           TEXT,
    total_hosts     INTEGER DEFAULT 0,
    active_hosts    INTEGER DEFAULT 0,
    saved_at        TEXT    DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);
CREATE INDEX IF NOT EXISTS ix_exports_scan_ts ON exports(scan_timestamp);
CREATE INDEX IF NOT EXISTS ix_exports_saved   ON exports(saved_at);

CREATE TABLE IF NOT EXISTS hosts (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    export_id   INTEGER NOT NULL REFERENCES exports(id) ON DELETE CASCADE,
    position    INTEGER NOT NULL,
    address     TEXT    NOT NULL,
    os_guess    TEXT,
    active      INTEGER DEFAULT 0,
    UNIQUE(export_id, address)
);
CREATE INDEX IF NOT EXISTS ix_hosts_export_id ON hosts(export_id);
CREATE INDEX IF NOT EXISTS ix_hosts_address   ON hosts(address);
CREATE INDEX IF NOT EXISTS ix_hosts_active    ON hosts(export_id, active);

CREATE TABLE IF NOT EXISTS ports (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    host_id     INTEGER NOT NULL REFERENCES hosts(id) ON DELETE CASCADE,
    position    INTEGER NOT NULL,
    port_number INTEGER NOT NULL,
    open        INTEGER DEFAULT 0,
    filtered    INTEGER DEFAULT 0,
    service     TEXT    DEFAULT 'Unknown',
    UNIQUE(host_id, port_number)
);
CREATE INDEX IF NOT EXISTS ix_ports_host_id   ON ports(host_id);
CREATE INDEX IF NOT EXISTS ix_ports_port_num  ON ports(port_number);
CREATE INDEX IF NOT EXISTS ix_ports_host_open ON ports(host_id, open);
"""
