"""
NetSweep Constants & Enums
Scan lifecycle states, port states, service names and pacing presets.
"""

from enum import IntEnum, Enum


# ─── Port States ──────────────────────────────────────────────────────────────
class PortState(IntEnum):
    UNKNOWN   = 0
    CLOSED    = 1
    OPEN      = 2
    FILTERED  = 3


# ─── Scan Lifecycle ───────────────────────────────────────────────────────────
class ScanState(str, Enum):
    IDLE      = "idle"
    RUNNING   = "running"
    PAUSED    = "paused"
    COMPLETED = "completed"
    ABORTED   = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanState.COMPLETED, ScanState.ABORTED)

    @property
    def can_start(self) -> bool:
        return self in (ScanState.IDLE, ScanState.COMPLETED, ScanState.ABORTED)


class StatusFilter(str, Enum):
    ALL      = "all"
    ACTIVE   = "active"
    INACTIVE = "inactive"


# ─── Port Parser Limits ───────────────────────────────────────────────────────
PORT_MIN        = 1
PORT_MAX        = 65535
OCTET_MAX       = 255

# Named port lists accepted in place of a comma-separated spec
PORT_PRESETS = {
    "common":   "21,22,23,25,53,80,110,143,443,993,995,3389",
    "web":      "80,443,8080,8443,3000,5000,8000,9000",
    "mail":     "25,110,143,465,587,993,995",
    "database": "1433,3306,5432,6379,27017,5984",
}
DEFAULT_PORTS = PORT_PRESETS["common"]


# ─── Service names (display labels for well-known ports) ──────────────────────
SERVICE_NAMES = {
    21: "FTP", 22: "SSH", 23: "Telnet", 25: "SMTP", 53: "DNS",
    80: "HTTP", 110: "POP3", 143: "IMAP", 443: "HTTPS", 993: "IMAPS",
    995: "POP3S", 3389: "RDP", 5432: "PostgreSQL", 3306: "MySQL",
    1433: "MSSQL", 6379: "Redis", 27017: "MongoDB", 8080: "HTTP-Alt",
}
UNKNOWN_SERVICE = "Unknown"


# ─── Probe calibration ────────────────────────────────────────────────────────
PROBE_TIMEOUT_S            = 3.0
AGGRESSIVE_PROBE_TIMEOUT_S = 1.0
SIM_OPEN_RATE              = 0.15
SIM_AGGRESSIVE_OPEN_RATE   = 0.25
SIM_FILTERED_RATE          = 0.10
PROBE_DEADLINE_GRACE_S     = 0.5   # engine-side slack on top of prober timeout


# ─── Pacing (speed slider 1..5) ───────────────────────────────────────────────
SPEED_MIN        = 1
SPEED_MAX        = 5
DEFAULT_SPEED    = 3
PACING_BASE_MS   = 500
PACING_STEP_MS   = 80
PACING_FLOOR_MS  = 50
SPEED_LABELS     = ["Very Slow", "Slow", "Normal", "Fast", "Very Fast"]

# Probability that a host with no open port is still recorded
INCLUSION_NOISE  = 0.2


# ─── OS guess candidates ──────────────────────────────────────────────────────
OS_CANDIDATES = [
    "Windows 10", "Windows Server 2019", "Ubuntu 20.04",
    "CentOS 8", "macOS", "FreeBSD",
]
UNKNOWN_OS = "Unknown"


# ─── Layering Contract (hard import rules - enforced by tests) ───────────────
# core      → may import: utils
# database  → may import: utils
# reporting → may import: utils
# dashboard → may import: core, database, reporting, utils
# NEVER: core imports database, dashboard or reporting
