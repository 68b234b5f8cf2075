#!/usr/bin/env python3
"""
NetSweep v1.0 — Async Network Range Scanner
main.py — CLI entry point

Usage:
  python3 main.py --range 192.168.1.1-254 --ports common
  python3 main.py --range 10.0.0.1-10.0.0.20 --ports 22,80,443 --speed 5 --os-detect
  python3 main.py --range 10.0.0.1-50 --probe simulated --status active --export html
  python3 main.py --detect-range
  python3 main.py --history 20
  python3 main.py --show 3 --export pdf
  python3 main.py --dashboard
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

# Try uvloop for faster socket I/O on Linux/macOS
try:
    import uvloop
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except ImportError:
    pass

import yaml

from core.events import (EventKind, HostRecordEvent, LifecycleEvent, ProgressEvent,
                         ScanEvent, ValidationFailed)
from core.models import HostRecord, ScanConfig
from core.os_detect import PortHintOSDetector, SimulatedOSDetector
from core.probe import make_prober
from core.scanner_engine import ScanEngine
from core.targets import detect_local_range
from core.timing import format_duration, speed_label
from database.repository import Repository
from reporting.report_generator import FORMATS, ReportGenerator
from utils.constants import DEFAULT_PORTS, DEFAULT_SPEED, ScanState, StatusFilter
from utils.logger import get_logger, set_level

log = get_logger("netsweep")

BANNER = r"""
  ╔═══════════════════════════════════════════════╗
  ║  NetSweep v1.0  ·  Async Range Scanner        ║
  ║  For authorized network assessment only       ║
  ╚═══════════════════════════════════════════════╝"""


def _load_config(path: str) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}


def _pick(cli_value, section: dict, key: str, default):
    """CLI flag wins, then config.yaml, then the built-in default."""
    if cli_value is not None:
        return cli_value
    value = section.get(key)
    return default if value is None else value


# ─── Event sink ───────────────────────────────────────────────────────────────

class CliSink:
    """Render engine events as log lines."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def __call__(self, event: ScanEvent) -> None:
        if isinstance(event, ValidationFailed):
            log.error(f"[!] {event.message}")
        elif isinstance(event, LifecycleEvent):
            if event.kind is EventKind.COMPLETED:
                log.info(f"[✓] {event.message}")
            elif event.kind is EventKind.ABORTED:
                log.warning(f"[!] {event.message}")
        elif self.quiet:
            return
        elif isinstance(event, HostRecordEvent):
            r = event.record
            mark = "[+]" if r.active else "[-]"
            opened = ",".join(str(p.port) for p in r.open_ports) or "none"
            log.info(f"{mark} {r.address:<15} open: {opened}"
                     + (f"  OS: {r.os_guess}" if r.os_guess else ""))
        elif isinstance(event, ProgressEvent):
            log.debug(
                f"[*] {event.scanned_count}/{event.total_targets} "
                f"({event.percent:.0f}%)  {event.rate:.1f} hosts/s  "
                f"ETA {format_duration(event.eta)}"
            )


# ─── Core scan runner ─────────────────────────────────────────────────────────

async def _run_scan(config: ScanConfig, probe_kind: str, concurrency: int,
                    quiet: bool) -> ScanEngine:
    """Execute one scan; Ctrl-C aborts it and keeps the hosts recorded so far."""
    detector = SimulatedOSDetector() if probe_kind.startswith("sim") else PortHintOSDetector()
    engine = ScanEngine(
        prober=make_prober(probe_kind),
        os_detector=detector,
        sink=CliSink(quiet),
        max_concurrent_ports=concurrency,
    )

    log.info(f"Range    : {config.range_spec}")
    log.info(f"Ports    : {config.ports_spec}")
    log.info(f"Speed    : {speed_label(config.speed_level)}  "
             f"{'(aggressive)' if config.aggressive else ''}")
    log.info(f"Probe    : {probe_kind}  ×{concurrency}")

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, engine.abort)
        installed = True
    except (NotImplementedError, RuntimeError):
        installed = False   # Windows: main() handles KeyboardInterrupt

    try:
        await engine.scan(config)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
    return engine


def print_results(records: List[HostRecord], status: dict) -> None:
    print(f"\n{'═'*60}")
    print(f"  SCAN {status['state'].upper()}")
    print(f"{'─'*60}")
    print(f"  Hosts scanned : {status['scanned_count']}/{status['total_targets']}")
    print(f"  Active hosts  : {status['active_count']}")
    print(f"  Duration      : {format_duration(status['elapsed'])}")
    print(f"  Rate          : {status['rate']:.2f} hosts/sec")
    print(f"{'═'*60}\n")

    if not records:
        print("  No hosts match the current filter.")
        return
    print(f"  {'ADDRESS':<16} {'STATUS':<9} {'OS':<22} OPEN PORTS")
    print(f"  {'─'*58}")
    for r in records:
        ports = ", ".join(f"{p.port}/{p.service}" for p in r.open_ports) or "—"
        print(f"  {r.address:<16} {'active' if r.active else 'inactive':<9} "
              f"{(r.os_guess or '—'):<22} {ports}")
    print()


# ─── History ─────────────────────────────────────────────────────────────────

def show_history(repo: Repository, limit: int) -> None:
    exports = repo.list_exports(limit)
    if not exports:
        print("  No saved scans. Run: python3 main.py --range <range> --save")
        return
    print(f"\n  {'ID':<5} {'SCAN TIMESTAMP':<34} {'HOSTS':<7} {'ACTIVE':<7} LABEL")
    print("  " + "─" * 66)
    for e in exports:
        print(f"  {e['id']:<5} {e['scan_timestamp']:<34} {e['total_hosts']:<7} "
              f"{e['active_hosts']:<7} {e.get('label') or ''}")


def write_report(snapshot: dict, fmt: str, output_dir: str) -> Optional[str]:
    path = ReportGenerator(output_dir=output_dir).generate(snapshot, fmt)
    if path:
        print(f"\n  ✓ Report saved: {path}")
    else:
        print("\n  ✗ Report generation failed")
    return path


# ─── CLI ─────────────────────────────────────────────────────────────────────

def build_cli() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="netsweep",
        description="NetSweep v1.0 — Async Network Range Scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Range specs:  192.168.1.1-254  |  10.0.0.1-10.0.0.20
Port specs:   22  |  22,80,443  |  common  web  mail  database
Speed:        1 (slow) .. 5 (fastest)

Examples:
  %(prog)s --range 192.168.1.1-254 --ports common
  %(prog)s --range 10.0.0.1-20 --probe simulated --export html --save
  %(prog)s --show 1 --export pdf
  %(prog)s --dashboard
""",
    )
    g = ap.add_argument_group
    s = g("Scan")
    s.add_argument("--range",       dest="range_spec", metavar="RANGE",
                   help="IPv4 range a.b.c.start-end")
    s.add_argument("--ports",       metavar="SPEC", help=f"Port list or preset (default: {DEFAULT_PORTS})")
    s.add_argument("--aggressive",  action="store_true", default=None,
                   help="Shorter probe timeout")
    s.add_argument("--os-detect",   action="store_true", default=None,
                   help="Guess the OS of each recorded host")
    s.add_argument("--speed",       type=int, metavar="1-5",
                   help=f"Pacing level (default: {DEFAULT_SPEED})")
    s.add_argument("--probe",       choices=["tcp", "simulated"],
                   help="Probe method (default: tcp)")
    s.add_argument("--concurrency", type=int, metavar="N",
                   help="Concurrent port probes per host (default: 1)")
    s.add_argument("--detect-range", action="store_true",
                   help="Print the local /24 range and exit")

    f = g("Results")
    f.add_argument("--search",      default="", metavar="TEXT",
                   help="Only show hosts whose address contains TEXT")
    f.add_argument("--status",      default=StatusFilter.ALL.value,
                   choices=[sf.value for sf in StatusFilter])
    f.add_argument("--export",      choices=list(FORMATS), help="Write a report file")
    f.add_argument("--save",        action="store_true", help="Save the snapshot to history")
    f.add_argument("--label",       metavar="TEXT", help="Label for --save")

    db = g("History")
    db.add_argument("--history",    metavar="N", nargs="?", const=20, type=int,
                    help="List saved scans (default: 20)")
    db.add_argument("--show",       metavar="ID", type=int,
                    help="Show a saved scan (combine with --export)")
    db.add_argument("--clear-db",   action="store_true", help="Delete all saved scans")
    db.add_argument("--db-path",    metavar="FILE")

    d = g("Dashboard")
    d.add_argument("--dashboard",   action="store_true", help="Start web dashboard")
    d.add_argument("--host")
    d.add_argument("--dash-port",   type=int, metavar="PORT")
    d.add_argument("--enable-auth", action="store_true", default=None,
                   help="Enable HTTP basic auth")
    d.add_argument("--hash-password", metavar="PASSWORD",
                   help="Print a hash for dashboard.auth_password and exit")

    ap.add_argument("--config",     default="config.yaml", metavar="FILE")
    ap.add_argument("--quiet",      action="store_true", help="Suppress per-host output")
    ap.add_argument("--verbose",    action="store_true", help="Show progress lines")
    ap.add_argument("--no-logo",    action="store_true", help="Hide ASCII banner")
    ap.add_argument("--version",    action="version", version="NetSweep 1.0")
    return ap


def _scan_config(args, scan_cfg: dict) -> ScanConfig:
    return ScanConfig.from_dict({
        "range_spec":   _pick(args.range_spec, scan_cfg, "range", ""),
        "ports_spec":   _pick(args.ports, scan_cfg, "ports", DEFAULT_PORTS),
        "aggressive":   _pick(args.aggressive, scan_cfg, "aggressive", False),
        "os_detection": _pick(args.os_detect, scan_cfg, "os_detection", False),
        "speed_level":  _pick(args.speed, scan_cfg, "speed", DEFAULT_SPEED),
    })


def _run_dashboard(args, cfg: dict, repo: Repository, output_dir: str) -> None:
    from core.runner import BackgroundScanner
    from dashboard.app import run_dashboard

    scan_cfg = cfg.get("scan", {})
    dash_cfg = dict(cfg.get("dashboard", {}))
    if args.host:
        dash_cfg["host"] = args.host
    if args.dash_port:
        dash_cfg["port"] = args.dash_port
    if args.enable_auth:
        dash_cfg["enable_auth"] = True

    probe_kind = _pick(args.probe, scan_cfg, "probe", "tcp")
    detector = SimulatedOSDetector() if probe_kind.startswith("sim") else PortHintOSDetector()
    with BackgroundScanner(
        prober=make_prober(probe_kind),
        os_detector=detector,
        max_concurrent_ports=_pick(args.concurrency, scan_cfg, "concurrency", 1),
    ) as runner:
        run_dashboard(dash_cfg, runner, repo, ReportGenerator(output_dir))


def _scan_command(args, scan_cfg: dict, db_path: str, output_dir: str) -> int:
    """Run a scan from CLI flags; returns the process exit code."""
    config      = _scan_config(args, scan_cfg)
    probe_kind  = _pick(args.probe, scan_cfg, "probe", "tcp")
    concurrency = _pick(args.concurrency, scan_cfg, "concurrency", 1)

    engine = asyncio.run(_run_scan(config, probe_kind, concurrency, args.quiet))
    if engine.state is ScanState.IDLE:
        return 1   # validation failed, already reported by the sink

    print_results(engine.filter(args.search, args.status), engine.status())
    snapshot = engine.export_snapshot()
    if args.export:
        write_report(snapshot, args.export, output_dir)
    if args.save:
        export_id = Repository(db_path).save_snapshot(snapshot, label=args.label)
        print(f"  ✓ Saved as #{export_id}  (python3 main.py --show {export_id})")
    return 130 if engine.state is ScanState.ABORTED else 0


def show_export(repo: Repository, export_id: int, args, output_dir: str) -> None:
    snapshot = repo.get_export(export_id)
    if not snapshot:
        log.error(f"Export {export_id} not found"); sys.exit(1)
    term = args.search.lower()
    hosts = [
        h for h in snapshot["results"]
        if term in h["address"].lower()
        and (args.status == "all" or h["active"] == (args.status == "active"))
    ]
    print(f"\n  Export #{snapshot['id']}  {snapshot['scan_timestamp']}  "
          f"{snapshot['active_hosts']}/{snapshot['total_hosts']} active")
    for h in hosts:
        opened = ", ".join(str(p["port"]) for p in h["ports"] if p["open"]) or "—"
        print(f"  {h['address']:<16} {'active' if h['active'] else 'inactive':<9} "
              f"{(h.get('os_guess') or '—'):<22} {opened}")
    if args.export:
        write_report(snapshot, args.export, output_dir)


def main() -> None:
    ap   = build_cli()
    if len(sys.argv) == 1:
        ap.print_help(); sys.exit(0)
    args = ap.parse_args()

    if args.hash_password:
        from dashboard.app import hash_password
        print(hash_password(args.hash_password))
        return

    if args.verbose:
        set_level(logging.DEBUG)
    if not args.no_logo:
        print(BANNER)

    cfg        = _load_config(args.config)
    scan_cfg   = cfg.get("scan", {})
    output_dir = cfg.get("export", {}).get("output_dir", "reports")
    db_path    = args.db_path or cfg.get("database", {}).get("path", "netsweep.db")

    try:
        if args.detect_range:
            detected = detect_local_range()
            if not detected:
                log.error("[!] Could not determine the local network range")
                sys.exit(1)
            print(detected)

        elif args.history is not None:
            show_history(Repository(db_path), args.history)

        elif args.show is not None:
            show_export(Repository(db_path), args.show, args, output_dir)

        elif args.dashboard:
            _run_dashboard(args, cfg, Repository(db_path), output_dir)

        elif args.clear_db:
            confirm = input("  [!] Delete ALL saved scans? (yes/no): ")
            if confirm.strip().lower() == "yes":
                Repository(db_path).clear_all()
                print("  ✓ History cleared")
            else:
                print("  Cancelled")

        elif args.range_spec or scan_cfg.get("range"):
            sys.exit(_scan_command(args, scan_cfg, db_path, output_dir))

        else:
            ap.print_help()

    except KeyboardInterrupt:
        print("\n  [!] Interrupted by user")
        sys.exit(130)
    except Exception as exc:
        log.exception(f"Fatal error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
