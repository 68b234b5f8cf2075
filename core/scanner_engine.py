"""
core/scanner_engine.py
Scan orchestration engine:
  • Lifecycle state machine  IDLE → RUNNING ⇄ PAUSED → COMPLETED | ABORTED
  • Host-major control loop with speed-derived pacing between hosts
  • Pause gate / abort flag observed between hosts and between probes
  • Semaphore-bounded probe concurrency inside one host (default 1)
  • Inclusion policy: hosts with an open port, plus ~20% of the rest
  • Typed events to a UI sink; no rendering
  • No imports of dashboard/database/reporting (clean layering)
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from core.events import (
    EventKind, EventSink, HostRecordEvent, LifecycleEvent, ScanEvent, ValidationFailed,
)
from core.models import (
    HostRecord, ProbeOutcome, ScanConfig, ScanOptions, ScanSession,
    ScanValidationError, utc_now,
)
from core.os_detect import OSDetector, PortHintOSDetector
from core.port_parser import parse_ports
from core.probe import Prober, TcpConnectProber
from core.results import ResultStore
from core.targets import expand_range
from core.timing import ProgressMeter, pacing_delay_s, speed_label
from utils.constants import INCLUSION_NOISE, PROBE_DEADLINE_GRACE_S, ScanState
from utils.logger import get_logger

log = get_logger("netsweep.engine")


@dataclass
class _RunControl:
    """Pause gate and abort flag of one run; a restart gets a fresh one."""
    gate:     asyncio.Event = field(default_factory=asyncio.Event)   # set while not paused
    stop:     asyncio.Event = field(default_factory=asyncio.Event)   # set on abort
    aborted:  bool = False

    def __post_init__(self):
        self.gate.set()


def validate_config(config: ScanConfig) -> Tuple[List[str], List[int]]:
    """Expand targets and ports; raise ScanValidationError if either is empty."""
    range_spec = (config.range_spec or "").strip()
    ports_spec = (config.ports_spec or "").strip()
    if not range_spec or not ports_spec:
        raise ScanValidationError("Please enter both IP range and ports")

    targets = expand_range(range_spec)
    if not targets:
        raise ScanValidationError(f"Invalid IP range format: {range_spec!r}")

    ports = parse_ports(ports_spec)
    if not ports:
        raise ScanValidationError(f"Invalid ports format: {ports_spec!r}")
    return targets, ports


# ─── Core Engine ─────────────────────────────────────────────────────────────

class ScanEngine:
    """
    Drives a Prober over targets × ports, one session at a time.

    Lifecycle calls are idempotent guards: calling pause() when not running,
    or start() while a scan is live, does nothing and returns False/None.
    Must be driven from a single asyncio event loop; see core.runner for a
    thread-safe wrapper.

    Layering contract:
      Imports only: core/*, utils/*
      Does NOT import: database, dashboard, reporting
    """

    def __init__(
        self,
        prober: Optional[Prober] = None,
        os_detector: Optional[OSDetector] = None,
        sink: Optional[EventSink] = None,
        *,
        max_concurrent_ports: int = 1,
        inclusion_noise: float = INCLUSION_NOISE,
        rng: Optional[random.Random] = None,
        pacing: Callable[[int], float] = pacing_delay_s,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._prober = prober or TcpConnectProber()
        self._os = os_detector or PortHintOSDetector()
        self._sink = sink or (lambda _: None)
        self._max_ports = max(1, int(max_concurrent_ports))
        self._noise = inclusion_noise
        self._rng = rng or random.Random()
        self._pacing = pacing
        self._meter = ProgressMeter(clock)

        self._session = ScanSession()
        self._task: Optional[asyncio.Task] = None
        # Created inside the running event loop by start()
        self._ctl: Optional[_RunControl] = None

    # ── Introspection ─────────────────────────────────────────────────────────

    @property
    def state(self) -> ScanState:
        return self._session.state

    @property
    def session(self) -> ScanSession:
        return self._session

    @property
    def store(self) -> ResultStore:
        return self._session.store

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    @property
    def is_live(self) -> bool:
        return self.state in (ScanState.RUNNING, ScanState.PAUSED)

    def status(self) -> dict:
        """Session summary plus the latest progress figures."""
        data = self._session.to_dict()
        scanned, active = data["scanned_count"], data["active_count"]
        progress = self._meter.measure(scanned, self._session.total_targets, active)
        data.update({
            "elapsed": round(progress.elapsed, 3) if self._meter.started else 0.0,
            "rate":    round(progress.rate, 3),
            "eta":     round(progress.eta, 3),
            "speed":   speed_label(self._session.options.speed_level),
        })
        return data

    def filter(self, search_term: str = "", status_filter: str = "all") -> List[HostRecord]:
        return self._session.store.filter(search_term, status_filter)

    def export_snapshot(self) -> dict:
        return self._session.export_snapshot()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, config: ScanConfig) -> Optional[asyncio.Task]:
        """
        Validate config and launch the control loop on the running loop.

        Returns the loop task, or None when the scan did not start
        (validation failure or a scan already live).
        """
        if not self.state.can_start:
            log.debug(f"start() ignored: scan is {self.state.value}")
            return None

        try:
            targets, ports = validate_config(config)
        except ScanValidationError as exc:
            log.warning(f"Scan not started: {exc}")
            self._emit(ValidationFailed(str(exc)))
            return None

        loop = asyncio.get_running_loop()
        options = config.options
        self._ctl = _RunControl()
        self._session = ScanSession(
            state=ScanState.RUNNING,
            options=options,
            total_targets=len(targets),
            started_at=self._meter.start(),
            started_wall=utc_now(),
        )
        log.info(
            f"[*] Scan started: {len(targets)} hosts × {len(ports)} ports "
            f"(speed {speed_label(options.speed_level)}, "
            f"aggressive={'yes' if options.aggressive else 'no'})"
        )
        self._emit(LifecycleEvent(
            EventKind.STARTED, ScanState.RUNNING,
            f"Starting scan of {len(targets)} hosts on {len(ports)} ports",
        ))
        self._task = loop.create_task(
            self._run(self._ctl, self._session, targets, ports, options),
            name="netsweep-scan",
        )
        return self._task

    async def scan(self, config: ScanConfig) -> ScanSession:
        """Start a scan and wait for it to reach a terminal state."""
        task = self.start(config)
        if task is None:
            return self._session
        return await task

    async def wait(self) -> ScanSession:
        """Wait for the current run (if any) without cancelling it on timeout."""
        if self._task is not None and not self._task.done():
            await asyncio.shield(self._task)
        return self._session

    def pause(self) -> bool:
        if self.state is not ScanState.RUNNING:
            return False
        self._session.state = ScanState.PAUSED
        self._ctl.gate.clear()
        log.info("[*] Scan paused")
        self._emit(LifecycleEvent(EventKind.PAUSED, ScanState.PAUSED, "Scan paused"))
        return True

    def resume(self) -> bool:
        if self.state is not ScanState.PAUSED:
            return False
        self._session.state = ScanState.RUNNING
        self._ctl.gate.set()
        log.info("[*] Scan resumed")
        self._emit(LifecycleEvent(EventKind.RESUMED, ScanState.RUNNING, "Scan resumed"))
        return True

    def toggle_pause(self) -> bool:
        return self.resume() if self.state is ScanState.PAUSED else self.pause()

    def abort(self) -> bool:
        if not self.is_live:
            return False
        self._halt(self._ctl, self._session)
        scanned, _ = self._session.counters()
        log.info(f"[!] Scan aborted after {scanned}/{self._session.total_targets} hosts")
        self._emit(LifecycleEvent(EventKind.ABORTED, ScanState.ABORTED, "Scan aborted by user"))
        return True

    # ── Control loop ──────────────────────────────────────────────────────────

    async def _run(
        self,
        ctl: _RunControl,
        session: ScanSession,
        targets: Sequence[str],
        ports: Sequence[int],
        options: ScanOptions,
    ) -> ScanSession:
        total = len(targets)
        try:
            for index, address in enumerate(targets):
                await ctl.gate.wait()
                if ctl.aborted:
                    break

                outcomes = await self._probe_host(ctl, address, ports, options.aggressive)
                if outcomes is None:
                    break

                os_guess = self._os.guess(address, outcomes) if options.os_detection else None
                record = None
                if self._should_include(outcomes):
                    record = HostRecord.build(address, outcomes, os_guess)
                session.record_host(record)

                if record is not None:
                    log.debug(f"[+] {address}: {len(record.open_ports)} open")
                    self._emit(HostRecordEvent(record=record, index=index))
                scanned, active = session.counters()
                self._emit(self._meter.measure(scanned, total, active))

                await self._pace(ctl, self._pacing(options.speed_level))

            # a pause taken on the last host holds completion until resume or abort
            await ctl.gate.wait()
            if not ctl.aborted:
                self._complete(session)
        except Exception as exc:
            log.exception(f"Scan loop failed: {exc}")
            if not session.state.is_terminal:
                self._halt(ctl, session)
                self._emit(LifecycleEvent(
                    EventKind.ABORTED, ScanState.ABORTED, f"Scan failed: {exc}",
                ))
        return session

    async def _probe_host(
        self,
        ctl: _RunControl,
        address: str,
        ports: Sequence[int],
        aggressive: bool,
    ) -> Optional[List[ProbeOutcome]]:
        """
        Probe every port of one host, outcomes in port order.
        Returns None when the run was aborted; partial results are discarded.
        """
        sem = asyncio.Semaphore(self._max_ports)

        async def _one(port: int) -> Optional[ProbeOutcome]:
            async with sem:
                await ctl.gate.wait()
                if ctl.aborted:
                    return None
                return await self._probe(address, port, aggressive)

        outcomes = await asyncio.gather(*(_one(p) for p in ports))
        if ctl.aborted:
            return None
        return list(outcomes)

    async def _probe(self, address: str, port: int, aggressive: bool) -> ProbeOutcome:
        """One probe under an engine-side deadline. Network failures become data."""
        deadline = self._prober.timeout_s(aggressive) + PROBE_DEADLINE_GRACE_S
        try:
            return await asyncio.wait_for(
                self._prober.probe(address, port, aggressive),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            log.debug(f"{address}:{port} exceeded {deadline:.1f}s deadline")
        except OSError as exc:
            log.debug(f"{address}:{port} probe error: {exc}")
        return ProbeOutcome.for_port(port, open=False, filtered=True)

    def _should_include(self, outcomes: Sequence[ProbeOutcome]) -> bool:
        return any(o.open for o in outcomes) or self._rng.random() < self._noise

    async def _pace(self, ctl: _RunControl, seconds: float) -> None:
        """Pacing delay between hosts; returns early on abort."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(ctl.stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _halt(self, ctl: _RunControl, session: ScanSession) -> None:
        self._meter.stop()
        ctl.aborted = True
        session.state = ScanState.ABORTED
        ctl.stop.set()
        ctl.gate.set()      # release a paused loop so it can observe the abort

    def _complete(self, session: ScanSession) -> None:
        self._meter.stop()
        session.state = ScanState.COMPLETED
        scanned, active = session.counters()
        log.info(f"[✓] Scan completed: {active} active hosts / {scanned} scanned")
        self._emit(LifecycleEvent(
            EventKind.COMPLETED, ScanState.COMPLETED,
            f"Scan completed - {active} active hosts found",
        ))

    def _emit(self, event: ScanEvent) -> None:
        try:
            self._sink(event)
        except Exception:
            log.exception(f"Event sink failed on {type(event).__name__}")
