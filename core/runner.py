"""
core/runner.py
Run a ScanEngine on a private event loop in a background thread.

Synchronous callers (the Flask dashboard, scripts) get a thread-safe handle:
every lifecycle call is marshalled onto the engine's loop, and events are
buffered in an EventLog for polling.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, List, Optional

from core.events import EventLog, EventSink, fan_out
from core.models import HostRecord, ScanConfig
from core.os_detect import OSDetector
from core.probe import Prober
from core.scanner_engine import ScanEngine
from utils.constants import ScanState
from utils.logger import get_logger

log = get_logger("netsweep.runner")


class BackgroundScanner:
    """
    Thread-safe facade over one ScanEngine.

    Usage:
        runner = BackgroundScanner(prober=SimulatedProber())
        runner.start(ScanConfig("10.0.0.1-20", "22,80"))
        runner.pause(); runner.resume()
        runner.wait(timeout=30)
        runner.close()
    """

    def __init__(
        self,
        prober: Optional[Prober] = None,
        os_detector: Optional[OSDetector] = None,
        sink: Optional[EventSink] = None,
        call_timeout_s: float = 5.0,
        **engine_kwargs: Any,
    ):
        self.events = EventLog()
        self.engine = ScanEngine(
            prober=prober,
            os_detector=os_detector,
            sink=fan_out(self.events, sink),
            **engine_kwargs,
        )
        self._call_timeout = call_timeout_s
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._serve, name="netsweep-engine", daemon=True,
        )
        self._closed = False
        self._thread.start()

    def _serve(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a synchronous engine method on the engine loop and return its result."""
        if self._closed:
            raise RuntimeError("BackgroundScanner is closed")

        async def _invoke():
            return fn(*args)

        fut = asyncio.run_coroutine_threadsafe(_invoke(), self._loop)
        return fut.result(self._call_timeout)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, config: ScanConfig) -> bool:
        """True when a new scan was launched."""
        return self._call(self.engine.start, config) is not None

    def pause(self) -> bool:
        return self._call(self.engine.pause)

    def resume(self) -> bool:
        return self._call(self.engine.resume)

    def toggle_pause(self) -> bool:
        return self._call(self.engine.toggle_pause)

    def abort(self) -> bool:
        return self._call(self.engine.abort)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current run is terminal. False on timeout."""
        fut = asyncio.run_coroutine_threadsafe(self.engine.wait(), self._loop)
        try:
            fut.result(timeout)
        except concurrent.futures.TimeoutError:
            fut.cancel()
            return False
        return True

    # ── Read-only views (session objects are themselves thread-safe) ─────────

    @property
    def state(self) -> ScanState:
        return self.engine.state

    def status(self) -> dict:
        return self.engine.status()

    def filter(self, search_term: str = "", status_filter: str = "all") -> List[HostRecord]:
        return self.engine.filter(search_term, status_filter)

    def export_snapshot(self) -> dict:
        return self.engine.export_snapshot()

    # ── Shutdown ──────────────────────────────────────────────────────────────

    def close(self, timeout: float = 5.0) -> None:
        if self._closed:
            return
        if self.engine.is_live:
            self.abort()
            self.wait(timeout)
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self._loop.close()
        log.debug("Background scanner stopped")

    def __enter__(self) -> "BackgroundScanner":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
