"""
tests/test_probe.py
Unit tests for probe implementations and OS guessing.
Run: pytest tests/test_probe.py -v
"""

import sys
import os
import asyncio
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import socket

import pytest
from core.models import ProbeOutcome
from core.os_detect import PortHintOSDetector, SimulatedOSDetector
from core.probe import SimulatedProber, TcpConnectProber, make_prober
from utils.constants import OS_CANDIDATES, PortState, UNKNOWN_OS


def _free_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


# ─── TCP connect ──────────────────────────────────────────────────────────────

class TestTcpConnectProber:

    @pytest.mark.asyncio
    async def test_listening_port_is_open(self):
        async def _handle(reader, writer):
            writer.close()

        server = await asyncio.start_server(_handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            outcome = await TcpConnectProber(timeout_s=2.0).probe("127.0.0.1", port)
        finally:
            server.close()
            await server.wait_closed()
        assert outcome.open is True
        assert outcome.state is PortState.OPEN

    @pytest.mark.asyncio
    async def test_refused_port_is_closed(self):
        outcome = await TcpConnectProber(timeout_s=2.0).probe("127.0.0.1", _free_port())
        assert outcome.open is False
        assert outcome.filtered is False
        assert outcome.state is PortState.CLOSED

    @pytest.mark.asyncio
    async def test_timeout_is_filtered(self, monkeypatch):
        async def _hang(*args, **kwargs):
            await asyncio.sleep(10)

        monkeypatch.setattr(asyncio, "open_connection", _hang)
        outcome = await TcpConnectProber(timeout_s=0.05).probe("192.0.2.1", 80)
        assert outcome.filtered is True
        assert outcome.open is False

    @pytest.mark.asyncio
    async def test_unreachable_is_filtered(self, monkeypatch):
        async def _unreachable(*args, **kwargs):
            raise OSError("No route to host")

        monkeypatch.setattr(asyncio, "open_connection", _unreachable)
        outcome = await TcpConnectProber().probe("192.0.2.1", 22)
        assert outcome.state is PortState.FILTERED

    def test_aggressive_timeout_is_shorter(self):
        p = TcpConnectProber()
        assert p.timeout_s(True) < p.timeout_s(False)

    def test_service_name_attached(self):
        assert ProbeOutcome.for_port(22, open=True).service == "SSH"
        assert ProbeOutcome.for_port(31337, open=True).service == "Unknown"


# ─── Simulated ────────────────────────────────────────────────────────────────

class TestSimulatedProber:

    @pytest.mark.asyncio
    async def test_same_seed_same_outcomes(self):
        a = SimulatedProber(seed=7, time_scale=0)
        b = SimulatedProber(seed=7, time_scale=0)
        ra = [await a.probe("10.0.0.1", p) for p in range(1, 50)]
        rb = [await b.probe("10.0.0.1", p) for p in range(1, 50)]
        assert ra == rb

    @pytest.mark.asyncio
    async def test_open_rate_roughly_calibrated(self):
        p = SimulatedProber(seed=1, time_scale=0)
        outcomes = [await p.probe("10.0.0.1", 80) for _ in range(2000)]
        rate = sum(o.open for o in outcomes) / len(outcomes)
        assert 0.10 < rate < 0.20

    @pytest.mark.asyncio
    async def test_aggressive_opens_more(self):
        normal = SimulatedProber(seed=3, time_scale=0)
        aggr = SimulatedProber(seed=3, time_scale=0)
        n = sum([(await normal.probe("h", 1)).open for _ in range(2000)])
        a = sum([(await aggr.probe("h", 1, aggressive=True)).open for _ in range(2000)])
        assert a > n


class TestMakeProber:

    def test_kinds(self):
        assert isinstance(make_prober("tcp"), TcpConnectProber)
        assert isinstance(make_prober("simulated"), SimulatedProber)
        assert isinstance(make_prober("SIM", seed=1), SimulatedProber)

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown prober"):
            make_prober("icmp")


# ─── OS guessing ──────────────────────────────────────────────────────────────

def _outcomes(*open_ports, closed=(80,)):
    return [ProbeOutcome.for_port(p, open=True) for p in open_ports] + \
           [ProbeOutcome.for_port(p, open=False) for p in closed]


class TestPortHintOSDetector:

    def setup_method(self):
        self.det = PortHintOSDetector()

    def test_rdp_means_windows(self):
        assert self.det.guess("h", _outcomes(3389)) == "Windows 10"

    def test_highest_confidence_wins(self):
        # SSH alone says Linux, but RDP is a much stronger signal
        assert self.det.guess("h", _outcomes(22, 3389)) == "Windows 10"

    def test_afp_means_macos(self):
        assert self.det.guess("h", _outcomes(548, 22)) == "macOS"

    def test_nothing_hinted(self):
        assert self.det.guess("h", _outcomes(8080)) == UNKNOWN_OS

    def test_closed_ports_ignored(self):
        assert self.det.guess("h", _outcomes(closed=(3389, 445))) == UNKNOWN_OS


class TestSimulatedOSDetector:

    def test_label_from_candidates(self):
        det = SimulatedOSDetector(seed=5)
        for _ in range(50):
            assert det.guess("h", []) in OS_CANDIDATES


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short", "-x"])
