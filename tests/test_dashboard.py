"""
tests/test_dashboard.py
Flask test-client tests for the dashboard JSON API.
Run: pytest tests/test_dashboard.py -v
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import base64
import time

import pytest
from core.probe import SimulatedProber
from core.runner import BackgroundScanner
from dashboard.app import create_app, hash_password, verify_password
from database.repository import Repository
from reporting.report_generator import ReportGenerator


@pytest.fixture
def runner():
    r = BackgroundScanner(
        prober=SimulatedProber(seed=4, time_scale=0),
        inclusion_noise=1.0,
        pacing=lambda speed: 0,
    )
    yield r
    r.close()


@pytest.fixture
def repo(tmp_path):
    return Repository(str(tmp_path / "dash.db"))


@pytest.fixture
def client(runner, repo, tmp_path):
    app = create_app({"testing": True}, runner, repo, ReportGenerator(str(tmp_path / "out")))
    return app.test_client()


def _start(client, **body):
    payload = {"rangeSpec": "10.0.0.1-4", "portsSpec": "22,80", **body}
    return client.post("/api/scan/start", json=payload)


def _finish(runner):
    assert runner.wait(timeout=5)


class TestScanControl:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.get_json()["status"] == "ok"

    def test_idle_status(self, client):
        assert client.get("/api/scan").get_json()["state"] == "idle"

    def test_start_and_complete(self, client, runner):
        r = _start(client)
        assert r.status_code == 202
        _finish(runner)
        data = client.get("/api/scan").get_json()
        assert data["state"] == "completed"
        assert data["scanned_count"] == 4

    def test_invalid_range_is_400(self, client, runner):
        r = _start(client, rangeSpec="10.0.0.1")
        assert r.status_code == 400
        assert "Invalid IP range format" in r.get_json()["error"]
        assert runner.state.value == "idle"

    def test_non_json_body_is_400(self, client):
        r = client.post("/api/scan/start", data="nope", content_type="text/plain")
        assert r.status_code == 400

    def test_start_while_running_is_409(self, client):
        slow = BackgroundScanner(prober=SimulatedProber(time_scale=0), pacing=lambda s: 0.2)
        try:
            app = create_app({"testing": True}, slow)
            c = app.test_client()
            assert _start(c, rangeSpec="10.0.0.1-50").status_code == 202
            assert _start(c).status_code == 409
            assert c.post("/api/scan/pause").get_json() == {"changed": True, "state": "paused"}
            assert c.post("/api/scan/pause").get_json()["changed"] is False
            assert c.post("/api/scan/resume").get_json()["state"] == "running"
            assert c.post("/api/scan/abort").get_json() == {"changed": True, "state": "aborted"}
        finally:
            slow.close()

    def test_presets(self, client):
        assert "web" in client.get("/api/presets").get_json()


class TestEventsAndResults:

    def test_events_since(self, client, runner):
        _start(client)
        _finish(runner)
        body = client.get("/api/events").get_json()
        kinds = [e["kind"] for e in body["events"]]
        assert kinds[0] == "started" and kinds[-1] == "completed"
        assert kinds.count("host") == 4

        later = client.get(f"/api/events?since={body['last_seq']}").get_json()
        assert later["events"] == []

    def test_bad_since_is_400(self, client):
        assert client.get("/api/events?since=abc").status_code == 400
        assert client.get("/api/events?since=-1").status_code == 400

    def test_results_filters(self, client, runner):
        _start(client)
        _finish(runner)
        assert len(client.get("/api/results").get_json()) == 4
        only = client.get("/api/results?search=10.0.0.3").get_json()
        assert [h["address"] for h in only] == ["10.0.0.3"]
        active = client.get("/api/results?status=active").get_json()
        assert all(h["active"] for h in active)

    def test_bad_status_is_400(self, client):
        assert client.get("/api/results?status=sleeping").status_code == 400


class TestExportAndHistory:

    def test_export_snapshot_get(self, client, runner):
        _start(client)
        _finish(runner)
        snap = client.get("/api/export").get_json()
        assert snap["total_hosts"] == 4
        assert len(snap["results"]) == 4

    def test_export_write_and_save(self, client, runner):
        _start(client)
        _finish(runner)
        r = client.post("/api/export", json={"format": "json", "save": True, "label": "lab"})
        assert r.status_code == 201
        body = r.get_json()
        assert os.path.exists(body["path"])
        assert os.path.basename(body["path"]).startswith("netsweep_scan_")

        history = client.get("/api/history").get_json()
        assert history["stats"]["total_exports"] == 1
        eid = history["exports"][0]["id"]
        assert eid == body["export_id"]

        detail = client.get(f"/api/history/{eid}").get_json()
        assert detail["label"] == "lab"
        assert len(detail["results"]) == 4

        assert client.delete(f"/api/history/{eid}").get_json() == {"deleted": True}
        assert client.get(f"/api/history/{eid}").status_code == 404

    def test_unknown_export_format_is_400(self, client):
        assert client.post("/api/export", json={"format": "docx"}).status_code == 400

    def test_unknown_history_id_is_404(self, client):
        assert client.get("/api/history/999").status_code == 404
        assert client.delete("/api/history/999").status_code == 404

    def test_unknown_route_is_json_404(self, client):
        r = client.get("/nope")
        assert r.status_code == 404
        assert "error" in r.get_json()


class TestAuth:

    def _client(self, runner, password):
        cfg = {"testing": True, "enable_auth": True,
               "auth_username": "ops", "auth_password": password}
        return create_app(cfg, runner).test_client()

    @staticmethod
    def _basic(user, pw):
        token = base64.b64encode(f"{user}:{pw}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    def test_hash_roundtrip(self):
        h = hash_password("s3cret")
        assert h != "s3cret"
        assert verify_password("s3cret", h)
        assert not verify_password("wrong", h)

    def test_plaintext_fallback(self):
        assert verify_password("dev", "dev")
        assert not verify_password("dev", "")

    def test_challenge_without_credentials(self, runner):
        c = self._client(runner, hash_password("pw"))
        r = c.get("/api/scan")
        assert r.status_code == 401
        assert "Basic" in r.headers["WWW-Authenticate"]

    def test_health_is_open(self, runner):
        c = self._client(runner, hash_password("pw"))
        assert c.get("/health").status_code == 200

    def test_valid_credentials(self, runner):
        c = self._client(runner, hash_password("pw"))
        assert c.get("/api/scan", headers=self._basic("ops", "pw")).status_code == 200
        assert c.get("/api/scan", headers=self._basic("ops", "nope")).status_code == 401
        assert c.get("/api/scan", headers=self._basic("root", "pw")).status_code == 401


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
