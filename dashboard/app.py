"""
dashboard/app.py
Flask web dashboard -- JSON control surface for one background scan.

Security properties:
  - debug=False enforced programmatically (cannot be overridden by env)
  - SECRET_KEY auto-generated if not set
  - Basic-auth middleware with Werkzeug password hashes
  - Stacktraces never exposed to client

Layering: dashboard -> core (BackgroundScanner), database.repository,
reporting, utils.
"""

from __future__ import annotations

import hmac
import secrets
from typing import Optional

from flask import Flask, Response, abort, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.security import check_password_hash, generate_password_hash

from core.events import event_to_dict
from core.models import ScanConfig, ScanValidationError
from core.runner import BackgroundScanner
from core.scanner_engine import validate_config
from database.repository import Repository
from reporting.report_generator import FORMATS, ReportGenerator
from utils.constants import PORT_PRESETS, StatusFilter
from utils.logger import get_logger

log = get_logger("netsweep.dashboard")

_HASH_PREFIXES = ("pbkdf2:", "scrypt:")


def hash_password(plain: str) -> str:
    """Hash a plaintext password for storage in config.yaml."""
    return generate_password_hash(plain)


def verify_password(plain: str, stored: str) -> bool:
    """
    Verify plain against a stored Werkzeug hash.
    A stored value without a known hash prefix is treated as plaintext
    (dev only) and compared in constant time.
    """
    if not stored:
        return False
    if stored.startswith(_HASH_PREFIXES):
        try:
            return check_password_hash(stored, plain)
        except ValueError:
            return False
    return hmac.compare_digest(stored.encode(), plain.encode())


# -- Factory ------------------------------------------------------------------

def create_app(
    cfg: dict,
    runner: BackgroundScanner,
    repo: Optional[Repository] = None,
    reporter: Optional[ReportGenerator] = None,
) -> Flask:
    """
    Application factory.

    cfg keys:
      secret_key     str  -- random when missing or the placeholder
      enable_auth    bool -- enable HTTP Basic-Auth (default False)
      auth_username  str
      auth_password  str  -- Werkzeug hash OR plain (plain triggers warning)
      testing        bool -- Flask TESTING flag, for the test client
    """
    app = Flask(__name__)

    secret = cfg.get("secret_key", "")
    if not secret or secret == "CHANGE_THIS_IN_PRODUCTION":
        secret = secrets.token_hex(32)

    app.config["SECRET_KEY"]           = secret
    app.config["DEBUG"]                = False   # HARD -- no env override
    app.config["TESTING"]              = bool(cfg.get("testing", False))
    app.config["PROPAGATE_EXCEPTIONS"] = False

    enable_auth = bool(cfg.get("enable_auth", False))
    auth_user   = cfg.get("auth_username", "netsweep")
    stored_pass = cfg.get("auth_password", "")

    if enable_auth and stored_pass and not stored_pass.startswith(_HASH_PREFIXES):
        log.warning(
            "auth_password is stored as plaintext -- consider storing a "
            "hash instead (run: netsweep --hash-password <password>)."
        )

    @app.before_request
    def _require_auth():
        if not enable_auth or request.path == "/health":
            return None
        auth = request.authorization
        if not auth or auth.username is None or auth.password is None:
            return _auth_challenge()
        ok_user = hmac.compare_digest(auth.username.encode(), auth_user.encode())
        ok_pass = verify_password(auth.password, stored_pass)
        if not (ok_user and ok_pass):
            return _auth_challenge()
        return None

    # Error handlers (no stacktrace leakage)
    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unhandled(e):
        log.exception("Unhandled exception")
        return jsonify({"error": "internal server error"}), 500

    # Scan control
    @app.route("/api/scan")
    def api_scan_status():
        return jsonify(runner.status())

    @app.route("/api/scan/start", methods=["POST"])
    def api_scan_start():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            abort(400, description="expected a JSON object")
        config = ScanConfig.from_dict(body)
        try:
            validate_config(config)
        except ScanValidationError as exc:
            abort(400, description=str(exc))
        if not runner.start(config):
            abort(409, description=f"scan is {runner.state.value}")
        return jsonify(runner.status()), 202

    @app.route("/api/scan/pause", methods=["POST"])
    def api_scan_pause():
        return jsonify({"changed": runner.pause(), "state": runner.state.value})

    @app.route("/api/scan/resume", methods=["POST"])
    def api_scan_resume():
        return jsonify({"changed": runner.resume(), "state": runner.state.value})

    @app.route("/api/scan/abort", methods=["POST"])
    def api_scan_abort():
        return jsonify({"changed": runner.abort(), "state": runner.state.value})

    @app.route("/api/events")
    def api_events():
        since = _int_arg("since", 0, minimum=0)
        events = [
            dict(event_to_dict(ev), seq=seq) for seq, ev in runner.events.since(since)
        ]
        return jsonify({"last_seq": runner.events.last_seq, "events": events})

    @app.route("/api/results")
    def api_results():
        search = request.args.get("search", "")
        status = request.args.get("status", StatusFilter.ALL.value)
        try:
            records = runner.filter(search, status)
        except ValueError:
            abort(400, description=f"unknown status filter: {status!r}")
        return jsonify([r.to_dict() for r in records])

    # Export
    @app.route("/api/export")
    def api_export_snapshot():
        return jsonify(runner.export_snapshot())

    @app.route("/api/export", methods=["POST"])
    def api_export_write():
        body = request.get_json(silent=True) or {}
        fmt = str(body.get("format", "json")).lower()
        if fmt not in FORMATS:
            abort(400, description=f"unknown format: {fmt!r}")
        snapshot = runner.export_snapshot()
        result: dict = {"scan_timestamp": snapshot["scan_timestamp"]}
        if reporter is not None:
            path = reporter.generate(snapshot, fmt)
            if path is None:
                abort(500, description="report could not be written")
            result["path"] = path
        if body.get("save") and repo is not None:
            result["export_id"] = repo.save_snapshot(snapshot, label=body.get("label"))
        return jsonify(result), 201

    # History
    @app.route("/api/history")
    def api_history():
        if repo is None:
            abort(404, description="history store disabled")
        limit = min(_int_arg("limit", 50, minimum=1), 200)
        return jsonify({"stats": repo.stats(), "exports": repo.list_exports(limit)})

    @app.route("/api/history/<int:export_id>")
    def api_history_detail(export_id: int):
        data = repo.get_export(export_id) if repo is not None else None
        if data is None:
            abort(404, description=f"export {export_id} not found")
        return jsonify(data)

    @app.route("/api/history/<int:export_id>", methods=["DELETE"])
    def api_history_delete(export_id: int):
        if repo is None or not repo.delete_export(export_id):
            abort(404, description=f"export {export_id} not found")
        return jsonify({"deleted": True})

    @app.route("/api/presets")
    def api_presets():
        return jsonify(PORT_PRESETS)

    @app.route("/health")
    def health():
        return jsonify({
            "status": "ok",
            "auth":   enable_auth,
            "scan":   runner.state.value,
        })

    return app


# -- Helpers ------------------------------------------------------------------

def _int_arg(name: str, default: int, minimum: int = 0) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        abort(400, description=f"{name} must be an integer")
    if value < minimum:
        abort(400, description=f"{name} must be >= {minimum}")
    return value


def _auth_challenge() -> Response:
    return Response(
        "Authentication required",
        401,
        {"WWW-Authenticate": 'Basic realm="NetSweep"'},
    )


# -- Server runner ------------------------------------------------------------

def run_dashboard(
    cfg: dict,
    runner: BackgroundScanner,
    repo: Optional[Repository] = None,
    reporter: Optional[ReportGenerator] = None,
) -> None:
    app = create_app(cfg, runner, repo, reporter)
    host = cfg.get("host", "127.0.0.1")
    port = cfg.get("port", 5000)
    log.info(f"[*] Dashboard at http://{host}:{port}")
    log.info(f"[*] Auth: {'ON' if cfg.get('enable_auth') else 'OFF'}")
    app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)
