"""
reporting/report_generator.py
Export sink: write a scan snapshot to disk as JSON, HTML or PDF.

One file per request, named from the snapshot's own timestamp:
    netsweep_scan_<YYYYmmdd_HHMMSS_ffffff>.<ext>
PDF output uses ReportLab. Works on the snapshot dict only; does not import core.
"""

from __future__ import annotations

import html as _html
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from utils.logger import get_logger

log = get_logger("netsweep.reporting")

FORMATS = ("json", "html", "pdf")

# Shared palette (HTML and PDF)
INK     = "#111827"
MUTED   = "#6b7280"
ACCENT  = "#0e7490"
OK      = "#15803d"
RULE    = "#d1d5db"
BAND    = "#f3f4f6"


def snapshot_filename(snapshot: dict, fmt: str) -> str:
    """Deterministic file name derived from snapshot["scan_timestamp"]."""
    raw = snapshot.get("scan_timestamp")
    try:
        ts = datetime.fromisoformat(raw) if raw else datetime.now(timezone.utc)
    except (TypeError, ValueError):
        ts = datetime.now(timezone.utc)
    return f"netsweep_scan_{ts.strftime('%Y%m%d_%H%M%S_%f')}.{fmt}"


def _port_state(p: dict) -> str:
    if p.get("open"):
        return "open"
    return "filtered" if p.get("filtered") else "closed"


def _open_summary(host: dict) -> str:
    opened = [f"{p['port']}/{p.get('service', '')}" for p in host.get("ports", []) if p.get("open")]
    return ", ".join(opened) or "—"


# ─── Report Generator ────────────────────────────────────────────────────────

class ReportGenerator:
    """
    Writes snapshot files into output_dir (created on demand).
    Layering: consumes the exported snapshot dict only.
    """

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(self, snapshot: dict, fmt: str = "json") -> Optional[str]:
        """
        Write one report for a snapshot.

        Args:
            snapshot: Dict from ScanEngine.export_snapshot() or Repository.get_export()
            fmt: one of FORMATS

        Returns:
            Path of the written file, or None when the file could not be written.

        Raises:
            ValueError: unknown format
        """
        if fmt not in FORMATS:
            raise ValueError(f"Unknown format: {fmt!r}. Choose from: {list(FORMATS)}")

        writer = {"json": self._json, "html": self._html, "pdf": self._pdf}[fmt]
        path = self.output_dir / snapshot_filename(snapshot, fmt)
        try:
            written = writer(snapshot, path)
        except OSError as exc:
            log.error(f"[!] Could not write {fmt} report {path.name}: {exc}")
            return None
        log.info(f"[+] Report written: {written}")
        return written

    # ── JSON ─────────────────────────────────────────────────────────────────

    def _json(self, data: dict, path: Path) -> str:
        path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        return str(path)

    # ── HTML ─────────────────────────────────────────────────────────────────

    def _html(self, data: dict, path: Path) -> str:
        esc = _html.escape
        hosts = data.get("results", [])
        rows: List[str] = []
        for host in hosts:
            active = bool(host.get("active"))
            detail = " ".join(
                f'<span class="pill {_port_state(p)}">{p["port"]} {esc(p.get("service", ""))}</span>'
                for p in host.get("ports", [])
            )
            rows.append(
                f'<tr><td class="addr">{esc(host["address"])}</td>'
                f'<td class="{"up" if active else "down"}">{"Active" if active else "Inactive"}</td>'
                f'<td>{esc(host.get("os_guess") or "—")}</td>'
                f"<td>{detail}</td></tr>"
            )
        if rows:
            body = (
                "<table><thead><tr><th>Address</th><th>Status</th><th>OS guess</th>"
                "<th>Ports</th></tr></thead><tbody>" + "".join(rows) + "</tbody></table>"
            )
        else:
            body = '<p class="empty">No active hosts found in the specified range.</p>'

        stamp = esc(str(data.get("scan_timestamp", "")))
        doc = f"""<!DOCTYPE html>
<html lang="en"><head><meta charset="utf-8">
<title>NetSweep scan {stamp}</title>
<style>
body{{font:14px/1.45 system-ui,sans-serif;color:{INK};margin:2rem auto;max-width:1000px}}
h1{{color:{ACCENT};margin:0}}
.sub{{color:{MUTED};margin:.2rem 0 1.5rem}}
.totals span{{display:inline-block;border:1px solid {RULE};padding:.5rem 1rem;margin-right:.5rem}}
.totals b{{font-size:1.3rem;color:{ACCENT};margin-right:.3rem}}
table{{border-collapse:collapse;width:100%;margin-top:1.5rem}}
th,td{{border-bottom:1px solid {RULE};padding:.4rem .6rem;text-align:left;vertical-align:top}}
thead th{{background:{BAND}}}
td.addr{{font-family:monospace}}
td.up{{color:{OK}}} td.down{{color:{MUTED}}}
.pill{{font-size:.8rem;padding:0 .4rem;border-radius:3px;margin-right:.2rem;white-space:nowrap}}
.pill.open{{background:#dcfce7}} .pill.filtered{{background:#fef9c3}} .pill.closed{{background:{BAND};color:{MUTED}}}
.empty{{color:{MUTED};font-style:italic}}
footer{{margin-top:2rem;color:{MUTED};font-size:.8rem}}
</style></head><body>
<h1>NetSweep Scan Report</h1>
<p class="sub">Snapshot {stamp}</p>
<div class="totals">
<span><b>{data.get('total_hosts', 0)}</b>hosts scanned</span>
<span><b>{data.get('active_hosts', 0)}</b>active</span>
<span><b>{len(hosts)}</b>recorded</span>
</div>
{body}
<footer>NetSweep · for authorized use only</footer>
</body></html>"""
        path.write_text(doc, encoding="utf-8")
        return str(path)

    # ── PDF ──────────────────────────────────────────────────────────────────

    def _pdf(self, data: dict, path: Path) -> str:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.lib.units import mm
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

        sheet = getSampleStyleSheet()
        title, small = sheet["Title"], sheet["BodyText"]
        title.textColor = colors.HexColor(ACCENT)
        esc = _html.escape

        story = [
            Paragraph("NetSweep Scan Report", title),
            Paragraph(f"Snapshot {esc(str(data.get('scan_timestamp', '')))}", small),
            Paragraph(
                f"Hosts scanned: <b>{data.get('total_hosts', 0)}</b> &nbsp; "
                f"Active: <b>{data.get('active_hosts', 0)}</b>", small,
            ),
            Spacer(1, 6 * mm),
        ]

        hosts = data.get("results", [])
        if not hosts:
            story.append(Paragraph("No active hosts found in the specified range.", small))
        else:
            rows = [["Address", "Status", "OS guess", "Open ports"]]
            for host in hosts:
                rows.append([
                    host["address"],
                    "Active" if host.get("active") else "Inactive",
                    host.get("os_guess") or "-",
                    Paragraph(esc(_open_summary(host)).replace("—", "-"), small),
                ])
            table = Table(rows, colWidths=[32 * mm, 20 * mm, 40 * mm, 78 * mm], repeatRows=1)
            table.setStyle(TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(ACCENT)),
                ("TEXTCOLOR",  (0, 0), (-1, 0), colors.white),
                ("FONTNAME",   (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME",   (0, 1), (0, -1), "Courier"),
                ("FONTSIZE",   (0, 0), (-1, -1), 8),
                ("VALIGN",     (0, 0), (-1, -1), "TOP"),
                ("LINEBELOW",  (0, 0), (-1, -1), 0.3, colors.HexColor(RULE)),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor(BAND)]),
            ]))
            story.append(table)

        story += [Spacer(1, 8 * mm), Paragraph("NetSweep · for authorized use only", small)]
        SimpleDocTemplate(str(path), pagesize=A4, title="NetSweep Scan Report",
                          leftMargin=15 * mm, rightMargin=15 * mm).build(story)
        return str(path)
