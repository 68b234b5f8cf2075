"""NetSweep Reporting — Public API

Writes exported scan snapshots as JSON, HTML, or PDF.

Usage:
    from reporting import ReportGenerator
    gen = ReportGenerator(output_dir="reports")
    path = gen.generate(engine.export_snapshot(), fmt="json")
"""
from reporting.report_generator import ReportGenerator, snapshot_filename, FORMATS

__all__ = [
    "ReportGenerator",
    "snapshot_filename",
    "FORMATS",
]
