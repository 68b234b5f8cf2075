"""NetSweep Dashboard — Public API

Flask JSON API for driving a background scan and browsing saved exports.

Usage:
    from dashboard.app import create_app, run_dashboard
    from dashboard.app import hash_password, verify_password
"""
from dashboard.app import create_app, run_dashboard, hash_password, verify_password

__all__ = [
    "create_app",
    "run_dashboard",
    "hash_password",
    "verify_password",
]
