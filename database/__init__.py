"""NetSweep Database — sqlite3 history of exported snapshots"""
from database.repository import Repository

__all__ = ["Repository"]
