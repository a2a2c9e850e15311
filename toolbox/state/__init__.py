"""
State persistence for Toolbox.

Stores command records in a single JSON file with atomic writes.
"""

from toolbox.state.store import CommandRecord, ExportResult, Store

__all__ = ["Store", "CommandRecord", "ExportResult"]
