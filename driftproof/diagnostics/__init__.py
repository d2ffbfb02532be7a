"""Page diagnostics: screenshots, debug snapshots, failure reports."""

from __future__ import annotations

from driftproof.diagnostics.snapshot import DebugSnapshot, SnapshotManager, extract_controls, take_screenshot

__all__ = ["DebugSnapshot", "SnapshotManager", "extract_controls", "take_screenshot"]
