"""
Real-time Sync Status Tracking.
Allows monitoring of HubSpot sync progress via API.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Keep only the most recent errors in the status payload
MAX_STATUS_ERRORS = 50


class SyncPhase(str, Enum):
    """Sync phases."""
    IDLE = "idle"
    SELECTING = "selecting"
    UPLOADING = "uploading"
    ASSOCIATING = "associating"
    COMPLETED = "completed"
    ERROR = "error"


def _empty_progress() -> Dict[str, Any]:
    return {
        "current_kind": None,
        "pending": 0,
        "selected": 0,
        "synced": 0,
        "unmatched": 0,
        "failed_chunks": 0,
        "associations_sent": 0,
        "associations_failed": 0,
    }


class SyncStatusTracker:
    """
    Tracks the status of the current (or last) sync run.

    One tracker is owned by each SyncContext.
    """

    def __init__(self):
        self._initialize()

    def _initialize(self):
        """Initialize status tracking."""
        self.status: Dict[str, Any] = {
            "phase": SyncPhase.IDLE,
            "operation": None,
            "started_at": None,
            "current_step": "Waiting to start...",
            "progress": _empty_progress(),
            "errors": [],
            "completed_at": None,
            "duration_seconds": 0.0,
        }

    def start_sync(self, operation: str):
        """Mark a run as started."""
        self._initialize()
        self.status["phase"] = SyncPhase.SELECTING
        self.status["operation"] = operation
        self.status["started_at"] = datetime.now(timezone.utc).isoformat()
        self.status["current_step"] = f"Starting {operation}..."
        logger.info(f"🚀 SYNC STARTED - {operation}")

    def update_phase(self, phase: SyncPhase, step: str):
        """Update current phase."""
        self.status["phase"] = phase
        self.status["current_step"] = step
        logger.info(f"📍 PHASE: {phase.value.upper()} - {step}")

    def update_selection(self, kind: str, pending: int, selected: int):
        """Record how many rows were pending and selected for this run."""
        progress = self.status["progress"]
        progress["current_kind"] = kind
        progress["pending"] = pending
        progress["selected"] = selected
        self.status["current_step"] = f"Selected {selected} of {pending} pending {kind} rows"

    def update_chunk(self, kind: str, synced: int, unmatched: int):
        """Add the outcome of one uploaded chunk."""
        progress = self.status["progress"]
        progress["synced"] += synced
        progress["unmatched"] += unmatched
        self.status["current_step"] = (
            f"Uploading {kind}... ({progress['synced']} synced so far)"
        )

    def record_failed_chunk(self):
        self.status["progress"]["failed_chunks"] += 1

    def update_associations(self, sent: int, failed: int):
        """Add the outcome of one association chunk."""
        progress = self.status["progress"]
        progress["associations_sent"] += sent
        progress["associations_failed"] += failed

    def add_error(self, error: str):
        """Add error to tracking."""
        self.status["errors"].append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": error,
        })
        del self.status["errors"][:-MAX_STATUS_ERRORS]

    def complete_sync(self, success: bool = True):
        """Mark run as completed."""
        self.status["phase"] = SyncPhase.COMPLETED if success else SyncPhase.ERROR
        self.status["completed_at"] = datetime.now(timezone.utc).isoformat()

        # Calculate duration
        if self.status["started_at"]:
            start = datetime.fromisoformat(self.status["started_at"])
            end = datetime.fromisoformat(self.status["completed_at"])
            self.status["duration_seconds"] = (end - start).total_seconds()

        if success:
            self.status["current_step"] = "✅ Sync completed"
            logger.info(f"✅ SYNC COMPLETED - Duration: {self.status['duration_seconds']:.1f}s")
        else:
            self.status["current_step"] = "❌ Sync failed"
            logger.error("❌ SYNC FAILED")

    def get_status(self) -> Dict[str, Any]:
        """Get current status."""
        status = dict(self.status)
        status["progress"] = dict(self.status["progress"])
        status["errors"] = list(self.status["errors"])
        return status

    def is_running(self) -> bool:
        """Check if a run is currently in progress."""
        return self.status["phase"] not in [SyncPhase.IDLE, SyncPhase.COMPLETED, SyncPhase.ERROR]