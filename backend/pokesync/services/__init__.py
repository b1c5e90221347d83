# Business logic services
from .sync_status import SyncPhase, SyncStatusTracker

__all__ = [
    "SyncPhase",
    "SyncStatusTracker",
]
