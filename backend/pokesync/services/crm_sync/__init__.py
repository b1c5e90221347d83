"""
HubSpot Sync Services.

Modular services for reconciling local rows with HubSpot records.
"""

from .context import SyncContext, build_sync_context
from .error_tracker import ErrorTracker, ErrorSummary
from .entity_sync_processor import EntitySyncProcessor, EntitySyncResult
from .association_processor import AssociationBatchBuilder, AssociationBatchResult
from .sync_orchestrator import AssociationSyncResult, SyncOrchestrator

__all__ = [
    "SyncContext",
    "build_sync_context",
    "ErrorTracker",
    "ErrorSummary",
    "EntitySyncProcessor",
    "EntitySyncResult",
    "AssociationBatchBuilder",
    "AssociationBatchResult",
    "AssociationSyncResult",
    "SyncOrchestrator",
]
