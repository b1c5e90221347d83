"""
HubSpot Sync Orchestrator.

Coordinates the HubSpot synchronization workflow.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pokesync.core.kinds import ENTITY_MODELS, Direction, EntityKind, KindPair
from pokesync.repositories import SyncableRepository
from pokesync.services.crm_sync.association_processor import (
    AssociationBatchBuilder,
    AssociationBatchResult,
)
from pokesync.services.crm_sync.context import SyncContext
from pokesync.services.crm_sync.entity_sync_processor import (
    EntitySyncProcessor,
    EntitySyncResult,
)
from pokesync.services.crm_sync.error_tracker import ErrorTracker

logger = logging.getLogger(__name__)

PENDING_SAMPLE_SIZE = 10


@dataclass
class AssociationSyncResult:
    """Result of building associations for one kind pair (both directions)."""
    kind_pair: str
    directions: List[AssociationBatchResult] = field(default_factory=list)
    status: str = "success"
    message: str = ""
    errors: List[str] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(d.sent for d in self.directions)

    @property
    def failed(self) -> int:
        return sum(d.failed for d in self.directions)

    @property
    def is_success(self) -> bool:
        """Check if all associations were sent."""
        return self.status == "success" and len(self.errors) == 0


class SyncOrchestrator:
    """
    Orchestrates HubSpot sync workflow.

    Responsibilities:
    - Run one entity kind or one kind pair per call
    - Track run status on the context
    - Aggregate results & errors
    """

    def __init__(self, context: SyncContext):
        """
        Initialize sync orchestrator.

        Args:
            context: Shared sync context
        """
        self.context = context
        self.error_tracker = ErrorTracker()
        self.entity_processor = EntitySyncProcessor(context, self.error_tracker)
        self.association_builder = AssociationBatchBuilder(context, self.error_tracker)

    async def count_pending(self, kind: EntityKind) -> int:
        """Number of rows of a kind that have no remote id yet."""
        repo = SyncableRepository(self.context.session_maker, ENTITY_MODELS[kind])
        return await repo.count_pending()

    async def sample_pending(self, kind: EntityKind, size: int = PENDING_SAMPLE_SIZE) -> List[Any]:
        """First pending rows of a kind, oldest first."""
        repo = SyncableRepository(self.context.session_maker, ENTITY_MODELS[kind])
        return await repo.select_pending(size)

    async def sync_pending(
        self,
        kind: EntityKind,
        limit: Any = None,
        run_cap: Optional[int] = None,
    ) -> EntitySyncResult:
        """
        Upload pending rows of one kind and persist their remote ids.

        Workflow:
        1. Select pending rows (oldest first) and apply the run cap
        2. Resolve the HubSpot object type
        3. Create records chunk by chunk
        4. Correlate by key and save remote ids
        5. Return results with error tracking

        Args:
            kind: Entity kind to sync
            limit: Pending selector limit
            run_cap: Maximum rows for this run

        Returns:
            EntitySyncResult with statistics and errors

        Raises:
            StorageError: If pending rows cannot be read
            ResolutionError: If the HubSpot object type cannot be resolved
        """
        status = self.context.status
        logger.info(f"🔄 HubSpot Sync: Starting {kind.value} upload")
        status.start_sync(f"{kind.value} sync")
        self.error_tracker.clear()

        try:
            result = await self.entity_processor.sync_kind(kind, limit=limit, run_cap=run_cap)
        except Exception as e:
            logger.error(f"❌ {kind.value} sync failed: {e}", exc_info=True)
            status.add_error(str(e))
            status.complete_sync(success=False)
            raise

        result.errors = self.error_tracker.get_summary().get_error_messages(limit=15)
        if result.failed_chunks or result.errors:
            result.status = "partial_success"
            result.message = (
                f"Partial sync completed: {result.synced} of {result.selected} "
                f"{kind.value} rows synced, {result.failed_chunks} chunks failed, "
                f"{result.still_pending} still pending"
            )
        else:
            result.message = (
                f"HubSpot sync completed successfully: {result.synced} {kind.value} rows synced"
            )

        logger.info(f"✅ {result.message}")
        status.complete_sync(success=True)
        return result

    async def build_associations(self, kind_pair: KindPair) -> AssociationSyncResult:
        """
        Create associations for a kind pair, forward then reverse.

        Args:
            kind_pair: Link table to turn into associations

        Returns:
            AssociationSyncResult with one entry per direction

        Raises:
            StorageError: If link rows cannot be read
            ResolutionError: If an association type cannot be resolved
        """
        status = self.context.status
        logger.info(f"🔗 HubSpot Sync: Building {kind_pair.value} associations")
        status.start_sync(f"{kind_pair.value} associations")
        self.error_tracker.clear()
        result = AssociationSyncResult(kind_pair=kind_pair.value)

        try:
            for direction in (Direction.FORWARD, Direction.REVERSE):
                result.directions.append(
                    await self.association_builder.build_and_send(kind_pair, direction)
                )
        except Exception as e:
            logger.error(f"❌ {kind_pair.value} associations failed: {e}", exc_info=True)
            status.add_error(str(e))
            status.complete_sync(success=False)
            raise

        result.errors = self.error_tracker.get_summary().get_error_messages(limit=15)
        if result.failed or result.errors:
            result.status = "partial_success"
            result.message = (
                f"Partial association run: {result.sent} sent, {result.failed} failed"
            )
        else:
            result.message = f"Associations created successfully: {result.sent} sent"

        logger.info(f"✅ {result.message}")
        status.complete_sync(success=True)
        return result
