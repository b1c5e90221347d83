"""
Entity Sync Processor for HubSpot Sync.

Uploads pending rows of one entity kind in chunks and stores the HubSpot id
of every record it can correlate back to a local row.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pokesync.core.exceptions import StorageError, TransportError
from pokesync.core.kinds import ENTITY_MODELS, EntityKind
from pokesync.integrations.hubspot.schema import correlation_property_for
from pokesync.repositories import SyncableRepository, TypeRepository
from pokesync.services.crm_sync.batching import partition
from pokesync.services.crm_sync.context import SyncContext
from pokesync.services.crm_sync.correlation import CorrelationResolver
from pokesync.services.crm_sync.error_tracker import ErrorTracker
from pokesync.services.crm_sync.object_type_resolver import ObjectTypeResolver
from pokesync.services.crm_sync.payload_builder import build_create_inputs
from pokesync.services.crm_sync.remote_upsert import RemoteUpsertClient
from pokesync.services.sync_status import SyncPhase

logger = logging.getLogger(__name__)


@dataclass
class EntitySyncResult:
    """Result of one sync run for one kind."""
    kind: str
    pending: int
    selected: int
    synced: int = 0
    skipped: int = 0
    unmatched: int = 0
    still_pending: int = 0
    failed_chunks: int = 0
    degraded_chunks: int = 0
    status: str = "success"
    message: str = ""
    errors: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        """Check if the run was fully successful."""
        return self.status == "success" and len(self.errors) == 0


@dataclass
class _ChunkOutcome:
    synced: int = 0
    skipped: int = 0
    unmatched: int = 0
    still_pending: int = 0
    failed: bool = False
    degraded: bool = False


class EntitySyncProcessor:
    """
    Processes one entity kind end to end.

    Features:
    - Oldest-first pending selection with run cap
    - One batch/create request per chunk, chunks strictly sequential
    - Correlation by key (never by response position)
    - Chunk failures contained to the chunk, row failures to the row
    """

    def __init__(self, context: SyncContext, error_tracker: ErrorTracker):
        """
        Initialize entity sync processor.

        Args:
            context: Shared sync context
            error_tracker: Collects errors for the invocation result
        """
        self.context = context
        self.error_tracker = error_tracker
        self.upsert = RemoteUpsertClient(context.client)
        self.object_types = ObjectTypeResolver(
            context.client,
            context.object_types,
            context.settings.hubspot_move_object,
        )
        self.types = TypeRepository(context.session_maker)

    def repository(self, kind: EntityKind) -> SyncableRepository:
        return SyncableRepository(self.context.session_maker, ENTITY_MODELS[kind])

    def run_cap_for(self, kind: EntityKind) -> Optional[int]:
        """Configured default run cap for a kind (None = uncapped)."""
        settings = self.context.settings
        return {
            EntityKind.CREATURE: settings.hubspot_creature_upload_limit,
            EntityKind.MOVE: settings.hubspot_move_upload_limit,
            EntityKind.AREA: settings.hubspot_area_upload_limit,
        }[kind]

    async def sync_kind(
        self,
        kind: EntityKind,
        limit: Any = None,
        run_cap: Optional[int] = None,
    ) -> EntitySyncResult:
        """
        Sync pending rows of one kind.

        Args:
            kind: Entity kind to sync
            limit: Pending selector limit (default SYNC_PENDING_LIMIT)
            run_cap: Maximum rows for this run (default per-kind config)

        Returns:
            EntitySyncResult with counts

        Raises:
            StorageError: If pending rows cannot be read
            ResolutionError: If the HubSpot object type cannot be resolved
        """
        status = self.context.status
        repo = self.repository(kind)
        if limit is None:
            limit = self.context.settings.sync_pending_limit
        if run_cap is None:
            run_cap = self.run_cap_for(kind)

        # === PHASE 1: Select ===
        status.update_phase(SyncPhase.SELECTING, f"Selecting pending {kind.value} rows...")
        pending = await repo.select_pending(limit)
        if not pending:
            logger.info(f"✅ No pending {kind.value} rows to upload to HubSpot")
            status.update_selection(kind.value, 0, 0)
            return EntitySyncResult(kind=kind.value, pending=0, selected=0)

        chunks = partition(pending, self.context.settings.hubspot_batch_size, run_cap)
        selected = sum(len(c) for c in chunks)
        status.update_selection(kind.value, len(pending), selected)
        result = EntitySyncResult(kind=kind.value, pending=len(pending), selected=selected)

        object_type = await self.object_types.resolve(kind)
        type_names: Dict[int, List[str]] = {}
        if kind is EntityKind.CREATURE:
            type_names = await self.types.type_names_for(
                entity.id for c in chunks for entity in c
            )

        # === PHASE 2: Upload ===
        status.update_phase(
            SyncPhase.UPLOADING,
            f"Uploading {selected} {kind.value} rows to {object_type} in {len(chunks)} chunks...",
        )
        for chunk_num, chunk in enumerate(chunks, start=1):
            logger.info(
                f"    🔄 {kind.value} chunk {chunk_num}/{len(chunks)} ({len(chunk)} rows)..."
            )
            outcome = await self._process_chunk(kind, repo, object_type, chunk, type_names)

            result.synced += outcome.synced
            result.skipped += outcome.skipped
            result.unmatched += outcome.unmatched
            result.still_pending += outcome.still_pending
            if outcome.failed:
                result.failed_chunks += 1
                status.record_failed_chunk()
            if outcome.degraded:
                result.degraded_chunks += 1
            status.update_chunk(kind.value, outcome.synced, outcome.unmatched)

        logger.info(
            f"🎉 {kind.value} sync done: {result.synced}/{result.selected} synced, "
            f"{result.still_pending} still pending, {result.failed_chunks} failed chunks"
        )
        return result

    async def _process_chunk(
        self,
        kind: EntityKind,
        repo: SyncableRepository,
        object_type: str,
        chunk: Sequence[Any],
        type_names: Dict[int, List[str]],
    ) -> _ChunkOutcome:
        """
        Create, correlate and persist one chunk.

        A transport failure aborts only this chunk; its rows stay pending.
        """
        outcome = _ChunkOutcome()
        correlation_property = correlation_property_for(kind)

        inputs = build_create_inputs(kind, chunk, type_names)
        outcome.skipped = len(chunk) - len(inputs)
        if not inputs:
            logger.warning(f"⚠️ {kind.value} chunk has no valid inputs, skipping")
            return outcome

        try:
            created = await self.upsert.create_batch(object_type, inputs, correlation_property)
        except TransportError as e:
            self.error_tracker.track_batch_error(
                f"{kind.value} create",
                len(inputs),
                e,
                context={"first_id": chunk[0].id, "last_id": chunk[-1].id},
            )
            self.context.status.add_error(f"{kind.value} chunk failed: {e}")
            outcome.failed = True
            outcome.still_pending = len(inputs)
            return outcome

        outcome.degraded = created.degraded
        resolver = CorrelationResolver(kind.value)
        correlation = resolver.resolve(chunk, created.remote_records, correlation_property)

        for miss in correlation.misses:
            self.error_tracker.track_correlation_miss(kind.value, miss.remote_id, miss.key)
        outcome.unmatched = len(correlation.unmatched)
        outcome.still_pending = len(correlation.pending)

        for entity, remote_id in correlation.matched:
            try:
                saved = await repo.save_remote_id(entity.id, remote_id)
            except StorageError as e:
                self.error_tracker.track_entity_error(
                    entity.id, kind.value, e, context={"remote_id": remote_id}
                )
                outcome.still_pending += 1
                continue

            if saved:
                outcome.synced += 1
                logger.info(f"🏷️ {kind.value} {entity.id} → {object_type} id={remote_id}")
            else:
                outcome.still_pending += 1

        if not created.partial_errors and not correlation.unmatched:
            logger.info(f"✅ {kind.value} chunk uploaded ({len(inputs)} records)")
        return outcome
