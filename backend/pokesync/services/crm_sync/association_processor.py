"""
Association Batch Builder for HubSpot Sync.

Turns link rows whose both ends are synced into typed HubSpot associations.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from pokesync.core.exceptions import TransportError
from pokesync.core.kinds import LINK_DEFINITIONS, Direction, KindPair, LinkDefinition
from pokesync.integrations.hubspot.schema import (
    AssociationInput,
    AssociationTypeDescriptor,
    parse_errors,
)
from pokesync.repositories import AssociablePair, LinkRepository
from pokesync.services.crm_sync.association_type_resolver import (
    AssociationTypeResolver,
    LabelRequest,
)
from pokesync.services.crm_sync.batching import chunk
from pokesync.services.crm_sync.context import SyncContext
from pokesync.services.crm_sync.error_tracker import ErrorTracker
from pokesync.services.crm_sync.object_type_resolver import ObjectTypeResolver
from pokesync.services.sync_status import SyncPhase

logger = logging.getLogger(__name__)


@dataclass
class AssociationBatchResult:
    """Result of sending one direction of one kind pair."""
    kind_pair: str
    direction: str
    from_type: str
    to_type: str
    pairs: int = 0
    sent: int = 0
    failed: int = 0
    failed_chunks: int = 0
    type_id: Optional[int] = None


class AssociationBatchBuilder:
    """
    Builds and sends association batches.

    Features:
    - Only pairs whose both ends carry a remote id
    - Association type resolved (or created) once per direction
    - One batch/create call per chunk, failures contained to the chunk
    """

    def __init__(self, context: SyncContext, error_tracker: ErrorTracker):
        """
        Initialize association batch builder.

        Args:
            context: Shared sync context
            error_tracker: Collects errors for the invocation result
        """
        self.context = context
        self.error_tracker = error_tracker
        self.type_resolver = AssociationTypeResolver(context.client, context.association_types)
        self.object_types = ObjectTypeResolver(
            context.client,
            context.object_types,
            context.settings.hubspot_move_object,
        )

    def label_request_for(self, kind_pair: KindPair, direction: Direction) -> LabelRequest:
        """Desired label and preferred platform type id for one direction."""
        settings = self.context.settings
        definition = LINK_DEFINITIONS[kind_pair]
        if kind_pair is KindPair.CREATURE_AREA:
            label, name = settings.hubspot_area_assoc_label, settings.hubspot_area_assoc_name
            inverse = settings.hubspot_area_assoc_inverse_label
        else:
            label, name = settings.hubspot_assoc_label, settings.hubspot_assoc_name
            inverse = settings.hubspot_assoc_inverse_label

        if direction is Direction.FORWARD:
            return LabelRequest(
                label=label,
                name=name,
                preferred_type_id=definition.forward_type_id,
                inverse_label=inverse,
            )
        # HubSpot stores the inverse label on the reverse direction
        return LabelRequest(
            label=inverse or label,
            name=name,
            preferred_type_id=definition.reverse_type_id,
            inverse_label=label if inverse else None,
        )

    async def object_types_for(
        self,
        definition: LinkDefinition,
        direction: Direction,
    ) -> Tuple[str, str]:
        source_type = await self.object_types.resolve(definition.source_kind)
        target_type = await self.object_types.resolve(definition.target_kind)
        if direction is Direction.FORWARD:
            return source_type, target_type
        return target_type, source_type

    async def build_and_send(
        self,
        kind_pair: KindPair,
        direction: Direction,
        batch_size: Optional[int] = None,
    ) -> AssociationBatchResult:
        """
        Send associations for one kind pair in one direction.

        Args:
            kind_pair: Link table to read
            direction: FORWARD (source -> target) or REVERSE
            batch_size: Associations per request (default HUBSPOT_BATCH_SIZE)

        Returns:
            AssociationBatchResult with counts

        Raises:
            StorageError: If link rows cannot be read
            ResolutionError: If the association type cannot be resolved
        """
        definition = LINK_DEFINITIONS[kind_pair]
        batch_size = batch_size or self.context.settings.hubspot_batch_size
        from_type, to_type = await self.object_types_for(definition, direction)
        result = AssociationBatchResult(
            kind_pair=kind_pair.value,
            direction=direction.value,
            from_type=from_type,
            to_type=to_type,
        )

        repo = LinkRepository(self.context.session_maker, definition)
        pairs = await repo.find_associable(self.context.settings.association_pair_limit)
        result.pairs = len(pairs)
        if not pairs:
            logger.info(f"✅ No synced {kind_pair.value} pairs to associate ({direction.value})")
            return result

        descriptor = await self.type_resolver.resolve(
            from_type, to_type, self.label_request_for(kind_pair, direction)
        )
        result.type_id = descriptor.type_id

        self.context.status.update_phase(
            SyncPhase.ASSOCIATING,
            f"Associating {len(pairs)} {from_type} → {to_type} pairs...",
        )
        chunks = chunk(pairs, batch_size)
        for chunk_num, pair_chunk in enumerate(chunks, start=1):
            logger.info(
                f"    🔄 {from_type} → {to_type} chunk {chunk_num}/{len(chunks)} "
                f"({len(pair_chunk)} associations)..."
            )
            inputs = [
                self._to_input(pair, direction, descriptor).to_payload()
                for pair in pair_chunk
            ]
            try:
                response = await self.context.client.batch_create_associations(
                    from_type, to_type, inputs
                )
            except TransportError as e:
                self.error_tracker.track_batch_error(
                    f"{from_type} -> {to_type}",
                    len(inputs),
                    e,
                    context={"kind_pair": kind_pair.value, "chunk": chunk_num},
                )
                self.context.status.add_error(f"{from_type} -> {to_type} chunk failed: {e}")
                self.context.status.update_associations(0, len(inputs))
                result.failed += len(inputs)
                result.failed_chunks += 1
                continue

            for error in parse_errors(response):
                logger.warning(f"⚠️ {from_type} → {to_type} partial error: {error}")

            result.sent += len(inputs)
            self.context.status.update_associations(len(inputs), 0)

        logger.info(
            f"  ✅ {from_type} → {to_type}: {result.sent}/{result.pairs} associations sent"
        )
        return result

    @staticmethod
    def _to_input(
        pair: AssociablePair,
        direction: Direction,
        descriptor: AssociationTypeDescriptor,
    ) -> AssociationInput:
        if direction is Direction.FORWARD:
            from_id, to_id = pair.source_remote_id, pair.target_remote_id
        else:
            from_id, to_id = pair.target_remote_id, pair.source_remote_id
        return AssociationInput(from_id=str(from_id), to_id=str(to_id), descriptor=descriptor)
