"""
HubSpot Sync API Endpoints.

Triggers per-kind uploads and association runs, and reports pending counts.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from pokesync.api.dependencies import get_orchestrator, get_sync_context
from pokesync.core.exceptions import ResolutionError, StorageError
from pokesync.core.kinds import EntityKind, KindPair
from pokesync.services.crm_sync import SyncContext, SyncOrchestrator

router = APIRouter(prefix="/hubspot")
logger = logging.getLogger(__name__)

KIND_PATHS = {
    "creatures": EntityKind.CREATURE,
    "moves": EntityKind.MOVE,
    "areas": EntityKind.AREA,
}

PAIR_PATHS = {
    "creature-areas": KindPair.CREATURE_AREA,
    "creature-moves": KindPair.CREATURE_MOVE,
}


class PendingRow(BaseModel):
    id: int
    name: str


class PendingResponse(BaseModel):
    kind: str
    pending: int
    sample: list[PendingRow] = []


class EntitySyncResponse(BaseModel):
    """Response model for an entity sync run."""

    status: str
    kind: str
    pending: int
    selected: int
    synced: int
    skipped: int
    unmatched: int
    still_pending: int
    failed_chunks: int
    degraded_chunks: int
    message: str
    errors: list[str] = []


class AssociationDirectionResponse(BaseModel):
    direction: str
    from_type: str
    to_type: str
    type_id: int | None
    pairs: int
    sent: int
    failed: int
    failed_chunks: int


class AssociationSyncResponse(BaseModel):
    """Response model for an association run."""

    status: str
    kind_pair: str
    sent: int
    failed: int
    directions: list[AssociationDirectionResponse]
    message: str
    errors: list[str] = []


def _kind_from_path(kind: str) -> EntityKind:
    if kind not in KIND_PATHS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown kind '{kind}'. Use one of: {', '.join(KIND_PATHS)}",
        )
    return KIND_PATHS[kind]


def _pair_from_path(kind_pair: str) -> KindPair:
    if kind_pair not in PAIR_PATHS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown kind pair '{kind_pair}'. Use one of: {', '.join(PAIR_PATHS)}",
        )
    return PAIR_PATHS[kind_pair]


def _ensure_idle(context: SyncContext) -> None:
    if context.status.is_running():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A sync run is already in progress",
        )


def _sync_error_to_http(e: Exception) -> HTTPException:
    if isinstance(e, ResolutionError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/{kind}/pending", response_model=PendingResponse)
async def count_pending(
    kind: str,
    orchestrator: Annotated[SyncOrchestrator, Depends(get_orchestrator)],
) -> PendingResponse:
    """Number of rows of a kind that have not been uploaded yet, with the first few."""
    entity_kind = _kind_from_path(kind)
    try:
        pending = await orchestrator.count_pending(entity_kind)
        rows = await orchestrator.sample_pending(entity_kind)
    except StorageError as e:
        raise _sync_error_to_http(e)
    return PendingResponse(
        kind=entity_kind.value,
        pending=pending,
        sample=[PendingRow(id=row.id, name=row.name) for row in rows],
    )


@router.post("/{kind}/sync", response_model=EntitySyncResponse)
async def sync_kind(
    kind: str,
    context: Annotated[SyncContext, Depends(get_sync_context)],
    orchestrator: Annotated[SyncOrchestrator, Depends(get_orchestrator)],
    limit: Annotated[int | None, Query(ge=1)] = None,
    run_cap: Annotated[int | None, Query(ge=0)] = None,
) -> EntitySyncResponse:
    """
    Upload pending rows of one kind to HubSpot.

    Example:
        POST /api/v1/hubspot/moves/sync?run_cap=100
    """
    entity_kind = _kind_from_path(kind)
    _ensure_idle(context)

    try:
        result = await orchestrator.sync_pending(entity_kind, limit=limit, run_cap=run_cap)
    except (ResolutionError, StorageError) as e:
        logger.error(f"❌ HubSpot {entity_kind.value} sync failed: {e}")
        raise _sync_error_to_http(e)

    return EntitySyncResponse(
        status=result.status,
        kind=result.kind,
        pending=result.pending,
        selected=result.selected,
        synced=result.synced,
        skipped=result.skipped,
        unmatched=result.unmatched,
        still_pending=result.still_pending,
        failed_chunks=result.failed_chunks,
        degraded_chunks=result.degraded_chunks,
        message=result.message,
        errors=result.errors,
    )


@router.post("/associations/{kind_pair}", response_model=AssociationSyncResponse)
async def build_associations(
    kind_pair: str,
    context: Annotated[SyncContext, Depends(get_sync_context)],
    orchestrator: Annotated[SyncOrchestrator, Depends(get_orchestrator)],
) -> AssociationSyncResponse:
    """
    Create HubSpot associations for a kind pair in both directions.

    Example:
        POST /api/v1/hubspot/associations/creature-moves
    """
    pair = _pair_from_path(kind_pair)
    _ensure_idle(context)

    try:
        result = await orchestrator.build_associations(pair)
    except (ResolutionError, StorageError) as e:
        logger.error(f"❌ HubSpot {pair.value} associations failed: {e}")
        raise _sync_error_to_http(e)

    return AssociationSyncResponse(
        status=result.status,
        kind_pair=result.kind_pair,
        sent=result.sent,
        failed=result.failed,
        directions=[
            AssociationDirectionResponse(
                direction=d.direction,
                from_type=d.from_type,
                to_type=d.to_type,
                type_id=d.type_id,
                pairs=d.pairs,
                sent=d.sent,
                failed=d.failed,
                failed_chunks=d.failed_chunks,
            )
            for d in result.directions
        ],
        message=result.message,
        errors=result.errors,
    )
