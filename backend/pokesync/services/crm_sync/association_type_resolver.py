"""
Association Type Resolver.

Finds (or creates) the association label used for one direction between two
HubSpot object types. HubSpot is the only source of truth for type ids, so
results live in the context's in-memory cache and are rediscovered after a
restart.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pokesync.core.exceptions import ResolutionError, TransportError
from pokesync.integrations.hubspot.client import HubSpotClient
from pokesync.integrations.hubspot.schema import (
    AssociationCategory,
    AssociationTypeDescriptor,
)

logger = logging.getLogger(__name__)

DirectionKey = Tuple[str, str]


class ResolutionState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class AssociationTypeEntry:
    """Cache entry for one (from_type, to_type) direction."""
    state: ResolutionState = ResolutionState.UNRESOLVED
    descriptor: Optional[AssociationTypeDescriptor] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class LabelRequest:
    """
    What to look for (and create if missing) for one direction.

    Attributes:
        label: Desired label, matched case-insensitively
        name: Internal name used when creating the label
        preferred_type_id: Platform-defined type id to pick when no label matches
        inverse_label: Optional label for the opposite direction on creation
    """
    label: str
    name: str
    preferred_type_id: Optional[int] = None
    inverse_label: Optional[str] = None


class AssociationTypeResolver:
    """
    Resolves association type descriptors per direction.

    States per direction: UNRESOLVED -> RESOLVING -> RESOLVED (cached) or
    FAILED. A FAILED direction is attempted again on the next call.
    """

    def __init__(
        self,
        client: HubSpotClient,
        cache: Dict[DirectionKey, AssociationTypeEntry],
    ):
        """
        Args:
            client: HubSpot API client
            cache: Context-owned map (from_type, to_type) -> entry
        """
        self.client = client
        self.cache = cache

    def state_of(self, from_type: str, to_type: str) -> ResolutionState:
        entry = self.cache.get((from_type, to_type))
        return entry.state if entry else ResolutionState.UNRESOLVED

    async def resolve(
        self,
        from_type: str,
        to_type: str,
        request: LabelRequest,
    ) -> AssociationTypeDescriptor:
        """
        Return the descriptor for from_type -> to_type.

        Algorithm:
        1. List labels for the direction
        2. Exact case-insensitive match of the desired label wins
        3. Otherwise a HUBSPOT_DEFINED type (the preferred id if present)
        4. Otherwise create a USER_DEFINED label and list again

        Raises:
            ResolutionError: If no usable type exists or HubSpot fails
        """
        key = (from_type, to_type)
        entry = self.cache.get(key)
        if entry and entry.state is ResolutionState.RESOLVED and entry.descriptor:
            return entry.descriptor

        entry = AssociationTypeEntry(state=ResolutionState.RESOLVING)
        self.cache[key] = entry

        try:
            descriptor = await self._resolve_uncached(from_type, to_type, request)
        except (TransportError, ResolutionError) as e:
            entry.state = ResolutionState.FAILED
            entry.error = str(e)
            logger.error(f"❌ Association type {from_type} -> {to_type} unresolved: {e}")
            if isinstance(e, ResolutionError):
                raise
            raise ResolutionError(
                f"HubSpot error resolving association type {from_type} -> {to_type}: {e}"
            ) from e

        entry.descriptor = descriptor
        entry.state = ResolutionState.RESOLVED
        logger.info(
            f"🔗 Association type {from_type} -> {to_type}: "
            f"{descriptor.category.value} {descriptor.type_id} ({descriptor.label})"
        )
        return descriptor

    async def _resolve_uncached(
        self,
        from_type: str,
        to_type: str,
        request: LabelRequest,
    ) -> AssociationTypeDescriptor:
        labels = await self._list(from_type, to_type)
        chosen = self._match_label(labels, request.label) or self._platform_defined(
            labels, request.preferred_type_id
        )
        if chosen:
            return chosen

        logger.info(
            f"➕ Creating association label '{request.label}' for {from_type} -> {to_type}"
        )
        await self.client.create_association_label(
            from_type,
            to_type,
            label=request.label,
            name=request.name,
            inverse_label=request.inverse_label,
        )

        labels = await self._list(from_type, to_type)
        chosen = self._match_label(labels, request.label)
        if chosen is None:
            raise ResolutionError(
                f"Could not resolve typeId of label '{request.label}' "
                f"for {from_type} -> {to_type}"
            )
        return chosen

    async def _list(self, from_type: str, to_type: str) -> List[AssociationTypeDescriptor]:
        raw = await self.client.list_association_labels(from_type, to_type)
        return [self._parse(item) for item in raw if self._is_valid(item)]

    @staticmethod
    def _is_valid(item: Any) -> bool:
        return (
            isinstance(item, dict)
            and item.get("typeId") is not None
            and item.get("category") in {c.value for c in AssociationCategory}
        )

    @staticmethod
    def _parse(item: Dict[str, Any]) -> AssociationTypeDescriptor:
        return AssociationTypeDescriptor.from_label(item)

    @staticmethod
    def _match_label(
        labels: List[AssociationTypeDescriptor],
        desired: str,
    ) -> Optional[AssociationTypeDescriptor]:
        wanted = desired.strip().lower()
        for descriptor in labels:
            if (descriptor.label or "").strip().lower() == wanted:
                return descriptor
        return None

    @staticmethod
    def _platform_defined(
        labels: List[AssociationTypeDescriptor],
        preferred_type_id: Optional[int],
    ) -> Optional[AssociationTypeDescriptor]:
        platform = [d for d in labels if d.category is AssociationCategory.HUBSPOT_DEFINED]
        if not platform:
            return None
        if preferred_type_id is not None:
            for descriptor in platform:
                if descriptor.type_id == preferred_type_id:
                    return descriptor
        return platform[0]
