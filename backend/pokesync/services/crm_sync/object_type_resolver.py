"""
Remote object type resolution.

Creatures and areas map to HubSpot standard objects. Moves live in a custom
object whose type id differs per portal, so it is taken from configuration
or discovered through the schemas endpoint.
"""

import logging
import re
from typing import Dict, Optional

from pokesync.core.exceptions import ResolutionError, TransportError
from pokesync.core.kinds import EntityKind
from pokesync.integrations.hubspot.client import HubSpotClient
from pokesync.integrations.hubspot.schema import COMPANIES_OBJECT, CONTACTS_OBJECT

logger = logging.getLogger(__name__)

MOVE_OBJECT_NAME = "move"

# "2-1234567" (objectTypeId) or "p1234567_move" (fullyQualifiedName)
_CUSTOM_OBJECT_PATTERN = re.compile(r"^(2-\d+|p\d+_move)$", re.IGNORECASE)

STANDARD_OBJECT_TYPES = {
    EntityKind.CREATURE: CONTACTS_OBJECT,
    EntityKind.AREA: COMPANIES_OBJECT,
}


class ObjectTypeResolver:
    """Maps entity kinds to HubSpot object types, caching discoveries."""

    def __init__(
        self,
        client: HubSpotClient,
        cache: Dict[EntityKind, str],
        configured_move_object: str = "",
    ):
        """
        Args:
            client: HubSpot API client
            cache: Context-owned map kind -> object type
            configured_move_object: HUBSPOT_MOVE_OBJECT value (may be empty)
        """
        self.client = client
        self.cache = cache
        self.configured_move_object = (configured_move_object or "").strip()

    async def resolve(self, kind: EntityKind) -> str:
        """
        Return the HubSpot object type for a kind.

        Raises:
            ResolutionError: If the custom move object cannot be found
        """
        if kind in STANDARD_OBJECT_TYPES:
            return STANDARD_OBJECT_TYPES[kind]

        if self.configured_move_object and _CUSTOM_OBJECT_PATTERN.match(
            self.configured_move_object
        ):
            return self.configured_move_object

        cached = self.cache.get(kind)
        if cached:
            return cached

        object_type = await self._discover_move_object()
        self.cache[kind] = object_type
        logger.info(f"ℹ️ HubSpot move object type resolved: {object_type}")
        return object_type

    async def _discover_move_object(self) -> str:
        try:
            schemas = await self.client.list_schemas()
        except TransportError as e:
            raise ResolutionError(f"Could not list HubSpot schemas: {e}") from e

        match = self._find_schema(schemas, MOVE_OBJECT_NAME)
        if match is None:
            raise ResolutionError(
                f"Custom object '{MOVE_OBJECT_NAME}' not found in /crm/v3/schemas. "
                f"Check that it exists and the token can read schemas."
            )

        object_type = match.get("objectTypeId") or match.get("fullyQualifiedName")
        if not object_type:
            raise ResolutionError(
                f"Schema '{MOVE_OBJECT_NAME}' has no objectTypeId/fullyQualifiedName"
            )
        return object_type

    @staticmethod
    def _find_schema(schemas, name: str) -> Optional[dict]:
        for schema in schemas:
            if (schema.get("name") or "").lower() == name:
                return schema
        for schema in schemas:
            labels = schema.get("labels") or {}
            if (labels.get("singular") or "").lower() == name:
                return schema
        return None
