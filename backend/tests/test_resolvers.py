"""
Tests for ObjectTypeResolver and AssociationTypeResolver.

The HubSpot client is an AsyncMock.
"""

from unittest.mock import AsyncMock

import pytest

from pokesync.core.exceptions import ResolutionError, TransportError
from pokesync.core.kinds import EntityKind
from pokesync.integrations.hubspot.schema import AssociationCategory
from pokesync.services.crm_sync.association_type_resolver import (
    AssociationTypeResolver,
    LabelRequest,
    ResolutionState,
)
from pokesync.services.crm_sync.object_type_resolver import ObjectTypeResolver

MOVE_REQUEST = LabelRequest(label="Move Relation", name="move_relation")
AREA_REQUEST = LabelRequest(label="Area Relation", name="area_relation", preferred_type_id=280)


@pytest.mark.asyncio
class TestObjectTypeResolver:
    """Tests for resolve()."""

    async def test_standard_objects(self):
        client = AsyncMock()
        resolver = ObjectTypeResolver(client, {})

        assert await resolver.resolve(EntityKind.CREATURE) == "contacts"
        assert await resolver.resolve(EntityKind.AREA) == "companies"
        client.list_schemas.assert_not_called()

    @pytest.mark.parametrize("configured", ["2-1234567", "p98765_move"])
    async def test_configured_move_object_is_used_as_is(self, configured):
        client = AsyncMock()
        resolver = ObjectTypeResolver(client, {}, configured)

        assert await resolver.resolve(EntityKind.MOVE) == configured
        client.list_schemas.assert_not_called()

    async def test_invalid_configured_value_falls_back_to_discovery(self):
        client = AsyncMock()
        client.list_schemas.return_value = [
            {"name": "move", "objectTypeId": "2-555", "fullyQualifiedName": "p1_move"}
        ]
        resolver = ObjectTypeResolver(client, {}, "moves")

        assert await resolver.resolve(EntityKind.MOVE) == "2-555"

    async def test_discovery_by_singular_label_and_cached(self):
        client = AsyncMock()
        client.list_schemas.return_value = [
            {"name": "other", "objectTypeId": "2-1"},
            {"name": "attacks", "labels": {"singular": "Move"}, "fullyQualifiedName": "p7_move"},
        ]
        cache = {}
        resolver = ObjectTypeResolver(client, cache)

        assert await resolver.resolve(EntityKind.MOVE) == "p7_move"
        assert await resolver.resolve(EntityKind.MOVE) == "p7_move"
        assert client.list_schemas.await_count == 1
        assert cache == {EntityKind.MOVE: "p7_move"}

    async def test_missing_schema_raises(self):
        client = AsyncMock()
        client.list_schemas.return_value = [{"name": "ticket_extra", "objectTypeId": "2-9"}]

        with pytest.raises(ResolutionError):
            await ObjectTypeResolver(client, {}).resolve(EntityKind.MOVE)

    async def test_schema_listing_failure_raises_resolution_error(self):
        client = AsyncMock()
        client.list_schemas.side_effect = TransportError("forbidden", status_code=403)

        with pytest.raises(ResolutionError):
            await ObjectTypeResolver(client, {}).resolve(EntityKind.MOVE)


@pytest.mark.asyncio
class TestAssociationTypeResolver:
    """Tests for resolve()."""

    async def test_label_match_is_case_insensitive(self):
        client = AsyncMock()
        client.list_association_labels.return_value = [
            {"category": "HUBSPOT_DEFINED", "typeId": 1, "label": None},
            {"category": "USER_DEFINED", "typeId": 77, "label": "move relation"},
        ]
        resolver = AssociationTypeResolver(client, {})

        descriptor = await resolver.resolve("contacts", "2-1", MOVE_REQUEST)

        assert descriptor.type_id == 77
        assert descriptor.category is AssociationCategory.USER_DEFINED
        client.create_association_label.assert_not_called()

    async def test_prefers_configured_platform_type(self):
        client = AsyncMock()
        client.list_association_labels.return_value = [
            {"category": "HUBSPOT_DEFINED", "typeId": 2, "label": "Primary"},
            {"category": "HUBSPOT_DEFINED", "typeId": 280, "label": None},
        ]
        resolver = AssociationTypeResolver(client, {})

        descriptor = await resolver.resolve("companies", "contacts", AREA_REQUEST)

        assert descriptor.type_id == 280
        assert descriptor.category is AssociationCategory.HUBSPOT_DEFINED

    async def test_first_platform_type_without_preference(self):
        client = AsyncMock()
        client.list_association_labels.return_value = [
            {"category": "HUBSPOT_DEFINED", "typeId": 15, "label": None},
            {"category": "HUBSPOT_DEFINED", "typeId": 16, "label": None},
        ]

        descriptor = await AssociationTypeResolver(client, {}).resolve(
            "contacts", "2-1", MOVE_REQUEST
        )

        assert descriptor.type_id == 15

    async def test_creates_label_when_missing_and_caches(self):
        client = AsyncMock()
        client.list_association_labels.side_effect = [
            [],
            [{"category": "USER_DEFINED", "typeId": 501, "label": "Move Relation"}],
        ]
        cache = {}
        resolver = AssociationTypeResolver(client, cache)

        first = await resolver.resolve("contacts", "2-1", MOVE_REQUEST)
        second = await resolver.resolve("contacts", "2-1", MOVE_REQUEST)

        assert first == second
        assert first.type_id == 501
        client.create_association_label.assert_awaited_once_with(
            "contacts", "2-1", label="Move Relation", name="move_relation", inverse_label=None
        )
        assert client.list_association_labels.await_count == 2
        assert resolver.state_of("contacts", "2-1") is ResolutionState.RESOLVED

    async def test_label_still_missing_after_create_fails_then_retries(self):
        client = AsyncMock()
        client.list_association_labels.side_effect = [
            [],
            [],
            [{"category": "USER_DEFINED", "typeId": 9, "label": "Move Relation"}],
        ]
        resolver = AssociationTypeResolver(client, {})

        with pytest.raises(ResolutionError):
            await resolver.resolve("contacts", "2-1", MOVE_REQUEST)
        assert resolver.state_of("contacts", "2-1") is ResolutionState.FAILED

        descriptor = await resolver.resolve("contacts", "2-1", MOVE_REQUEST)
        assert descriptor.type_id == 9
        assert resolver.state_of("contacts", "2-1") is ResolutionState.RESOLVED

    async def test_transport_failure_becomes_resolution_error(self):
        client = AsyncMock()
        client.list_association_labels.side_effect = TransportError("down", status_code=503)
        resolver = AssociationTypeResolver(client, {})

        with pytest.raises(ResolutionError):
            await resolver.resolve("contacts", "companies", AREA_REQUEST)
        assert resolver.state_of("contacts", "companies") is ResolutionState.FAILED

    async def test_unknown_direction_is_unresolved(self):
        resolver = AssociationTypeResolver(AsyncMock(), {})

        assert resolver.state_of("a", "b") is ResolutionState.UNRESOLVED
