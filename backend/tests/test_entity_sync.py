"""
End-to-end tests for entity upload.

SyncOrchestrator runs against SQLite and FakeHubSpot, so every step from
pending selection to remote id persistence is exercised.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from pokesync.core.exceptions import ResolutionError, StorageError
from pokesync.core.kinds import EntityKind
from pokesync.models import Area, Creature, CreatureType, CreatureTypeLink, Move
from pokesync.services.crm_sync import EntitySyncProcessor, ErrorTracker, SyncOrchestrator
from pokesync.services.sync_status import SyncPhase

from fakes import MOVE_OBJECT, make_area, make_creature, make_move, seed


async def remote_ids(session_maker, model):
    async with session_maker() as session:
        result = await session.execute(select(model.id, model.remote_id).order_by(model.id))
        return dict(result.all())


@pytest.mark.asyncio
class TestEntitySync:
    """Tests for SyncOrchestrator.sync_pending()."""

    async def test_reversed_response_order_is_correlated_by_key(
        self, context, session_maker, fake_hubspot
    ):
        """A, B, C come back as C, B, A; each row still gets its own record."""
        await seed(session_maker, make_creature(1), make_creature(2), make_creature(3))
        orchestrator = SyncOrchestrator(context)

        result = await orchestrator.sync_pending(EntityKind.CREATURE)

        assert result.synced == 3
        assert result.status == "success"
        stored = fake_hubspot.records["contacts"]
        saved = await remote_ids(session_maker, Creature)
        for local_id, remote_id in saved.items():
            assert stored[str(remote_id)]["phone"] == str(local_id)

    async def test_rerun_is_idempotent(self, context, session_maker, fake_hubspot):
        await seed(session_maker, make_move(1), make_move(2))
        orchestrator = SyncOrchestrator(context)

        first = await orchestrator.sync_pending(EntityKind.MOVE)
        second = await orchestrator.sync_pending(EntityKind.MOVE)

        assert first.synced == 2
        assert second.pending == 0
        assert second.synced == 0
        assert len(fake_hubspot.create_bodies(MOVE_OBJECT)) == 1
        assert await orchestrator.count_pending(EntityKind.MOVE) == 0

    async def test_sample_pending_lists_first_unsynced_rows(self, context, session_maker):
        await seed(
            session_maker,
            *[make_area(i) for i in range(1, 13)],
            make_area(20, remote_id=900),
        )
        orchestrator = SyncOrchestrator(context)

        sample = await orchestrator.sample_pending(EntityKind.AREA)

        assert [row.id for row in sample] == list(range(1, 11))
        assert await orchestrator.count_pending(EntityKind.AREA) == 12

    async def test_250_rows_are_sent_as_100_100_50(self, context, session_maker, fake_hubspot):
        await seed(session_maker, *[make_area(i) for i in range(1, 251)])

        result = await SyncOrchestrator(context).sync_pending(EntityKind.AREA)

        bodies = fake_hubspot.create_bodies("companies")
        assert [len(b["inputs"]) for b in bodies] == [100, 100, 50]
        assert bodies[0]["inputs"][0]["properties"]["phone"] == "1"
        assert bodies[-1]["inputs"][-1]["properties"]["phone"] == "250"
        assert result.selected == 250
        assert result.synced == 250

    async def test_run_cap_leaves_rest_pending(self, context, session_maker, fake_hubspot):
        await seed(session_maker, *[make_move(i) for i in range(1, 11)])
        orchestrator = SyncOrchestrator(context)

        result = await orchestrator.sync_pending(EntityKind.MOVE, run_cap=4)

        assert result.pending == 10
        assert result.selected == 4
        assert result.synced == 4
        assert await orchestrator.count_pending(EntityKind.MOVE) == 6

    async def test_configured_move_cap_applies_by_default(
        self, context, session_maker, fake_hubspot
    ):
        context.settings.hubspot_move_upload_limit = 3
        await seed(session_maker, *[make_move(i) for i in range(1, 6)])

        result = await SyncOrchestrator(context).sync_pending(EntityKind.MOVE)

        assert result.selected == 3

    async def test_phone_formatting_is_tolerated(self, context, session_maker, fake_hubspot):
        fake_hubspot.phone_format = lambda value: f"({value[:1]}) {value[1:]}-"
        await seed(session_maker, make_creature(123), make_creature(45))

        result = await SyncOrchestrator(context).sync_pending(EntityKind.CREATURE)

        assert result.synced == 2
        saved = await remote_ids(session_maker, Creature)
        assert all(remote_id is not None for remote_id in saved.values())

    async def test_unmatched_record_leaves_row_pending(
        self, context, session_maker, fake_hubspot
    ):
        # HubSpot rewrites the key of one record beyond recognition
        fake_hubspot.phone_format = lambda value: "999" if value == "2" else value
        await seed(session_maker, make_area(1), make_area(2))
        orchestrator = SyncOrchestrator(context)

        result = await orchestrator.sync_pending(EntityKind.AREA)

        assert result.synced == 1
        assert result.unmatched == 1
        assert result.still_pending == 1
        assert result.status == "partial_success"
        assert any("999" in message for message in result.errors)
        saved = await remote_ids(session_maker, Area)
        assert saved[1] is not None
        assert saved[2] is None

    async def test_failed_chunk_does_not_stop_the_next(
        self, context, session_maker, fake_hubspot
    ):
        fake_hubspot.fail_create_calls = {1}
        await seed(session_maker, *[make_move(i) for i in range(1, 151)])
        orchestrator = SyncOrchestrator(context)

        result = await orchestrator.sync_pending(EntityKind.MOVE)

        assert fake_hubspot.create_calls == 2
        assert result.failed_chunks == 1
        assert result.synced == 50
        assert result.still_pending == 100
        assert result.status == "partial_success"
        assert await orchestrator.count_pending(EntityKind.MOVE) == 100

        rerun = await orchestrator.sync_pending(EntityKind.MOVE)
        assert rerun.synced == 100
        assert await orchestrator.count_pending(EntityKind.MOVE) == 0

    async def test_non_json_success_body_fails_only_its_chunk(
        self, context, session_maker, fake_hubspot
    ):
        fake_hubspot.html_create_calls = {1}
        await seed(session_maker, *[make_move(i) for i in range(1, 151)])
        orchestrator = SyncOrchestrator(context)

        result = await orchestrator.sync_pending(EntityKind.MOVE)

        assert fake_hubspot.create_calls == 2
        assert result.failed_chunks == 1
        assert result.synced == 50
        assert result.still_pending == 100
        assert result.status == "partial_success"
        assert "non-JSON body" in result.errors[0]
        assert context.status.get_status()["phase"] == SyncPhase.COMPLETED

    async def test_read_fallback_when_create_omits_properties(
        self, context, session_maker, fake_hubspot
    ):
        fake_hubspot.echo_properties = False
        await seed(session_maker, make_move(1), make_move(2))

        result = await SyncOrchestrator(context).sync_pending(EntityKind.MOVE)

        assert len(fake_hubspot.calls("POST", f"/{MOVE_OBJECT}/batch/read")) == 1
        assert result.synced == 2
        assert result.degraded_chunks == 0

    async def test_creature_types_are_sent(self, context, session_maker, fake_hubspot):
        await seed(
            session_maker,
            make_creature(6),
            CreatureType(id=10, name="fire"),
            CreatureType(id=3, name="flying"),
        )
        await seed(
            session_maker,
            CreatureTypeLink(creature_id=6, type_id=10),
            CreatureTypeLink(creature_id=6, type_id=3),
        )

        await SyncOrchestrator(context).sync_pending(EntityKind.CREATURE)

        sent = fake_hubspot.create_bodies("contacts")[0]["inputs"][0]
        assert sent["properties"]["types"] == "flying;fire"
        assert sent["objectWriteTraceId"] == "6"

    async def test_move_object_discovered_from_schemas(
        self, context, session_maker, fake_hubspot
    ):
        context.settings.hubspot_move_object = ""
        fake_hubspot.schemas = [{"name": "move", "objectTypeId": "2-777"}]
        await seed(session_maker, make_move(1))

        result = await SyncOrchestrator(context).sync_pending(EntityKind.MOVE)

        assert result.synced == 1
        assert len(fake_hubspot.create_bodies("2-777")) == 1
        assert context.object_types[EntityKind.MOVE] == "2-777"

    async def test_unresolvable_move_object_propagates(
        self, context, session_maker, fake_hubspot
    ):
        context.settings.hubspot_move_object = ""
        await seed(session_maker, make_move(1))

        with pytest.raises(ResolutionError):
            await SyncOrchestrator(context).sync_pending(EntityKind.MOVE)

        assert context.status.get_status()["phase"] == SyncPhase.ERROR
        assert fake_hubspot.create_calls == 0

    async def test_status_is_completed_after_run(self, context, session_maker):
        await seed(session_maker, make_area(1))

        await SyncOrchestrator(context).sync_pending(EntityKind.AREA)

        status = context.status.get_status()
        assert status["phase"] == SyncPhase.COMPLETED
        assert status["operation"] == "area sync"
        assert status["progress"]["synced"] == 1
        assert context.status.is_running() is False


@pytest.mark.asyncio
class TestEntitySyncProcessorFailures:
    """Failure containment inside EntitySyncProcessor."""

    async def test_storage_failure_on_save_is_contained_per_row(
        self, context, session_maker, fake_hubspot
    ):
        await seed(session_maker, make_move(1), make_move(2))
        tracker = ErrorTracker()
        processor = EntitySyncProcessor(context, tracker)

        repo = processor.repository(EntityKind.MOVE)
        repo.save_remote_id = AsyncMock(side_effect=[StorageError("disk full"), True])
        processor.repository = lambda kind: repo

        result = await processor.sync_kind(EntityKind.MOVE)

        assert result.synced == 1
        assert result.still_pending == 1
        assert tracker.get_summary().total_entity_errors == 1

    async def test_storage_failure_before_run_propagates(self, context, fake_hubspot):
        processor = EntitySyncProcessor(context, ErrorTracker())
        repo = processor.repository(EntityKind.AREA)
        repo.select_pending = AsyncMock(side_effect=StorageError("db down"))
        processor.repository = lambda kind: repo

        with pytest.raises(StorageError):
            await processor.sync_kind(EntityKind.AREA)
        assert fake_hubspot.create_calls == 0

    async def test_already_synced_rows_are_never_overwritten(self, context, session_maker):
        await seed(session_maker, make_move(1, remote_id=55), make_move(2))

        await SyncOrchestrator(context).sync_pending(EntityKind.MOVE)

        saved = await remote_ids(session_maker, Move)
        assert saved[1] == 55
        assert saved[2] is not None
