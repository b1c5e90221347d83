"""
Tests for HubSpot Sync Services.

Unit tests for the error tracker, the status tracker and the orchestrator
with mocked processors.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from pokesync.core.exceptions import StorageError
from pokesync.core.kinds import EntityKind, KindPair
from pokesync.services.crm_sync import (
    AssociationBatchResult,
    EntitySyncResult,
    ErrorTracker,
    SyncOrchestrator,
)
from pokesync.services.sync_status import SyncPhase, SyncStatusTracker


class TestErrorTracker:
    """Tests for ErrorTracker."""

    def test_track_entity_error(self):
        """Test tracking row errors."""
        tracker = ErrorTracker()

        tracker.track_entity_error(25, "creature", Exception("Test error"))

        summary = tracker.get_summary()
        assert summary.total_entity_errors == 1
        assert summary.entity_errors[0].entity_id == "25"
        assert summary.entity_errors[0].kind == "creature"

    def test_track_batch_error(self):
        """Test tracking chunk errors."""
        tracker = ErrorTracker()

        tracker.track_batch_error("move create", 100, Exception("Batch failed"))

        summary = tracker.get_summary()
        assert summary.total_batch_errors == 1
        assert summary.batch_errors[0].batch_type == "move create"
        assert summary.batch_errors[0].batch_size == 100

    def test_messages_put_batch_errors_first(self):
        tracker = ErrorTracker()
        tracker.track_correlation_miss("area", "77", "999")
        tracker.track_entity_error(3, "area", Exception("locked"))
        tracker.track_batch_error("area create", 100, Exception("HTTP 500"))

        messages = tracker.get_summary().get_error_messages()

        assert messages[0].startswith("Batch area create")
        assert messages[1] == "area 3: locked"
        assert "no local row for key '999'" in messages[2]

    def test_messages_are_limited(self):
        tracker = ErrorTracker()
        for i in range(20):
            tracker.track_correlation_miss("move", str(i), str(i))

        assert len(tracker.get_summary().get_error_messages()) == 15
        assert len(tracker.get_summary().get_error_messages(limit=3)) == 3

    def test_has_errors(self):
        """Test error detection."""
        tracker = ErrorTracker()

        assert not tracker.has_errors()

        tracker.track_correlation_miss("move", "1", "2")

        assert tracker.has_errors()

    def test_clear_errors(self):
        """Test clearing errors."""
        tracker = ErrorTracker()

        tracker.track_entity_error(1, "move", Exception("Test"))
        tracker.clear()

        assert not tracker.has_errors()


class TestSyncStatusTracker:
    """Tests for SyncStatusTracker."""

    def test_initial_state_is_idle(self):
        tracker = SyncStatusTracker()

        status = tracker.get_status()
        assert status["phase"] == SyncPhase.IDLE
        assert tracker.is_running() is False

    def test_run_lifecycle(self):
        tracker = SyncStatusTracker()

        tracker.start_sync("creature sync")
        assert tracker.is_running() is True

        tracker.update_selection("creature", pending=250, selected=100)
        tracker.update_chunk("creature", synced=60, unmatched=1)
        tracker.update_chunk("creature", synced=40, unmatched=0)
        tracker.record_failed_chunk()
        tracker.complete_sync(success=True)

        status = tracker.get_status()
        assert status["phase"] == SyncPhase.COMPLETED
        assert status["progress"]["pending"] == 250
        assert status["progress"]["selected"] == 100
        assert status["progress"]["synced"] == 100
        assert status["progress"]["unmatched"] == 1
        assert status["progress"]["failed_chunks"] == 1
        assert status["completed_at"] is not None
        assert tracker.is_running() is False

    def test_start_resets_previous_run(self):
        tracker = SyncStatusTracker()
        tracker.start_sync("move sync")
        tracker.update_chunk("move", synced=5, unmatched=0)
        tracker.add_error("boom")
        tracker.complete_sync(success=False)

        tracker.start_sync("area sync")

        status = tracker.get_status()
        assert status["progress"]["synced"] == 0
        assert status["errors"] == []
        assert status["operation"] == "area sync"

    def test_keeps_only_recent_errors(self):
        tracker = SyncStatusTracker()
        for i in range(60):
            tracker.add_error(f"error {i}")

        errors = tracker.get_status()["errors"]
        assert len(errors) == 50
        assert errors[-1]["error"] == "error 59"

    def test_get_status_returns_a_copy(self):
        tracker = SyncStatusTracker()

        tracker.get_status()["progress"]["synced"] = 99

        assert tracker.get_status()["progress"]["synced"] == 0


def make_context():
    context = MagicMock()
    context.status = SyncStatusTracker()
    return context


@pytest.mark.asyncio
class TestSyncOrchestrator:
    """Tests for SyncOrchestrator with mocked processors."""

    async def test_sync_success(self):
        """Test successful sync workflow."""
        orchestrator = SyncOrchestrator(make_context())
        orchestrator.entity_processor = AsyncMock()
        orchestrator.entity_processor.sync_kind.return_value = EntitySyncResult(
            kind="creature", pending=3, selected=3, synced=3
        )

        result = await orchestrator.sync_pending(EntityKind.CREATURE, limit=10, run_cap=5)

        assert result.status == "success"
        assert result.is_success
        assert "3 creature rows synced" in result.message
        orchestrator.entity_processor.sync_kind.assert_awaited_once_with(
            EntityKind.CREATURE, limit=10, run_cap=5
        )
        assert orchestrator.context.status.get_status()["phase"] == SyncPhase.COMPLETED

    async def test_sync_partial_success_collects_errors(self):
        orchestrator = SyncOrchestrator(make_context())

        async def sync_kind(kind, limit=None, run_cap=None):
            orchestrator.error_tracker.track_batch_error("move create", 100, Exception("500"))
            return EntitySyncResult(
                kind="move", pending=200, selected=200, synced=100,
                still_pending=100, failed_chunks=1,
            )

        orchestrator.entity_processor = MagicMock()
        orchestrator.entity_processor.sync_kind = sync_kind

        result = await orchestrator.sync_pending(EntityKind.MOVE)

        assert result.status == "partial_success"
        assert not result.is_success
        assert result.errors == ["Batch move create (100 items): 500"]

    async def test_errors_do_not_leak_between_runs(self):
        orchestrator = SyncOrchestrator(make_context())
        orchestrator.error_tracker.track_entity_error(1, "move", Exception("old"))
        orchestrator.entity_processor = AsyncMock()
        orchestrator.entity_processor.sync_kind.return_value = EntitySyncResult(
            kind="move", pending=0, selected=0
        )

        result = await orchestrator.sync_pending(EntityKind.MOVE)

        assert result.errors == []

    async def test_sync_failure_marks_status_and_propagates(self):
        orchestrator = SyncOrchestrator(make_context())
        orchestrator.entity_processor = AsyncMock()
        orchestrator.entity_processor.sync_kind.side_effect = StorageError("db down")

        with pytest.raises(StorageError):
            await orchestrator.sync_pending(EntityKind.AREA)

        status = orchestrator.context.status.get_status()
        assert status["phase"] == SyncPhase.ERROR
        assert status["errors"][0]["error"] == "db down"

    async def test_build_associations_runs_forward_then_reverse(self):
        orchestrator = SyncOrchestrator(make_context())
        orchestrator.association_builder = AsyncMock()
        orchestrator.association_builder.build_and_send.side_effect = [
            AssociationBatchResult("creature_move", "forward", "contacts", "2-1", pairs=2, sent=2),
            AssociationBatchResult("creature_move", "reverse", "2-1", "contacts", pairs=2, sent=2),
        ]

        result = await orchestrator.build_associations(KindPair.CREATURE_MOVE)

        calls = orchestrator.association_builder.build_and_send.await_args_list
        assert [c.args[1].value for c in calls] == ["forward", "reverse"]
        assert result.sent == 4
        assert result.status == "success"
