"""
Error Tracker for HubSpot Sync Operations.

Tracks errors during sync with detailed context for debugging.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class EntityError:
    """Details about a single row error (e.g. remote id could not be saved)."""
    entity_id: str
    kind: str
    error: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BatchError:
    """Details about a chunk that failed as a whole."""
    batch_type: str
    batch_size: int
    error: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CorrelationMissRecord:
    """A remote record that matched no local row."""
    kind: str
    remote_id: str
    key: str


@dataclass
class ErrorSummary:
    """Summary of all errors during sync."""
    entity_errors: List[EntityError]
    batch_errors: List[BatchError]
    correlation_misses: List[CorrelationMissRecord]

    @property
    def total_entity_errors(self) -> int:
        return len(self.entity_errors)

    @property
    def total_batch_errors(self) -> int:
        return len(self.batch_errors)

    @property
    def total_correlation_misses(self) -> int:
        return len(self.correlation_misses)

    def get_error_messages(self, limit: int = 15) -> List[str]:
        """
        Get formatted error messages for the invocation result.

        Batch errors come first (they cost a whole chunk), then row errors,
        then correlation misses.

        Args:
            limit: Maximum number of error messages to return

        Returns:
            List of formatted error messages
        """
        messages = []

        for err in self.batch_errors:
            messages.append(f"Batch {err.batch_type} ({err.batch_size} items): {err.error}")

        for err in self.entity_errors:
            messages.append(f"{err.kind} {err.entity_id}: {err.error}")

        for miss in self.correlation_misses:
            messages.append(
                f"{miss.kind} HubSpot id={miss.remote_id}: no local row for key '{miss.key}'"
            )

        return messages[:limit]


class ErrorTracker:
    """
    Tracks errors during one sync invocation.

    Features:
    - Row-level error tracking
    - Chunk-level error tracking
    - Correlation miss tracking
    """

    def __init__(self):
        """Initialize error tracker."""
        self.entity_errors: List[EntityError] = []
        self.batch_errors: List[BatchError] = []
        self.correlation_misses: List[CorrelationMissRecord] = []

    def track_entity_error(
        self,
        entity_id: Any,
        kind: str,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Track an individual row error.

        Args:
            entity_id: Local id of the row
            kind: Entity kind (e.g., "creature", "move")
            error: Exception that occurred
            context: Additional context (e.g., remote id)
        """
        self.entity_errors.append(EntityError(
            entity_id=str(entity_id),
            kind=kind,
            error=str(error),
            context=context or {}
        ))

        logger.error(
            f"❌ Row error: {kind} {entity_id}: {error}",
            extra={"entity_id": str(entity_id), "kind": kind, "context": context}
        )

    def track_batch_error(
        self,
        batch_type: str,
        batch_size: int,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Track a chunk processing error.

        Args:
            batch_type: Type of chunk (e.g., "creature create", "contacts -> companies")
            batch_size: Number of items in the chunk
            error: Exception that occurred
            context: Additional context (e.g., first/last local id)
        """
        self.batch_errors.append(BatchError(
            batch_type=batch_type,
            batch_size=batch_size,
            error=str(error),
            context=context or {}
        ))

        logger.error(
            f"❌ Batch error: {batch_type} ({batch_size} items): {error}",
            extra={"batch_type": batch_type, "batch_size": batch_size, "context": context}
        )

    def track_correlation_miss(self, kind: str, remote_id: str, key: str):
        """Track a remote record that matched no local row (already logged)."""
        self.correlation_misses.append(
            CorrelationMissRecord(kind=kind, remote_id=remote_id, key=key)
        )

    def get_summary(self) -> ErrorSummary:
        """
        Get error summary.

        Returns:
            ErrorSummary with all tracked errors
        """
        return ErrorSummary(
            entity_errors=list(self.entity_errors),
            batch_errors=list(self.batch_errors),
            correlation_misses=list(self.correlation_misses),
        )

    def has_errors(self) -> bool:
        """Check if any errors were tracked."""
        return bool(self.entity_errors or self.batch_errors or self.correlation_misses)

    def clear(self):
        """Clear all tracked errors."""
        self.entity_errors.clear()
        self.batch_errors.clear()
        self.correlation_misses.clear()
