"""
Error taxonomy for the sync engine.

Row- and chunk-level errors are contained where they happen; only resolution
failures and failures that prevent a run from starting reach the caller.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for all sync engine errors."""
    pass


class StorageError(SyncError):
    """Raised when a local read or update fails."""
    pass


class TransportError(SyncError):
    """Raised when HubSpot is unreachable or answers with an error or unreadable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CorrelationMiss(SyncError):
    """A returned remote record could not be matched to a local row."""

    def __init__(self, remote_id: str, key: str, kind: str):
        super().__init__(
            f"No local {kind} for correlation key '{key}' (remote id={remote_id})"
        )
        self.remote_id = remote_id
        self.key = key
        self.kind = kind


class ResolutionError(SyncError):
    """Raised when an association type or remote object type cannot be resolved."""
    pass
