"""
Correlation between local rows and created HubSpot records.

HubSpot does not promise that batch results come back in input order, so
records are matched by a correlation key embedded as a property, never by
position in the response.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pokesync.core.exceptions import CorrelationMiss
from pokesync.integrations.hubspot.schema import RemoteRecord

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def key_for(entity: Any) -> Optional[str]:
    """
    Correlation key of a local row: the decimal form of its id.

    Returns:
        Key string, or None if the row has no usable id
    """
    local_id = getattr(entity, "id", None)
    if local_id is None:
        return None
    key = str(local_id).strip()
    return key or None


def normalize_key(value: Any) -> str:
    """
    Normalize a correlation value echoed by HubSpot.

    Phone-type fields get reformatted by the platform ("(123) 456",
    "123-456"), so everything but digits is stripped.

    Example:
        >>> normalize_key("(123) 456")
        '123456'
    """
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value)).strip()


@dataclass
class CorrelationResult:
    """
    Outcome of matching one chunk.

    Attributes:
        matched: (local entity, HubSpot id) pairs
        unmatched: remote records with no local counterpart
        pending: local rows that received no remote id
        misses: one CorrelationMiss per unmatched record
    """
    matched: List[Tuple[Any, int]] = field(default_factory=list)
    unmatched: List[RemoteRecord] = field(default_factory=list)
    pending: List[Any] = field(default_factory=list)
    misses: List[CorrelationMiss] = field(default_factory=list)


class CorrelationResolver:
    """Joins returned remote records to the local rows of a chunk by key."""

    def __init__(self, kind_label: str):
        """
        Args:
            kind_label: Entity kind used in log messages (e.g. "creature")
        """
        self.kind_label = kind_label

    def build_index(self, chunk: Sequence[Any]) -> Dict[str, Any]:
        """Index chunk rows by correlation key, skipping rows without one."""
        index: Dict[str, Any] = {}
        for entity in chunk:
            key = key_for(entity)
            if key is None:
                logger.warning(f"⚠️ Skipping {self.kind_label} without id: {entity!r}")
                continue
            index[key] = entity
        return index

    def resolve(
        self,
        chunk: Sequence[Any],
        remote_records: Sequence[RemoteRecord],
        correlation_property: str,
    ) -> CorrelationResult:
        """
        Match remote records to chunk rows.

        Each matched key is removed from the index, so one remote record
        can never be attributed to two local rows.

        Args:
            chunk: Local rows sent in the create request
            remote_records: Records returned by create (or the follow-up read)
            correlation_property: Property holding the correlation key

        Returns:
            CorrelationResult
        """
        index = self.build_index(chunk)
        result = CorrelationResult()

        for remote in remote_records:
            key = normalize_key(remote.properties.get(correlation_property))
            if not key:
                logger.warning(
                    f"⚠️ HubSpot {self.kind_label} id={remote.id} has no "
                    f"'{correlation_property}' for correlation"
                )
                self._miss(result, remote, key)
                continue

            local = index.get(key)
            if local is None:
                logger.warning(
                    f"⚠️ No local {self.kind_label} for key='{key}' "
                    f"('{correlation_property}'), HubSpot id={remote.id}"
                )
                self._miss(result, remote, key)
                continue

            try:
                remote_id = int(remote.id)
            except ValueError:
                logger.warning(
                    f"⚠️ HubSpot {self.kind_label} id '{remote.id}' is not numeric"
                )
                self._miss(result, remote, key)
                continue

            result.matched.append((local, remote_id))
            del index[key]

        result.pending = list(index.values())
        return result

    def _miss(self, result: CorrelationResult, remote: RemoteRecord, key: str) -> None:
        result.unmatched.append(remote)
        result.misses.append(CorrelationMiss(remote.id, key, self.kind_label))
