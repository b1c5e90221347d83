"""
Remote Upsert Client.

Sends one chunk to HubSpot batch/create and makes sure the returned records
carry the correlation property, reading it back when create omits it.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from pokesync.core.exceptions import TransportError
from pokesync.integrations.hubspot.client import HubSpotClient
from pokesync.integrations.hubspot.schema import (
    CreateInput,
    RemoteError,
    RemoteRecord,
    parse_errors,
    parse_records,
)

logger = logging.getLogger(__name__)


@dataclass
class CreateResult:
    """
    Result of one batch/create call.

    Attributes:
        remote_records: Created records (from create, or from the follow-up read)
        partial_errors: Errors reported inside the 2xx response body
        degraded: True when some records still lack the correlation property
    """
    remote_records: List[RemoteRecord] = field(default_factory=list)
    partial_errors: List[RemoteError] = field(default_factory=list)
    degraded: bool = False


class RemoteUpsertClient:
    """Creates HubSpot records for a chunk of local rows."""

    def __init__(self, client: HubSpotClient):
        """
        Args:
            client: HubSpot API client
        """
        self.client = client

    async def create_batch(
        self,
        object_type: str,
        inputs: Sequence[CreateInput],
        correlation_property: str,
    ) -> CreateResult:
        """
        Create one chunk of records.

        Workflow:
        1. batch/create with all inputs (one request)
        2. If any returned record misses the correlation property, batch/read
           exactly the returned ids asking only for that property
        3. Non-empty read results replace the create results; otherwise keep
           the create data and flag the result as degraded

        Args:
            object_type: HubSpot object type (e.g. "contacts", "2-1234567")
            inputs: Create inputs (at most the provider batch size)
            correlation_property: Property that carries the correlation key

        Returns:
            CreateResult

        Raises:
            TransportError: If the create call fails (network or non-2xx)
        """
        body = await self.client.batch_create(
            object_type, [item.to_payload() for item in inputs]
        )

        result = CreateResult(
            remote_records=parse_records(body),
            partial_errors=parse_errors(body),
        )

        if result.partial_errors:
            logger.error(
                f"⚠️ HubSpot batch/create ({object_type}) returned "
                f"{len(result.partial_errors)} partial errors: "
                f"{[str(err) for err in result.partial_errors[:5]]}"
            )

        if not result.remote_records:
            logger.warning(f"⚠️ HubSpot returned no results for this {object_type} batch")
            return result

        if all(r.has_property(correlation_property) for r in result.remote_records):
            return result

        result.remote_records, result.degraded = await self._read_correlation(
            object_type, result.remote_records, correlation_property
        )
        return result

    async def _read_correlation(
        self,
        object_type: str,
        created: List[RemoteRecord],
        correlation_property: str,
    ) -> tuple:
        """
        Read back the correlation property for freshly created records.

        Returns:
            Tuple of (records to correlate, degraded flag)
        """
        ids = [record.id for record in created]
        try:
            body = await self.client.batch_read(object_type, ids, [correlation_property])
        except TransportError as e:
            logger.warning(
                f"⚠️ batch/read of new {object_type} records failed, "
                f"continuing with create data only: {e}"
            )
            return created, True

        records = parse_records(body)
        if not records:
            logger.warning(
                f"⚠️ batch/read ({object_type}) returned no results, "
                f"continuing with create data only"
            )
            return created, True

        degraded = not all(r.has_property(correlation_property) for r in records)
        return records, degraded
