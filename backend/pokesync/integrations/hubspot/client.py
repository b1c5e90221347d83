"""
HubSpot CRM API Client.
Handles bearer authentication, retries and HTTP requests to the HubSpot REST API.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from pokesync.core.exceptions import TransportError

logger = logging.getLogger(__name__)

# Status codes worth another attempt (rate limit + transient server errors)
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# Subset that guarantees HubSpot did not act on the request
UNPROCESSED_STATUS_CODES = {429}

# Network failures raised before the request reached HubSpot
UNSENT_REQUEST_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


class HubSpotAPIError(TransportError):
    """Raised when HubSpot is unreachable or returns an error status."""
    pass


class HubSpotClient:
    """
    HubSpot CRM REST API Client.

    Uses Bearer token authentication (token is provided by the caller).
    Retries 429/5xx responses and network errors with exponential backoff,
    honouring the Retry-After header when HubSpot sends one. Record creation
    is only retried when the request provably did not reach HubSpot.
    """

    def __init__(
        self,
        api_token: str,
        api_base_url: str = "https://api.hubapi.com",
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_backoff: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HubSpot client.

        Args:
            api_token: HubSpot private app token
            api_base_url: HubSpot API base URL
            timeout: HTTP request timeout in seconds
            max_retries: Extra attempts for retryable failures
            retry_backoff: Backoff base; attempt n waits retry_backoff ** n seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

        # HTTP client
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
        )

        logger.info(f"HubSpotClient initialized (url: {self.api_base_url})")

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        idempotent: bool = True,
    ) -> Dict[str, Any]:
        """
        Makes an authenticated request to HubSpot API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (e.g., "/crm/v3/objects/contacts/batch/create")
            params: Query parameters
            json: JSON body for POST/PUT
            idempotent: False for calls that create records. Those are only
                retried when HubSpot cannot have processed them (429 or a
                failed connect), never after a 5xx or a read timeout.

        Returns:
            API response as dictionary (empty dict for empty bodies)

        Raises:
            HubSpotAPIError: If API returns an error, a body that is not a JSON
                object, or retries are exhausted
        """
        url = f"{self.api_base_url}{endpoint}"
        last_error: Optional[HubSpotAPIError] = None

        for attempt in range(self.max_retries + 1):
            retry_after: Optional[float] = None
            try:
                response = await self._client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json,
                )
            except httpx.RequestError as e:
                last_error = HubSpotAPIError(f"Network error: {e}")
                if not idempotent and not isinstance(e, UNSENT_REQUEST_ERRORS):
                    logger.error(f"HubSpot {method} {endpoint} not retried: {last_error}")
                    raise last_error
            else:
                if response.status_code < 400:
                    return self._parse_body(response)

                error_msg = f"HubSpot API error: {response.status_code} - {response.text}"
                last_error = HubSpotAPIError(error_msg, status_code=response.status_code)
                retryable = RETRYABLE_STATUS_CODES if idempotent else UNPROCESSED_STATUS_CODES
                if response.status_code not in retryable:
                    logger.error(error_msg)
                    raise last_error
                retry_after = self._parse_retry_after(response)

            if attempt < self.max_retries:
                wait_time = retry_after
                if wait_time is None:
                    wait_time = self.retry_backoff ** attempt
                logger.warning(
                    f"HubSpot {method} {endpoint} failed (attempt {attempt + 1}), "
                    f"retrying in {wait_time:.1f}s: {last_error}"
                )
                await asyncio.sleep(wait_time)

        logger.error(f"HubSpot {method} {endpoint} failed after {self.max_retries + 1} attempts")
        raise last_error

    @staticmethod
    def _parse_body(response: httpx.Response) -> Dict[str, Any]:
        """Decode a 2xx body; anything but a JSON object is a transport failure."""
        if not response.text or response.text.strip() == "":
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise HubSpotAPIError(
                f"HubSpot returned a non-JSON body ({response.status_code}): "
                f"{response.text[:200]}",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise HubSpotAPIError(
                f"HubSpot returned {type(body).__name__} instead of an object "
                f"({response.status_code})",
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> Optional[float]:
        """Read Retry-After (seconds) if present and numeric."""
        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return max(0.0, float(value))
        except ValueError:
            return None

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """GET request shorthand."""
        return await self.request("GET", endpoint, params=params)

    async def post(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        idempotent: bool = True,
    ) -> Dict[str, Any]:
        """POST request shorthand."""
        return await self.request(
            "POST", endpoint, params=params, json=json, idempotent=idempotent
        )

    # -------------------------------------------------------------------------
    # CRM objects
    # -------------------------------------------------------------------------

    async def batch_create(
        self,
        object_type: str,
        inputs: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        POST /crm/v3/objects/{object_type}/batch/create

        Not retried once HubSpot may have committed the batch: a second
        attempt would create duplicate records the correlation step never sees.
        """
        endpoint = f"/crm/v3/objects/{quote(object_type, safe='')}/batch/create"
        return await self.post(endpoint, json={"inputs": inputs}, idempotent=False)

    async def batch_read(
        self,
        object_type: str,
        ids: List[str],
        properties: List[str],
    ) -> Dict[str, Any]:
        """POST /crm/v3/objects/{object_type}/batch/read for the given ids."""
        endpoint = f"/crm/v3/objects/{quote(object_type, safe='')}/batch/read"
        body = {
            "properties": properties,
            "inputs": [{"id": remote_id} for remote_id in ids],
        }
        return await self.post(endpoint, json=body)

    async def list_schemas(self) -> List[Dict[str, Any]]:
        """GET /crm/v3/schemas (custom object definitions)."""
        response = await self.get("/crm/v3/schemas")
        return response.get("results", []) or []

    # -------------------------------------------------------------------------
    # Associations (v4)
    # -------------------------------------------------------------------------

    @staticmethod
    def _associations_path(from_type: str, to_type: str) -> str:
        return (
            f"/crm/v4/associations/{quote(from_type, safe='')}"
            f"/{quote(to_type, safe='')}"
        )

    async def list_association_labels(
        self,
        from_type: str,
        to_type: str,
    ) -> List[Dict[str, Any]]:
        """GET association labels for the direction from_type -> to_type."""
        response = await self.get(f"{self._associations_path(from_type, to_type)}/labels")
        return response.get("results", []) or []

    async def create_association_label(
        self,
        from_type: str,
        to_type: str,
        label: str,
        name: str,
        inverse_label: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a USER_DEFINED association label for from_type -> to_type."""
        payload: Dict[str, Any] = {"label": label, "name": name}
        if inverse_label:
            payload["inverseLabel"] = inverse_label
        return await self.post(
            f"{self._associations_path(from_type, to_type)}/labels",
            json=payload,
        )

    async def batch_create_associations(
        self,
        from_type: str,
        to_type: str,
        inputs: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """POST labeled associations from_type -> to_type in one batch."""
        return await self.post(
            f"{self._associations_path(from_type, to_type)}/batch/create",
            json={"inputs": inputs},
        )

    async def close(self):
        """Closes the HTTP client."""
        await self._client.aclose()
        logger.info("HubSpotClient closed")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
