"""HTTP client for a JSON learning-record API.

Endpoints:
    GET  /v1/account         -> {"status": "available" | "no_account" | ...}
    GET  /v1/records         -> {"records": [<record>, ...]}
    PUT  /v1/records         <- {"records": [<record>, ...]}  (upsert by id)
    POST /v1/records/delete  <- {"ids": ["<uuid>", ...]}

Every request is bounded by a timeout (30 s by default); a timeout counts
as a failure like any other transport error.
"""

from __future__ import annotations

import logging
import uuid
from urllib.parse import urlparse

import httpx

from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..exceptions import GatewayError
from ..models import LearningRecord
from .gateway import RecordGateway, decode_records, record_to_wire
from .status import AccountState

logger = logging.getLogger(__name__)

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


class HttpRecordGateway(RecordGateway):
    """Record gateway speaking JSON over HTTPS.

    Args:
        api_url: Service base URL (HTTPS unless localhost)
        api_key: Bearer token
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_url = api_url.rstrip("/")

        # Refuse to send the bearer token in cleartext to a remote host
        if not self._api_url.startswith("https://"):
            host = urlparse(self._api_url).hostname or ""
            if host not in _LOCAL_HOSTS:
                raise ValueError(
                    f"Record API URL must use HTTPS (got {self._api_url}). "
                    "Use HTTPS to protect API credentials, or use localhost for local development."
                )

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = httpx.Client(
            base_url=self._api_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def account_status(self) -> AccountState:
        try:
            resp = self._client.get("/v1/account")
            if resp.status_code == 401:
                return AccountState.NO_ACCOUNT
            if resp.status_code == 403:
                return AccountState.RESTRICTED
            resp.raise_for_status()
            status = resp.json().get("status")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            raise GatewayError(f"Account query failed: {e}") from e

        try:
            return AccountState(status)
        except ValueError:
            logger.debug(f"Unrecognized account status {status!r}")
            return AccountState.UNKNOWN

    def save(self, records: list[LearningRecord]) -> None:
        payload = {"records": [record_to_wire(r) for r in records]}
        try:
            resp = self._client.put("/v1/records", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GatewayError(
                f"Record upload rejected: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Record upload failed: {e}") from e

    def delete(self, ids: list[uuid.UUID]) -> None:
        payload = {"ids": [str(record_id) for record_id in ids]}
        try:
            resp = self._client.post("/v1/records/delete", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GatewayError(
                f"Record delete rejected: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Record delete failed: {e}") from e

    def fetch_all(self) -> list[LearningRecord]:
        try:
            resp = self._client.get("/v1/records")
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise GatewayError(f"Record fetch rejected: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise GatewayError(f"Record fetch failed: {e}") from e

        items = data.get("records") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise GatewayError("Record fetch returned no 'records' list")
        return decode_records(items)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __repr__(self) -> str:
        return f"HttpRecordGateway({self._api_url!r})"
