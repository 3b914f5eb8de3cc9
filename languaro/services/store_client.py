"""
Supabase (PostgREST) client for upserting rows.

Writes go through POST with a merge-on-conflict directive; when the store
still answers 409 the write is retried as a PATCH filtered by the conflict key.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A store call failed; carries the store's message and HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class StoreResponse:
    status_code: int
    data: Any = None

    @property
    def created(self) -> bool:
        return self.status_code == 201


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response, fallback: str) -> str:
    payload = _decode(response)
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
    return response.reason_phrase or fallback


class StoreClient:
    """
    Minimal REST client for the hosted data store.

    Args:
        base_url: Project URL (https://<ref>.supabase.co)
        service_key: Service-role key, sent as apikey and bearer token
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self._transport = transport

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _headers(self, prefer: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Prefer": prefer,
        }

    async def _send(self, method: str, url: str, prefer: str, payload: Dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                return await client.request(method, url, headers=self._headers(prefer), json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Store request failed: {method} {url}: {e}")
            raise StoreError(f"Store request failed: {e}", status_code=502)

    async def upsert(
        self,
        table: str,
        record: Dict[str, Any],
        conflict_key: str = "email",
        return_representation: bool = True,
    ) -> StoreResponse:
        """
        Create-or-merge a row keyed by conflict_key.

        Args:
            table: Table name
            record: Row to write (must contain conflict_key)
            conflict_key: Unique column used for conflict resolution
            return_representation: Ask the store to echo the written row

        Returns:
            StoreResponse with the HTTP status and decoded body

        Raises:
            StoreError: If the record lacks conflict_key or the store rejects the write
        """
        prefer = "resolution=merge-duplicates"
        if return_representation:
            prefer += ",return=representation"

        if record.get(conflict_key) is None:
            raise StoreError(f"Record for {table} has no {conflict_key}")

        url = f"{self._table_url(table)}?on_conflict={quote(conflict_key, safe='')}"
        response = await self._send("POST", url, prefer, record)

        if response.status_code == 409:
            logger.info(f"Upsert into {table} conflicted on {conflict_key}, patching instead")
            fields = {key: value for key, value in record.items() if key != conflict_key}
            return await self.patch(table, {conflict_key: record.get(conflict_key)}, fields)

        if not response.is_success:
            message = _error_message(response, f"Failed to write to {table}")
            logger.error(f"Store upsert into {table} failed: status={response.status_code}, error={message}")
            raise StoreError(message, status_code=response.status_code)

        logger.info(f"Upserted row into {table} (status={response.status_code})")
        return StoreResponse(status_code=response.status_code, data=_decode(response))

    async def patch(self, table: str, match: Dict[str, Any], fields: Dict[str, Any]) -> StoreResponse:
        """
        Update the rows whose columns equal the values in match.

        Raises:
            StoreError: If the store rejects the update
        """
        filters = "&".join(
            f"{quote(str(column), safe='')}=eq.{quote(str(value), safe='')}"
            for column, value in match.items()
        )
        url = f"{self._table_url(table)}?{filters}"
        response = await self._send("PATCH", url, "return=representation", fields)

        if not response.is_success:
            message = _error_message(response, f"Failed to update {table}")
            logger.error(f"Store patch on {table} failed: status={response.status_code}, error={message}")
            raise StoreError(message, status_code=response.status_code)

        logger.info(f"Patched row in {table} (status={response.status_code})")
        return StoreResponse(status_code=response.status_code, data=_decode(response))
