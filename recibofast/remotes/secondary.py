"""
Secondary store client: PostgREST view of the rf_receipts table.

Best-effort mirror of the primary store; only a minimal projection of each
receipt is read back.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from recibofast.config import settings
from recibofast.remotes.base import RemoteSource
from recibofast.remotes.mapping import map_secondary_record
from recibofast.schemas import Document

logger = logging.getLogger(__name__)

TABLE_PATH = "/rest/v1/rf_receipts"
SELECT_COLUMNS = "id,numero,emitido_em,signature_id,contract_id,created_at"


class SecondaryReceiptsStore(RemoteSource):
    name = "secondary"

    def __init__(
        self,
        base_url: str = settings.SECONDARY_URL,
        api_key: str = settings.SECONDARY_API_KEY,
        owner_id: str = settings.SECONDARY_OWNER_ID,
        timeout: float = settings.REMOTE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.owner_id = owner_id
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.client.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def probe_availability(self) -> bool:
        if not self.configured:
            return False
        try:
            response = await self.client.get(TABLE_PATH, params={"select": "id", "limit": 1})
            return response.is_success
        except httpx.HTTPError as e:
            logger.info("Secondary store unreachable: %s", e)
            return False

    async def list_records(self) -> Optional[list[dict[str, Any]]]:
        params = {"select": SELECT_COLUMNS, "order": "created_at.desc"}
        if self.owner_id:
            params["owner_id"] = f"eq.{self.owner_id}"
        try:
            response = await self.client.get(TABLE_PATH, params=params)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Secondary list failed: %s", e)
            return None
        if not isinstance(body, list):
            logger.warning("Secondary list returned an unexpected body")
            return None
        logger.info("Secondary listed %d records", len(body))
        return body

    async def create(self, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        body = {"income_id": None, "pdf_url": None, "hash": None, **payload}
        if self.owner_id:
            body["owner_id"] = self.owner_id
        try:
            response = await self.client.post(
                TABLE_PATH,
                json=body,
                params={"select": SELECT_COLUMNS},
                headers={"Prefer": "return=representation"},
            )
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Secondary create failed: %s", e)
            return None
        # PostgREST returns the inserted rows as a list
        if isinstance(rows, list):
            rows = rows[0] if rows else None
        return rows if isinstance(rows, dict) else None

    async def remove(self, record_id: str) -> bool:
        try:
            response = await self.client.delete(TABLE_PATH, params={"id": f"eq.{record_id}"})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Secondary remove %s failed: %s", record_id, e)
            return False
        return True

    def map_record(self, raw: dict[str, Any]) -> Document:
        return map_secondary_record(raw)

    def build_create_payload(self, document: Document) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if document.signature_ref is not None:
            payload["signature_id"] = document.signature_ref
        if document.contract_id is not None:
            payload["contract_id"] = document.contract_id
        return payload

    async def aclose(self) -> None:
        await self.client.aclose()
