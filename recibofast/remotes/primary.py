"""
Primary store client: the REST backend's /receipts resource.

GET    /receipts?page=&limit=   paginated listing {items, total, ...}
POST   /receipts                create (canonical numero assigned here)
DELETE /receipts/{id}           remove
GET    /health                  availability probe
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from recibofast.config import settings
from recibofast.remotes.base import RemoteSource
from recibofast.remotes.mapping import map_primary_record
from recibofast.schemas import Document

logger = logging.getLogger(__name__)

# Upper bound on pages walked by one listing
MAX_PAGES = 1000


class PrimaryReceiptsApi(RemoteSource):
    name = "primary"

    def __init__(
        self,
        base_url: str = settings.PRIMARY_API_URL,
        token: str = settings.PRIMARY_API_TOKEN,
        page_size: int = settings.PRIMARY_PAGE_SIZE,
        timeout: float = settings.REMOTE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.page_size = page_size
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.client.headers.update(headers)

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def probe_availability(self) -> bool:
        if not self.configured:
            return False
        try:
            response = await self.client.get("/health")
            return response.is_success
        except httpx.HTTPError as e:
            logger.info("Primary store unreachable: %s", e)
            return False

    async def list(self, page: int = 1, page_size: Optional[int] = None) -> Optional[dict[str, Any]]:
        """Fetch one page. Returns ``{"items": [...], "total": n}`` or None."""
        limit = page_size or self.page_size
        try:
            response = await self.client.get("/receipts", params={"page": page, "limit": limit})
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Primary list page %d failed: %s", page, e)
            return None
        if not isinstance(body, dict) or not isinstance(body.get("items"), list):
            logger.warning("Primary list page %d returned an unexpected body", page)
            return None
        total = body.get("total")
        return {"items": body["items"], "total": total if isinstance(total, int) else len(body["items"])}

    async def list_records(self) -> Optional[list[dict[str, Any]]]:
        records: list[dict[str, Any]] = []
        page = 1
        while page <= MAX_PAGES:
            result = await self.list(page=page)
            if result is None:
                return None
            items = result["items"]
            records.extend(items)
            if not items or len(records) >= result["total"]:
                break
            page += 1
        logger.info("Primary listed %d records over %d page(s)", len(records), page)
        return records

    async def create(self, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        try:
            response = await self.client.post("/receipts", json=payload)
            response.raise_for_status()
            record = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Primary create failed: %s", e)
            return None
        return record if isinstance(record, dict) else None

    async def remove(self, record_id: str) -> bool:
        try:
            response = await self.client.delete(f"/receipts/{record_id}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Primary remove %s failed: %s", record_id, e)
            return False
        return True

    def map_record(self, raw: dict[str, Any]) -> Document:
        return map_primary_record(raw)

    def build_create_payload(self, document: Document) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "income_id": document.income_id,
            "signature_id": document.signature_ref,
            "contract_id": document.contract_id,
        }
        if document.issuer_override is not None:
            payload["issuer_name"] = document.issuer_override.name
            payload["issuer_document"] = document.issuer_override.document
        return {k: v for k, v in payload.items() if v is not None}

    async def aclose(self) -> None:
        await self.client.aclose()
