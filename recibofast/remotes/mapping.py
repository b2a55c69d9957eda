"""
Remote record → Document mapping.

Each remote schema is validated by its own record model. A mapped Document
only marks as explicitly set the fields its source carries, so a merge can
overlay exactly those fields on an existing local entry.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, Field, ValidationError

from recibofast.exceptions import MappingError
from recibofast.schemas import Document, IssuerOverride, check_issue_date

logger = logging.getLogger(__name__)

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


# ---------------------------------------------------------------------------
# Remote record schemas
# ---------------------------------------------------------------------------

class PrimaryReceiptRecord(BaseModel):
    """rf_receipts row as served by the REST backend."""
    id: str = Field(..., min_length=1)
    owner_id: Optional[str] = None
    income_id: Optional[str] = None
    numero: Optional[int] = None
    emitido_em: Optional[str] = None
    pdf_url: Optional[str] = None
    hash: Optional[str] = None
    signature_id: Optional[str] = None
    issuer_name: Optional[str] = None
    issuer_document: Optional[str] = None
    contract_id: Optional[str] = None
    created_at: Optional[str] = None


class SecondaryReceiptRecord(BaseModel):
    """Minimal rf_receipts projection served by PostgREST."""
    id: str = Field(..., min_length=1)
    numero: Optional[int] = None
    emitido_em: Optional[str] = None
    signature_id: Optional[str] = None
    contract_id: Optional[str] = None
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_date(*candidates: Optional[str]) -> str:
    for value in candidates:
        if not value or not _DATE_PREFIX.match(value):
            continue
        try:
            return check_issue_date(value[:10])
        except ValueError:
            continue
    return ""


def _validate(model: type[BaseModel], raw: Any) -> BaseModel:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise MappingError(f"malformed {model.__name__}: {e.error_count()} error(s)") from e


def _common_fields(rec: PrimaryReceiptRecord | SecondaryReceiptRecord) -> dict[str, Any]:
    present = rec.model_fields_set
    fields: dict[str, Any] = {"id": rec.id, "synced": True}
    if "numero" in present:
        fields["sequence_label"] = "" if rec.numero is None else str(rec.numero)
    if present & {"emitido_em", "created_at"}:
        fields["issue_date"] = _as_date(rec.emitido_em, rec.created_at)
    if "signature_id" in present:
        fields["signature_ref"] = rec.signature_id
    if "contract_id" in present:
        fields["contract_id"] = rec.contract_id
    return fields


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def map_primary_record(raw: Any) -> Document:
    rec = _validate(PrimaryReceiptRecord, raw)
    fields = _common_fields(rec)
    present = rec.model_fields_set
    if "income_id" in present:
        fields["income_id"] = rec.income_id
    if "issuer_name" in present:
        fields["issuer_override"] = (
            IssuerOverride(
                name=rec.issuer_name,
                document=rec.issuer_document or "",
                signature_ref=rec.signature_id,
            )
            if rec.issuer_name
            else None
        )
    return Document(**fields)


def map_secondary_record(raw: Any) -> Document:
    rec = _validate(SecondaryReceiptRecord, raw)
    return Document(**_common_fields(rec))


def map_records(
    raw_records: Iterable[Any],
    mapper: Callable[[Any], Document],
    source_name: str = "remote",
) -> tuple[list[Document], int]:
    """Map a listing, skipping malformed records.

    Returns ``(documents, skipped_count)``.
    """
    documents: list[Document] = []
    skipped = 0
    for raw in raw_records:
        try:
            documents.append(mapper(raw))
        except MappingError as e:
            skipped += 1
            logger.warning("Skipping %s record: %s", source_name, e)
    return documents, skipped


def overlay(local: Document, remote: Document) -> Document:
    """Overwrite ``local`` with the fields ``remote`` actually carries."""
    update = {name: getattr(remote, name) for name in remote.model_fields_set}
    return local.model_copy(update=update)
