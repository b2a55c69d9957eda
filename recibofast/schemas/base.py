"""
recibofast-contracts: Canonical schemas for the receipt sync engine.

Every component (cache, adapters, generator, reconciler, mutations)
produces and consumes these Pydantic v2 models.
"""
from __future__ import annotations

import re
import uuid
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def check_issue_date(value: Optional[str]) -> Optional[str]:
    """Accept ``YYYY-MM-DD`` naming a real day; empty and None pass through."""
    if not value:
        return value
    if not _ISO_DATE.match(value):
        raise ValueError("issue_date must be YYYY-MM-DD")
    date.fromisoformat(value)
    return value


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class DocumentStatus(str, Enum):
    ISSUED = "issued"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    SUSPENDED = "suspended"
    REVOKED = "revoked"


class IssuerOverride(BaseModel):
    """Issuer emitting the receipt on behalf of someone else."""
    name: str
    document: str = ""
    signature_ref: Optional[str] = Field(
        default=None, description="The override's own signature, never the account default"
    )


class Document(BaseModel):
    """A single receipt as held by the local cache."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sequence_label: str = ""
    payer_name: str = ""
    payer_document: Optional[str] = None
    amount: float = Field(default=0.0, ge=0)
    issue_date: str = Field(default="", description="YYYY-MM-DD, empty when unknown")
    description: str = ""
    payment_method: str = ""
    status: DocumentStatus = DocumentStatus.ISSUED
    use_logo: bool = False
    logo_ref: Optional[str] = None
    signature_ref: Optional[str] = None
    issuer_override: Optional[IssuerOverride] = None
    contract_id: Optional[str] = None
    income_id: Optional[str] = None
    synced: bool = False

    @field_validator("issue_date")
    @classmethod
    def validate_issue_date(cls, v: str) -> str:
        return check_issue_date(v)


# ---------------------------------------------------------------------------
# Contracts (read-only snapshot)
# ---------------------------------------------------------------------------

class Contract(BaseModel):
    id: str
    number: str = ""
    recurrence_enabled: bool = False
    recurrence_day_of_month: Optional[int] = None
    monthly_amount: float = Field(default=0.0, ge=0)
    payer_name: str = ""
    payer_document: Optional[str] = None
    description: str = ""
    signature_ref: Optional[str] = None


# ---------------------------------------------------------------------------
# Reconciliation report
# ---------------------------------------------------------------------------

class SourceStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


class SourceReport(BaseModel):
    name: str
    status: SourceStatus = SourceStatus.UNAVAILABLE
    fetched: int = 0
    skipped_malformed: int = 0


class ReconcileReport(BaseModel):
    sources: list[SourceReport] = Field(default_factory=list)
    merged: int = 0
    skipped_tombstoned: int = 0
    generated: int = 0
    total_documents: int = 0


# ---------------------------------------------------------------------------
# Mutation results
# ---------------------------------------------------------------------------

class CreateResult(BaseModel):
    document: Document
    synced: bool = False
    source: Optional[str] = Field(
        default=None, description="primary | secondary | None when kept local-only"
    )


class DeleteResult(BaseModel):
    id: str
    remote_attempted: bool = False
    remote_removed: bool = False
    source: Optional[str] = None


class DocumentSummary(BaseModel):
    count: int = 0
    total_amount: float = 0.0
    paid: int = 0
    overdue: int = 0


# ---------------------------------------------------------------------------
# API request envelopes
# ---------------------------------------------------------------------------

class CreateDocumentRequest(BaseModel):
    sequence_label: Optional[str] = None
    payer_name: str = ""
    payer_document: Optional[str] = None
    amount: float = Field(default=0.0, ge=0)
    issue_date: Optional[str] = None
    description: str = ""
    payment_method: Optional[str] = None
    use_logo: bool = False
    logo_ref: Optional[str] = None
    signature_ref: Optional[str] = None
    issuer_override: Optional[IssuerOverride] = None
    contract_id: Optional[str] = None
    income_id: Optional[str] = None

    @field_validator("issue_date")
    @classmethod
    def validate_issue_date(cls, v: Optional[str]) -> Optional[str]:
        return check_issue_date(v)


class EditDocumentRequest(BaseModel):
    sequence_label: Optional[str] = None
    payer_name: Optional[str] = None
    payer_document: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    issue_date: Optional[str] = None
    description: Optional[str] = None
    payment_method: Optional[str] = None
    status: Optional[DocumentStatus] = None
    use_logo: Optional[bool] = None
    logo_ref: Optional[str] = None
    signature_ref: Optional[str] = None
    issuer_override: Optional[IssuerOverride] = None

    @field_validator("issue_date")
    @classmethod
    def validate_issue_date(cls, v: Optional[str]) -> Optional[str]:
        return check_issue_date(v)


class StatusUpdateRequest(BaseModel):
    status: DocumentStatus


class DeleteDocumentRequest(BaseModel):
    password: str


class ContractSnapshot(BaseModel):
    contracts: list[Contract] = Field(default_factory=list)
