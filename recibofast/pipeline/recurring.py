"""
Recurring generator: receipts synthesized from recurring contracts.

A contract yields at most one receipt per calendar month, and only while its
recurrence day this month is between today and ten days ahead.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Iterable

from recibofast.schemas import Contract, Document, DocumentStatus

LOOKAHEAD_DAYS = 10
MIN_DAY = 1
MAX_DAY = 28


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _valid_day(day) -> bool:
    return isinstance(day, int) and not isinstance(day, bool) and MIN_DAY <= day <= MAX_DAY


def _existing_months(documents: Iterable[Document]) -> set[tuple[str, str]]:
    """``(contract_id, "YYYY-MM")`` pairs already covered by a document."""
    return {
        (doc.contract_id, doc.issue_date[:7])
        for doc in documents
        if doc.contract_id and doc.issue_date
    }


def _auto_label(target: date, contract: Contract) -> str:
    return f"RB-AUTO-{target.year:04d}{target.month:02d}-{contract.number or '000'}"


def _description(contract: Contract) -> str:
    if contract.description:
        return f"Contrato {contract.number} - {contract.description}"
    return f"Contrato {contract.number}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate(
    today: date,
    contracts: Iterable[Contract],
    existing_documents: Iterable[Document],
    payment_method: str = "PIX",
) -> list[Document]:
    """Compute the receipts due for recurring contracts.

    Pure: nothing is stored. Calling again with the returned documents merged
    into ``existing_documents`` returns an empty list.
    """
    covered = _existing_months(existing_documents)
    created: list[Document] = []

    for contract in contracts:
        if not contract.recurrence_enabled or not _valid_day(contract.recurrence_day_of_month):
            continue

        target = date(today.year, today.month, contract.recurrence_day_of_month)
        diff_days = (target - today).days
        if diff_days < 0 or diff_days > LOOKAHEAD_DAYS:
            continue

        key = (contract.id, month_key(target))
        if key in covered:
            continue
        covered.add(key)

        created.append(
            Document(
                id=str(uuid.uuid4()),
                sequence_label=_auto_label(target, contract),
                payer_name=contract.payer_name or "Cliente",
                payer_document=contract.payer_document or None,
                amount=contract.monthly_amount,
                issue_date=target.isoformat(),
                description=_description(contract),
                payment_method=payment_method,
                status=DocumentStatus.ISSUED,
                use_logo=True,
                signature_ref=contract.signature_ref or None,
                contract_id=contract.id,
            )
        )

    return created
