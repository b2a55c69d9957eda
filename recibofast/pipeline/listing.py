"""
Display helpers for the document list: ordering, search/status filter and
summary totals.
"""
from __future__ import annotations

from typing import Iterable, Optional

from recibofast.schemas import Document, DocumentStatus, DocumentSummary


def sort_for_display(documents: Iterable[Document]) -> list[Document]:
    """Newest issue date first; label breaks ties."""
    by_label = sorted(documents, key=lambda d: d.sequence_label)
    return sorted(by_label, key=lambda d: d.issue_date, reverse=True)


def filter_documents(
    documents: Iterable[Document],
    search: Optional[str] = None,
    status: Optional[DocumentStatus] = None,
) -> list[Document]:
    term = (search or "").strip().lower()
    result = []
    for doc in documents:
        if status is not None and doc.status != status:
            continue
        if term and not any(
            term in value.lower()
            for value in (doc.payer_name, doc.sequence_label, doc.description)
        ):
            continue
        result.append(doc)
    return result


def summarize(documents: Iterable[Document]) -> DocumentSummary:
    docs = list(documents)
    return DocumentSummary(
        count=len(docs),
        total_amount=round(sum(d.amount for d in docs), 2),
        paid=sum(1 for d in docs if d.status == DocumentStatus.PAID),
        overdue=sum(1 for d in docs if d.status == DocumentStatus.OVERDUE),
    )
