"""
Document API endpoints.

GET    /api/documents                : list (search / status filter, display order)
GET    /api/documents/summary        : totals for the current collection
GET    /api/documents/{id}           : get one document
POST   /api/documents                : create (local first, then remote)
PATCH  /api/documents/{id}           : edit fields
PATCH  /api/documents/{id}/status    : change status
DELETE /api/documents/{id}           : delete after password confirmation
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from recibofast.cache import LocalCache
from recibofast.dependencies import get_cache, get_mutations
from recibofast.exceptions import DocumentNotFoundError, ReauthenticationError
from recibofast.pipeline.listing import filter_documents, sort_for_display, summarize
from recibofast.pipeline.mutations import DocumentMutations
from recibofast.schemas import (
    CreateDocumentRequest,
    CreateResult,
    DeleteDocumentRequest,
    DeleteResult,
    Document,
    DocumentStatus,
    DocumentSummary,
    EditDocumentRequest,
    StatusUpdateRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# ── GET /api/documents ───────────────────────────────────────────────────
@router.get("/documents", response_model=list[Document])
def list_documents(
    search: Optional[str] = Query(default=None),
    status: Optional[DocumentStatus] = Query(default=None),
    cache: LocalCache = Depends(get_cache),
):
    docs = filter_documents(cache.documents.values(), search=search, status=status)
    logger.info("Listing %d of %d documents", len(docs), len(cache.documents))
    return sort_for_display(docs)


# ── GET /api/documents/summary ───────────────────────────────────────────
@router.get("/documents/summary", response_model=DocumentSummary)
def documents_summary(
    search: Optional[str] = Query(default=None),
    status: Optional[DocumentStatus] = Query(default=None),
    cache: LocalCache = Depends(get_cache),
):
    return summarize(filter_documents(cache.documents.values(), search=search, status=status))


# ── GET /api/documents/{document_id} ─────────────────────────────────────
@router.get("/documents/{document_id}", response_model=Document)
def get_document(document_id: str, cache: LocalCache = Depends(get_cache)):
    doc = cache.documents.get(document_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


# ── POST /api/documents ──────────────────────────────────────────────────
@router.post("/documents", response_model=CreateResult, status_code=201)
async def create_document(
    req: CreateDocumentRequest,
    mutations: DocumentMutations = Depends(get_mutations),
):
    result = await mutations.create(req)
    if not result.synced:
        logger.info("Document %s kept local-only (not yet synced)", result.document.id)
    return result


# ── PATCH /api/documents/{document_id} ───────────────────────────────────
@router.patch("/documents/{document_id}", response_model=Document)
def edit_document(
    document_id: str,
    req: EditDocumentRequest,
    mutations: DocumentMutations = Depends(get_mutations),
):
    try:
        return mutations.edit(document_id, req)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── PATCH /api/documents/{document_id}/status ────────────────────────────
@router.patch("/documents/{document_id}/status", response_model=Document)
def update_document_status(
    document_id: str,
    req: StatusUpdateRequest,
    mutations: DocumentMutations = Depends(get_mutations),
):
    try:
        return mutations.update_status(document_id, req.status)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── DELETE /api/documents/{document_id} ──────────────────────────────────
@router.delete("/documents/{document_id}", response_model=DeleteResult)
async def delete_document(
    document_id: str,
    req: DeleteDocumentRequest,
    mutations: DocumentMutations = Depends(get_mutations),
):
    try:
        return await mutations.delete(document_id, req.password)
    except ReauthenticationError as e:
        logger.warning("Delete of %s refused: %s", document_id, e)
        raise HTTPException(status_code=401, detail="Password confirmation failed, try again")
