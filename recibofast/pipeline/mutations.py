"""
Mutation operations: create, delete, status change and edit.

Every mutation lands in the local cache first; remote propagation is
best-effort and never undoes the local effect.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Callable, Optional

from recibofast.auth import Authenticator
from recibofast.cache import LocalCache
from recibofast.exceptions import DocumentNotFoundError, MappingError, ReauthenticationError
from recibofast.remotes.base import RemoteSource
from recibofast.schemas import (
    CreateDocumentRequest,
    CreateResult,
    DeleteResult,
    Document,
    DocumentStatus,
    EditDocumentRequest,
    IssuerOverride,
)

logger = logging.getLogger(__name__)


def is_remote_id(document_id: str) -> bool:
    """True for ids shaped like a store-assigned UUID."""
    try:
        uuid.UUID(document_id)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def resolve_signature(
    issuer_override: Optional[IssuerOverride],
    requested: Optional[str],
    default: Optional[str],
) -> Optional[str]:
    # An override always signs with its own signature, even when it has none.
    if issuer_override is not None:
        return issuer_override.signature_ref
    return requested or default or None


class DocumentMutations:
    def __init__(
        self,
        cache: LocalCache,
        primary: RemoteSource,
        secondary: RemoteSource,
        authenticator: Authenticator,
        default_signature_ref: str = "",
        payment_method: str = "PIX",
        clock: Callable[[], date] = date.today,
    ):
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.authenticator = authenticator
        self.default_signature_ref = default_signature_ref
        self.payment_method = payment_method
        self.clock = clock

    # ── create ──────────────────────────────────────────────────────────
    def _provisional_label(self) -> str:
        return f"RB-{len(self.cache.documents) + 1:03d}"

    def build_local(self, req: CreateDocumentRequest) -> Document:
        label = (req.sequence_label or "").strip() or self._provisional_label()
        return Document(
            id=str(uuid.uuid4()),
            sequence_label=label,
            payer_name=req.payer_name.strip() or "Cliente",
            payer_document=req.payer_document or None,
            amount=req.amount,
            issue_date=req.issue_date or self.clock().isoformat(),
            description=req.description,
            payment_method=req.payment_method or self.payment_method,
            status=DocumentStatus.ISSUED,
            use_logo=req.use_logo,
            logo_ref=req.logo_ref,
            signature_ref=resolve_signature(
                req.issuer_override, req.signature_ref, self.default_signature_ref
            ),
            issuer_override=req.issuer_override,
            contract_id=req.contract_id,
            income_id=req.income_id,
            synced=False,
        )

    async def _settle(self, provisional: Document, confirmed: Document, source: RemoteSource) -> Document:
        current = self.cache.discard(provisional.id) or provisional
        update = {"id": confirmed.id, "synced": True}
        if confirmed.sequence_label:
            update["sequence_label"] = confirmed.sequence_label
        settled = current.model_copy(update=update)

        if self.cache.is_deleted(provisional.id):
            # Deleted while the create was in flight: the canonical id is dead too.
            logger.info("Document %s deleted during create, dropping %s", provisional.id, confirmed.id)
            self.cache.add_tombstone(confirmed.id)
            await source.remove(confirmed.id)
            return settled

        self.cache.put(settled)
        self.cache.save()
        return settled

    async def create(self, req: CreateDocumentRequest) -> CreateResult:
        """Create a document, primary store first, then the secondary.

        Always settles: when neither store accepts the record it is kept
        local-only and reported as not synced.
        """
        document = self.build_local(req)
        self.cache.put(document)
        self.cache.save()
        logger.info("Created local document %s (%s)", document.id, document.sequence_label)

        for source in (self.primary, self.secondary):
            record = await source.create(source.build_create_payload(document))
            if record is None:
                continue
            try:
                confirmed = source.map_record(record)
            except MappingError as e:
                logger.warning("Unusable %s create response: %s", source.name, e)
                continue
            settled = await self._settle(document, confirmed, source)
            logger.info("Document %s confirmed by %s as %s", document.id, source.name, settled.id)
            return CreateResult(document=settled, synced=True, source=source.name)

        logger.warning("Document %s not yet synced: no remote store accepted it", document.id)
        return CreateResult(document=self.cache.documents.get(document.id, document), synced=False)

    # ── delete ──────────────────────────────────────────────────────────
    def _remote_candidate(self, document_id: str) -> bool:
        if not is_remote_id(document_id):
            return False
        doc = self.cache.documents.get(document_id)
        return doc is None or doc.synced

    async def delete(self, document_id: str, password: str) -> DeleteResult:
        """Delete after password confirmation.

        The tombstone is written before any remote call, whatever the remote
        outcome turns out to be.

        Raises:
            ReauthenticationError: password not confirmed; nothing changed
        """
        if not await self.authenticator.verify_password(password):
            raise ReauthenticationError("Password confirmation failed")

        remote_candidate = self._remote_candidate(document_id)
        self.cache.add_tombstone(document_id)
        logger.info("Tombstoned document %s", document_id)

        result = DeleteResult(id=document_id)
        if not remote_candidate:
            return result

        result.remote_attempted = True
        for source in (self.primary, self.secondary):
            if await source.remove(document_id):
                result.remote_removed = True
                result.source = source.name
                break
        else:
            logger.warning("Remote removal of %s failed on every store", document_id)
        return result

    # ── status / edit ───────────────────────────────────────────────────
    def _require(self, document_id: str) -> Document:
        doc = self.cache.documents.get(document_id)
        if doc is None or self.cache.is_deleted(document_id):
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return doc

    def update_status(self, document_id: str, status: DocumentStatus) -> Document:
        doc = self._require(document_id)
        updated = doc.model_copy(update={"status": status})
        self.cache.put(updated)
        self.cache.save()
        logger.info("Document %s status %s -> %s", document_id, doc.status.value, status.value)
        return updated

    def edit(self, document_id: str, req: EditDocumentRequest) -> Document:
        doc = self._require(document_id)
        changes = {name: getattr(req, name) for name in req.model_fields_set}
        changes = {
            k: v for k, v in changes.items()
            if v is not None or Document.model_fields[k].default is None
        }
        updated = doc.model_copy(update=changes)
        if updated.issuer_override is not None:
            updated = updated.model_copy(
                update={"signature_ref": updated.issuer_override.signature_ref}
            )
        self.cache.put(updated)
        self.cache.save()
        logger.info("Edited document %s (%s)", document_id, ", ".join(sorted(changes)) or "no changes")
        return updated
