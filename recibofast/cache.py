"""
Local durable cache: the client-side view of documents and tombstones.

The cache owns the live in-memory collections that the reconciler and the
mutation operations share, and writes them behind to SQLite. Persistence is
best-effort: a failed load keeps whatever is in memory and a failed save is
logged and reported as ``False``.

After a failed load the persisted rows are still authoritative: ``save`` only
removes rows this cache has read or written, ``is_deleted`` falls back to the
``deleted_document_ids`` table, and the next ``load`` folds the stored rows
back under the in-memory state.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recibofast.database import SessionLocal
from recibofast.models.document import ContractModel, DocumentModel, TombstoneModel
from recibofast.schemas import Contract, Document

logger = logging.getLogger(__name__)


class LocalCache:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory
        self.documents: dict[str, Document] = {}
        self.tombstones: set[str] = set()
        self.loaded = False
        self.load_failed = False
        # Row ids known to be in the documents table.
        self._persisted_ids: set[str] = set()

    # ── load ────────────────────────────────────────────────────────────
    def load(self) -> tuple[dict[str, Document], set[str]]:
        """Read documents and tombstones into memory.

        Returns ``(documents, tombstones)``. On a storage error the in-memory
        collections are kept as they are and ``load_failed`` is set; a later
        successful load merges the stored rows under them.
        """
        documents: dict[str, Document] = {}
        row_ids: set[str] = set()
        db = self._session_factory()
        try:
            tombstones = {row.id for row in db.query(TombstoneModel).all()}
            for row in db.query(DocumentModel).all():
                row_ids.add(row.id)
                try:
                    doc = Document(**row.document_json)
                except ValidationError as e:
                    logger.warning("Dropping unreadable cached document %s: %s", row.id, e)
                    continue
                documents[doc.id] = doc
        except SQLAlchemyError as e:
            logger.warning("Local cache load failed, keeping in-memory state: %s", e)
            self.loaded = True
            self.load_failed = True
            return self.documents, self.tombstones
        finally:
            db.close()

        if self.load_failed:
            # Anything written in memory since the failed load wins.
            documents.update(self.documents)
            tombstones |= self.tombstones
        self.tombstones = tombstones
        self.documents = {k: v for k, v in documents.items() if k not in tombstones}
        self._persisted_ids |= row_ids
        self.loaded = True
        self.load_failed = False
        logger.info(
            "Local cache loaded: %d documents, %d tombstones",
            len(self.documents), len(self.tombstones),
        )
        return self.documents, self.tombstones

    # ── save ────────────────────────────────────────────────────────────
    def save(self, documents: Optional[Iterable[Document]] = None) -> bool:
        """Write the document collection.

        Defaults to the current in-memory collection. Rows are upserted, and
        only rows this cache has read or written before are removed when
        their document is gone; rows it has never seen are left alone.
        """
        docs = list(self.documents.values() if documents is None else documents)
        keep = {doc.id for doc in docs}
        stale = self._persisted_ids - keep
        db = self._session_factory()
        try:
            if stale:
                db.query(DocumentModel).filter(DocumentModel.id.in_(sorted(stale))).delete(
                    synchronize_session=False
                )
            for doc in docs:
                db.merge(DocumentModel(id=doc.id, document_json=doc.model_dump(mode="json")))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Saving %d documents failed: %s", len(docs), e)
            return False
        finally:
            db.close()
        self._persisted_ids = keep
        return True

    def save_tombstones(self, tombstones: Optional[Iterable[str]] = None) -> bool:
        """Persist tombstoned ids. Rows are only ever added."""
        ids = set(self.tombstones if tombstones is None else tombstones)
        db = self._session_factory()
        try:
            existing = {row.id for row in db.query(TombstoneModel.id).all()}
            db.add_all(TombstoneModel(id=i) for i in sorted(ids - existing))
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Saving %d tombstones failed: %s", len(ids), e)
            return False
        finally:
            db.close()

    # ── contracts snapshot ──────────────────────────────────────────────
    def load_contracts(self) -> list[Contract]:
        db = self._session_factory()
        try:
            contracts = []
            for row in db.query(ContractModel).all():
                try:
                    contracts.append(Contract(**row.contract_json))
                except ValidationError as e:
                    logger.warning("Skipping unreadable contract %s: %s", row.id, e)
            return contracts
        except SQLAlchemyError as e:
            logger.warning("Loading contracts failed: %s", e)
            return []
        finally:
            db.close()

    def save_contracts(self, contracts: Iterable[Contract]) -> bool:
        contracts = list(contracts)
        db = self._session_factory()
        try:
            db.query(ContractModel).delete()
            db.add_all(
                ContractModel(id=c.id, contract_json=c.model_dump(mode="json"))
                for c in contracts
            )
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Saving %d contracts failed: %s", len(contracts), e)
            return False
        finally:
            db.close()

    # ── in-memory mutations ─────────────────────────────────────────────
    def is_deleted(self, document_id: str) -> bool:
        if document_id in self.tombstones:
            return True
        if not self.load_failed:
            return False
        db = self._session_factory()
        try:
            return db.query(TombstoneModel).filter(TombstoneModel.id == document_id).first() is not None
        except SQLAlchemyError as e:
            logger.warning("Tombstone lookup for %s failed: %s", document_id, e)
            return False
        finally:
            db.close()

    def put(self, document: Document) -> bool:
        """Insert or replace a document. Tombstoned ids are refused."""
        if self.is_deleted(document.id):
            return False
        self.documents[document.id] = document
        return True

    def discard(self, document_id: str) -> Optional[Document]:
        return self.documents.pop(document_id, None)

    def add_tombstone(self, document_id: str) -> None:
        """Mark a document deleted and hide it, then write both collections."""
        self.tombstones.add(document_id)
        self.documents.pop(document_id, None)
        self.save_tombstones()
        self.save()
