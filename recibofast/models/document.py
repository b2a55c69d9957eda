"""
SQLAlchemy models for the local durable cache.

documents            -> logical key ``documents``
deleted_document_ids -> logical key ``deletedDocumentIds``
contracts            -> logical key ``contracts``
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, JSON, String

from recibofast.database import Base


class DocumentModel(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True)
    document_json = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TombstoneModel(Base):
    """Deleted document id (never removed once written)"""
    __tablename__ = "deleted_document_ids"

    id = Column(String, primary_key=True)
    deleted_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ContractModel(Base):
    """Snapshot of a contract owned by the contract subsystem"""
    __tablename__ = "contracts"

    id = Column(String, primary_key=True)
    contract_json = Column(JSON, nullable=False)
