"""
Shared pytest fixtures: in‑memory SQLite cache, fake remote stores,
engine components and a FastAPI TestClient.
"""
from __future__ import annotations

import asyncio
import uuid
from datetime import date
from typing import Any, Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recibofast.auth import Authenticator
from recibofast.cache import LocalCache
from recibofast.config import settings
from recibofast.database import Base
from recibofast.models import DocumentModel  # noqa: F401 : register models
from recibofast.pipeline.mutations import DocumentMutations
from recibofast.pipeline.reconciler import Reconciler
from recibofast.remotes.base import RemoteSource
from recibofast.remotes.mapping import map_primary_record, map_secondary_record
from recibofast.schemas import Document

TODAY = date(2025, 1, 10)
PASSWORD = "s3cret"

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


class BrokenSession:
    """Session whose every query fails like a locked/corrupt database."""

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    def merge(self, *args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    def rollback(self):
        pass

    def close(self):
        pass


class FailingOnceSessions:
    """Session factory whose first session is broken, later ones are real."""

    def __init__(self, factory=_Session):
        self._factory = factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls == 1:
            return BrokenSession()
        return self._factory()


class FakeRemote(RemoteSource):
    """In-memory remote store with switchable failures."""

    def __init__(self, name: str, mapper: Callable[[Any], Document], records=None):
        self.name = name
        self._mapper = mapper
        self.records: list[dict] = list(records or [])
        self.available = True
        self.list_fails = False
        self.list_raises = False
        self.create_fails = False
        self.remove_fails = False
        self.gate: Optional[asyncio.Event] = None
        self.listing_started = asyncio.Event()
        self.created: list[dict] = []
        self.removed: list[str] = []
        self._numero = 100

    async def probe_availability(self) -> bool:
        return self.available

    async def list_records(self):
        self.listing_started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.list_raises:
            raise RuntimeError("connection reset")
        if self.list_fails:
            return None
        return [dict(r) for r in self.records]

    async def create(self, payload):
        if self.create_fails:
            return None
        self._numero += 1
        record = {"id": str(uuid.uuid4()), "numero": self._numero, **payload}
        self.created.append(payload)
        self.records.append(record)
        return record

    async def remove(self, record_id):
        if self.remove_fails:
            return False
        self.removed.append(record_id)
        self.records = [r for r in self.records if r["id"] != record_id]
        return True

    def map_record(self, raw):
        return self._mapper(raw)

    def build_create_payload(self, document):
        payload = {"signature_id": document.signature_ref, "contract_id": document.contract_id}
        return {k: v for k, v in payload.items() if v is not None}


class FakeAuthenticator(Authenticator):
    def __init__(self, password: str = PASSWORD):
        self.password = password
        self.calls = 0

    async def verify_password(self, password: str) -> bool:
        self.calls += 1
        return password == self.password


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def session_factory():
    return _Session


@pytest.fixture()
def cache():
    c = LocalCache(session_factory=_Session)
    c.load()
    return c


@pytest.fixture()
def primary():
    return FakeRemote("primary", map_primary_record)


@pytest.fixture()
def secondary():
    return FakeRemote("secondary", map_secondary_record)


@pytest.fixture()
def authenticator():
    return FakeAuthenticator()


@pytest.fixture()
def reconciler(cache, primary, secondary):
    return Reconciler(cache, primary, secondary, clock=lambda: TODAY)


@pytest.fixture()
def mutations(cache, primary, secondary, authenticator):
    return DocumentMutations(
        cache,
        primary,
        secondary,
        authenticator,
        default_signature_ref="sig-account",
        clock=lambda: TODAY,
    )


@pytest.fixture()
def client(cache, reconciler, mutations, monkeypatch):
    from recibofast.main import app

    monkeypatch.setattr(settings, "SYNC_ON_STARTUP", False)
    app.state.cache = cache
    app.state.reconciler = reconciler
    app.state.mutations = mutations
    app.state.remotes = []
    with TestClient(app) as c:
        yield c
    for name in ("cache", "reconciler", "mutations", "remotes"):
        delattr(app.state, name)
