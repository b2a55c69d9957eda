"""
Sync and contract snapshot endpoints.

POST /api/sync       : run one reconciliation pass (manual refresh)
GET  /api/contracts  : current contract snapshot
PUT  /api/contracts  : replace the snapshot (pushed by the contract subsystem)
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from recibofast.cache import LocalCache
from recibofast.dependencies import get_cache, get_reconciler
from recibofast.pipeline.reconciler import Reconciler
from recibofast.schemas import Contract, ContractSnapshot, ReconcileReport

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/sync", response_model=ReconcileReport)
async def sync(reconciler: Reconciler = Depends(get_reconciler)):
    return await reconciler.run()


@router.get("/contracts", response_model=list[Contract])
def list_contracts(cache: LocalCache = Depends(get_cache)):
    return cache.load_contracts()


@router.put("/contracts", response_model=list[Contract])
def replace_contracts(snapshot: ContractSnapshot, cache: LocalCache = Depends(get_cache)):
    if not cache.save_contracts(snapshot.contracts):
        raise HTTPException(status_code=503, detail="Contract snapshot could not be stored")
    logger.info("Stored contract snapshot with %d contracts", len(snapshot.contracts))
    return snapshot.contracts
