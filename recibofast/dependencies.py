"""
FastAPI dependencies: engine components living on ``app.state``.
"""
from fastapi import Request

from recibofast.cache import LocalCache
from recibofast.pipeline.mutations import DocumentMutations
from recibofast.pipeline.reconciler import Reconciler


def get_cache(request: Request) -> LocalCache:
    return request.app.state.cache


def get_reconciler(request: Request) -> Reconciler:
    return request.app.state.reconciler


def get_mutations(request: Request) -> DocumentMutations:
    return request.app.state.mutations
