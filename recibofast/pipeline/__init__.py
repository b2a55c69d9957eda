"""
Receipt sync pipeline.

reconciler : load → fetch → merge → persist → generate
recurring  : pure recurring-receipt generator
merger     : tombstone-aware merge of remote listings
mutations  : create / delete / status / edit
listing    : display ordering, filters and totals
"""
from recibofast.pipeline.recurring import generate  # noqa: F401
from recibofast.pipeline.merger import merge_remote_documents  # noqa: F401
