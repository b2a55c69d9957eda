"""
Merge engine: folds remote listings into the local collection.

Rules:
- a record whose id is tombstoned is skipped, checked per record at the
  moment it is merged;
- otherwise the fields the remote carries overwrite the local entry with the
  same id, or the record is added;
- local entries absent from every listing are kept.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from recibofast.remotes.mapping import overlay
from recibofast.schemas import Document


@dataclass
class MergeOutcome:
    documents: dict[str, Document]
    merged: int = 0
    skipped_tombstoned: int = 0


def merge_remote_documents(
    local_documents: Mapping[str, Document],
    remote_batches: Sequence[Iterable[Document]],
    is_deleted: Callable[[str], bool],
) -> MergeOutcome:
    """Merge remote batches, later batches winning over earlier ones.

    Callers pass the lower-priority source first.
    """
    outcome = MergeOutcome(documents=dict(local_documents))

    for batch in remote_batches:
        for remote in batch:
            if is_deleted(remote.id):
                outcome.skipped_tombstoned += 1
                continue
            current = outcome.documents.get(remote.id)
            outcome.documents[remote.id] = (
                overlay(current, remote) if current is not None else remote
            )
            outcome.merged += 1

    return outcome
