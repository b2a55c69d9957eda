"""
Reconciliation engine.

One pass: load local cache → probe + fetch each remote source → map →
merge (secondary first, primary wins) → persist → generate recurring
receipts → persist again.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, Optional

from recibofast.cache import LocalCache
from recibofast.pipeline.merger import merge_remote_documents
from recibofast.pipeline.recurring import generate
from recibofast.remotes.base import RemoteSource
from recibofast.remotes.mapping import map_records
from recibofast.schemas import Document, ReconcileReport, SourceReport, SourceStatus

logger = logging.getLogger(__name__)


class Reconciler:
    def __init__(
        self,
        cache: LocalCache,
        primary: RemoteSource,
        secondary: RemoteSource,
        payment_method: str = "PIX",
        clock: Callable[[], date] = date.today,
    ):
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.payment_method = payment_method
        self.clock = clock

    async def _fetch(self, source: RemoteSource) -> tuple[list[Document], SourceReport]:
        report = SourceReport(name=source.name)
        try:
            if not await source.probe_availability():
                logger.info("Source %s unavailable, skipping", source.name)
                return [], report
            raw = await source.list_records()
        except Exception as e:
            logger.warning("Source %s failed during listing: %s", source.name, e)
            report.status = SourceStatus.FAILED
            return [], report

        if raw is None:
            report.status = SourceStatus.FAILED
            return [], report

        documents, skipped = map_records(raw, source.map_record, source.name)
        report.status = SourceStatus.OK
        report.fetched = len(documents)
        report.skipped_malformed = skipped
        return documents, report

    async def run(self, today: Optional[date] = None) -> ReconcileReport:
        """Run one reconciliation pass and return what it did."""
        if not self.cache.loaded or self.cache.load_failed:
            self.cache.load()

        logger.info("Reconcile start: fetch remote sources")
        (primary_docs, primary_report), (secondary_docs, secondary_report) = await asyncio.gather(
            self._fetch(self.primary), self._fetch(self.secondary)
        )

        # The base collection and the tombstone set are read here, after the
        # network suspension, so deletes made meanwhile are honoured.
        logger.info("Reconcile: merge")
        outcome = merge_remote_documents(
            self.cache.documents,
            [secondary_docs, primary_docs],
            self.cache.is_deleted,
        )
        self.cache.documents = outcome.documents
        self.cache.save()
        if outcome.skipped_tombstoned:
            logger.info("Ignored %d tombstoned remote records", outcome.skipped_tombstoned)

        logger.info("Reconcile: generate recurring receipts")
        contracts = self.cache.load_contracts()
        generated = generate(
            today or self.clock(),
            contracts,
            self.cache.documents.values(),
            payment_method=self.payment_method,
        )
        for doc in generated:
            self.cache.put(doc)
        if generated:
            self.cache.save()

        report = ReconcileReport(
            sources=[primary_report, secondary_report],
            merged=outcome.merged,
            skipped_tombstoned=outcome.skipped_tombstoned,
            generated=len(generated),
            total_documents=len(self.cache.documents),
        )
        logger.info(
            "Reconcile done: merged=%d generated=%d total=%d",
            report.merged, report.generated, report.total_documents,
        )
        return report
