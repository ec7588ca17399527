"""Revision and line-item phases."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from claimledger.domain.model import DocumentStatus, StorageTable

from .context import PendingRevision, reject_unresolved

if TYPE_CHECKING:
    from claimledger.config import ImportConfig
    from claimledger.domain.model import Document
    from claimledger.domain.ports import Record

    from .cache import CatalogCache
    from .context import DocumentBatch, ImportContext

log = logging.getLogger(__name__)


def oversight_amount(document: Document, *, config: ImportConfig) -> float:
    """Return the explicit oversight amount when positive, else the configured share."""

    if document.oversight_override is not None and document.oversight_override > 0:
        return round(document.oversight_override, 2)
    return round(document.declared_total * config.oversight_rate, 2)


def current_revision(cache: CatalogCache, communication_id: int) -> Record | None:
    """Return the revision with the highest sequence number for ``communication_id``."""

    candidates = [
        record
        for record in cache.records(StorageTable.REVISIONS)
        if record.get("communication_id") == communication_id
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda record: _as_int(record.get("sequence")))


def _as_int(value: object) -> int:
    return value if isinstance(value, int) else 0


class RevisionsPhase:
    """Queue one revision per document with contiguous per-communication sequences."""

    name = "revisions"

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None:
        queued: Counter[int] = Counter()
        pending: list[PendingRevision] = []
        for document in batch.active():
            communication_id = document.communication_id
            if communication_id is None:
                reject_unresolved(document, "Communication identifier missing", phase=self.name)
                continue
            stored = context.cache.count(StorageTable.REVISIONS, communication_id=communication_id)
            sequence = stored + queued[communication_id] + 1
            queued[communication_id] += 1
            pending.append(
                PendingRevision(
                    document=document,
                    record={
                        "communication_id": communication_id,
                        "sequence": sequence,
                        "kind": document.kind,
                        "declared_amount": document.declared_total,
                        "oversight_amount": oversight_amount(document, config=context.config),
                        "document_date": document.document_date,
                        "description": document.description,
                    },
                )
            )

        ids = context.insert_and_cache(StorageTable.REVISIONS, [entry.record for entry in pending])
        for entry, identifier in zip(pending, ids, strict=True):
            entry.revision_id = identifier
            entry.document.revision_id = identifier
        context.pending_revisions = pending


class LineItemsPhase:
    """Insert every pending revision's lines, stamped with the revision identifier."""

    name = "line-items"

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None:
        records: list[Record] = []
        for entry in context.pending_revisions:
            if entry.revision_id is None:
                continue
            records.extend(
                {
                    "revision_id": entry.revision_id,
                    "position": position,
                    "concept": line.concept,
                    "category": line.category,
                    "amount": line.amount,
                }
                for position, line in enumerate(entry.document.lines, start=1)
            )
        context.write(StorageTable.LINE_ITEMS, records)

        for entry in context.pending_revisions:
            if entry.revision_id is not None:
                entry.document.status = DocumentStatus.PERSISTED
        log.info(
            "Persisted %s of %s documents",
            sum(1 for doc in batch.documents if doc.status is DocumentStatus.PERSISTED),
            len(batch),
        )
