"""Shared structures for the persistence phases (document batch + run context)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from claimledger.domain.errors import StorageError
from claimledger.domain.model import Document, DocumentStatus, RecordKind, StorageTable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from claimledger.config import ImportConfig
    from claimledger.domain.ingest.cache import CatalogCache
    from claimledger.domain.ports import ImportUnitOfWork, Record, TableStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class DocumentBatch:
    """All documents of one input, in input order."""

    documents: list[Document] = field(default_factory=list[Document])

    @classmethod
    def of(cls, documents: Iterable[Document]) -> DocumentBatch:
        return cls(documents=list(documents))

    def active(self) -> list[Document]:
        """Documents still taking part in persistence, origins before revisions."""

        return sorted(
            (doc for doc in self.documents if doc.is_active),
            key=lambda doc: doc.kind is not RecordKind.ORIGIN,
        )

    def rejected(self) -> list[Document]:
        return [doc for doc in self.documents if doc.status is DocumentStatus.REJECTED]

    def __len__(self) -> int:
        return len(self.documents)


@dataclass(slots=True)
class PendingRevision:
    """A revision queued in phase 5 whose lines wait for its identifier."""

    document: Document
    record: Record
    revision_id: int | None = None


@dataclass(slots=True)
class ImportContext:
    """Mutable state shared across persistence phases of one run."""

    cache: CatalogCache
    uow: ImportUnitOfWork
    config: ImportConfig
    created: dict[StorageTable, int] = field(default_factory=dict[StorageTable, int])
    pending_revisions: list[PendingRevision] = field(default_factory=list[PendingRevision])
    default_adjuster_id: int | None = None
    write_count: int = 0

    @property
    def store(self) -> TableStore:
        return self.uow.store

    def write(self, table: StorageTable, records: Sequence[Mapping[str, object]]) -> list[int]:
        """Bulk-insert ``records`` and return their identifiers in insertion order."""

        if not records:
            log.info("Nothing to insert into %s, skipping", table)
            return []
        ids = self.store.insert_batch(table, records)
        if len(ids) != len(records):
            raise StorageError(
                f"Store returned {len(ids)} identifiers for {len(records)} {table} records"
            )
        self.write_count += 1
        self.created[table] = self.created.get(table, 0) + len(ids)
        log.info("Inserted %s records into %s", len(ids), table)
        return ids

    def insert_and_cache(
        self, table: StorageTable, records: Sequence[Mapping[str, object]]
    ) -> list[int]:
        """Insert ``records`` and make them visible to later cache lookups."""

        ids = self.write(table, records)
        self.cache.append(
            table,
            ({**record, "id": identifier} for record, identifier in zip(records, ids, strict=True)),
        )
        return ids

    def commit(self) -> None:
        self.uow.commit()


def reject_unresolved(document: Document, reason: str, *, phase: str) -> None:
    """Drop ``document`` from the remaining phases after a resolution failure."""

    document.reject(reason)
    log.warning("Rejected %s during %s phase: %s", document.label(), phase, reason)
