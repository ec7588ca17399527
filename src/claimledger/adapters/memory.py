"""In-memory table store and unit of work for dry runs and tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from claimledger.domain.model import StorageTable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from types import TracebackType

    from claimledger.domain.ports import Record

log = logging.getLogger(__name__)


class InMemoryTableStore:
    """Dict-backed table store; each table is a list of records with an ``id`` key."""

    def __init__(
        self,
        tables: Mapping[StorageTable, Sequence[Mapping[str, object]]] | None = None,
    ) -> None:
        self.tables: dict[StorageTable, list[Record]] = {table: [] for table in StorageTable}
        for table, records in (tables or {}).items():
            self.tables[table] = [dict(record) for record in records]
        self.writes: list[tuple[StorageTable, int]] = []

    def read_all(self, table: StorageTable) -> list[Record]:
        return [dict(record) for record in self.tables[table]]

    def insert_batch(
        self,
        table: StorageTable,
        records: Sequence[Mapping[str, object]],
    ) -> list[int]:
        rows = self.tables[table]
        next_id = max((_record_id(row) for row in rows), default=0) + 1
        ids = list(range(next_id, next_id + len(records)))
        rows.extend(
            {**record, "id": identifier}
            for record, identifier in zip(records, ids, strict=True)
        )
        self.writes.append((table, len(records)))
        return ids


def _record_id(record: Mapping[str, object]) -> int:
    identifier = record.get("id")
    return identifier if isinstance(identifier, int) else 0


class InMemoryUnitOfWork:
    """Unit of work over an :class:`InMemoryTableStore`; writes are applied immediately."""

    def __init__(self, store: InMemoryTableStore | None = None) -> None:
        self._store = store or InMemoryTableStore()
        self.commits = 0
        self.rollbacks = 0

    @property
    def store(self) -> InMemoryTableStore:
        return self._store

    def __enter__(self) -> InMemoryUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
        log.debug("Rollback requested; in-memory writes are already applied")
