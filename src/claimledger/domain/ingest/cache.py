"""In-memory snapshot of the stored catalogs for one import run.

The snapshot is loaded once and only grows afterwards: the persistence phases append
every record they insert together with its generated identifier, so later phases
resolve new entries without reading storage again.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Final

from claimledger.domain.model import CACHED_TABLES, StorageTable
from claimledger.domain.text import normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from claimledger.domain.ports import Record, TableStore

log = logging.getLogger(__name__)

type IndexKey = tuple[object, ...]

NATURAL_KEY_FIELDS: Final[Mapping[StorageTable, tuple[str, ...]]] = {
    StorageTable.INSURERS: ("name",),
    StorageTable.DISTRICTS: ("name",),
    StorageTable.ADJUSTERS: ("name",),
    StorageTable.CLAIMS: ("reference",),
    StorageTable.ACCOUNTS: ("reference", "name"),
}


def _index_value(value: object) -> object:
    if isinstance(value, str):
        return normalize_text(value)
    return value


class CatalogCache:
    """Per-table record lists with lazily built lookup indexes."""

    def __init__(self, snapshot: Mapping[StorageTable, Iterable[Record]] | None = None) -> None:
        self._tables: dict[StorageTable, list[Record]] = {table: [] for table in CACHED_TABLES}
        for table, records in (snapshot or {}).items():
            self._tables[table] = [dict(record) for record in records]
        self._indexes: dict[tuple[StorageTable, tuple[str, ...]], dict[IndexKey, int]] = {}
        self._counters: dict[tuple[StorageTable, tuple[str, ...]], Counter[IndexKey]] = {}

    @classmethod
    def load(cls, store: TableStore) -> CatalogCache:
        """Read every cached table once."""

        snapshot = {table: store.read_all(table) for table in CACHED_TABLES}
        log.info(
            "Loaded catalog snapshot: %s",
            ", ".join(f"{table}={len(records)}" for table, records in snapshot.items()),
        )
        return cls(snapshot)

    def records(self, table: StorageTable) -> list[Record]:
        return list(self._tables[table])

    def size(self, table: StorageTable) -> int:
        return len(self._tables[table])

    def find(
        self,
        table: StorageTable,
        value: str | None,
        fields: Iterable[str] | None = None,
    ) -> int | None:
        """Return the identifier of the first record whose candidate field matches ``value``.

        Matching is case- and accent-insensitive; candidate fields are tried in order.
        """

        if normalize_text(value) is None:
            return None
        for field_name in fields or NATURAL_KEY_FIELDS[table]:
            found = self.lookup(table, **{field_name: value})
            if found is not None:
                return found
        return None

    def lookup(self, table: StorageTable, **criteria: object) -> int | None:
        """Return the identifier of the first record matching all ``criteria``."""

        fields = tuple(sorted(criteria))
        key = tuple(_index_value(criteria[name]) for name in fields)
        if any(part is None for part in key):
            return None
        return self._index(table, fields).get(key)

    def count(self, table: StorageTable, **criteria: object) -> int:
        """Return how many records match all ``criteria``."""

        fields = tuple(sorted(criteria))
        key = tuple(_index_value(criteria[name]) for name in fields)
        return self._counter(table, fields)[key]

    def append(self, table: StorageTable, entries: Iterable[Mapping[str, object]]) -> None:
        """Register freshly inserted records; each entry must carry its ``id``."""

        added = 0
        for entry in entries:
            if entry.get("id") is None:
                raise ValueError(f"Cannot cache a {table} record without an id")
            record = dict(entry)
            self._tables[table].append(record)
            self._register(table, record)
            added += 1
        log.debug("Cached %s new %s records", added, table)

    def _index(self, table: StorageTable, fields: tuple[str, ...]) -> dict[IndexKey, int]:
        index = self._indexes.get((table, fields))
        if index is None:
            index = {}
            for record in self._tables[table]:
                _index_record(index, record, fields)
            self._indexes[(table, fields)] = index
        return index

    def _counter(self, table: StorageTable, fields: tuple[str, ...]) -> Counter[IndexKey]:
        counter = self._counters.get((table, fields))
        if counter is None:
            counter = Counter(
                tuple(_index_value(record.get(name)) for name in fields)
                for record in self._tables[table]
            )
            self._counters[(table, fields)] = counter
        return counter

    def _register(self, table: StorageTable, record: Record) -> None:
        for (indexed_table, fields), index in self._indexes.items():
            if indexed_table is table:
                _index_record(index, record, fields)
        for (counted_table, fields), counter in self._counters.items():
            if counted_table is table:
                counter[tuple(_index_value(record.get(name)) for name in fields)] += 1


def _index_record(index: dict[IndexKey, int], record: Record, fields: tuple[str, ...]) -> None:
    key = tuple(_index_value(record.get(name)) for name in fields)
    if any(part is None for part in key):
        return
    identifier = record.get("id")
    if isinstance(identifier, int):
        index.setdefault(key, identifier)
