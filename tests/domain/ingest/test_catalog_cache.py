from __future__ import annotations

import pytest

from claimledger.adapters.memory import InMemoryTableStore
from claimledger.domain.ingest.cache import CatalogCache
from claimledger.domain.model import StorageTable


def test_find_is_case_and_accent_insensitive() -> None:
    cache = CatalogCache(
        {
            StorageTable.INSURERS: [
                {"id": 1, "name": "Mapfre Seguros"},
                {"id": 2, "name": "Pacífico"},
            ]
        }
    )

    assert cache.find(StorageTable.INSURERS, "  mapfre   SEGUROS ") == 1
    assert cache.find(StorageTable.INSURERS, "PACIFICO") == 2
    assert cache.find(StorageTable.INSURERS, "Rimac") is None


def test_find_tries_candidate_fields_in_order() -> None:
    cache = CatalogCache(
        {StorageTable.ACCOUNTS: [{"id": 5, "reference": "R-1", "name": "Casa López"}]}
    )

    assert cache.find(StorageTable.ACCOUNTS, "r-1") == 5
    assert cache.find(StorageTable.ACCOUNTS, "casa lopez") == 5
    assert cache.find(StorageTable.ACCOUNTS, "casa lopez", ["reference"]) is None


def test_find_ignores_blank_values() -> None:
    cache = CatalogCache({StorageTable.DISTRICTS: [{"id": 1, "name": "Centro"}]})

    assert cache.find(StorageTable.DISTRICTS, "   ") is None
    assert cache.find(StorageTable.DISTRICTS, None) is None


def test_first_record_wins_for_duplicate_keys() -> None:
    cache = CatalogCache(
        {StorageTable.INSURERS: [{"id": 1, "name": "Acme"}, {"id": 2, "name": "ACME"}]}
    )

    assert cache.find(StorageTable.INSURERS, "acme") == 1


def test_append_updates_built_indexes() -> None:
    cache = CatalogCache()
    assert cache.find(StorageTable.ADJUSTERS, "Ana Ruiz") is None

    cache.append(StorageTable.ADJUSTERS, [{"id": 9, "name": "Ana Ruiz"}])

    assert cache.find(StorageTable.ADJUSTERS, "ana ruiz") == 9
    assert cache.size(StorageTable.ADJUSTERS) == 1


def test_append_requires_identifier() -> None:
    cache = CatalogCache()

    with pytest.raises(ValueError, match="without an id"):
        cache.append(StorageTable.ADJUSTERS, [{"name": "Nobody"}])


def test_lookup_matches_composite_keys() -> None:
    cache = CatalogCache(
        {
            StorageTable.COMMUNICATIONS: [
                {"id": 3, "account_id": 7, "code": "C-1"},
                {"id": 4, "account_id": 8, "code": "C-1"},
            ]
        }
    )

    assert cache.lookup(StorageTable.COMMUNICATIONS, account_id=7, code="c-1") == 3
    assert cache.lookup(StorageTable.COMMUNICATIONS, account_id=8, code="C-1") == 4
    assert cache.lookup(StorageTable.COMMUNICATIONS, account_id=9, code="C-1") is None
    assert cache.lookup(StorageTable.COMMUNICATIONS, account_id=7, code=None) is None


def test_count_tracks_appended_records() -> None:
    cache = CatalogCache(
        {
            StorageTable.REVISIONS: [
                {"id": 1, "communication_id": 3, "sequence": 1},
                {"id": 2, "communication_id": 3, "sequence": 2},
            ]
        }
    )
    assert cache.count(StorageTable.REVISIONS, communication_id=3) == 2

    cache.append(StorageTable.REVISIONS, [{"id": 5, "communication_id": 3, "sequence": 3}])

    assert cache.count(StorageTable.REVISIONS, communication_id=3) == 3
    assert cache.count(StorageTable.REVISIONS, communication_id=4) == 0


def test_load_reads_each_cached_table_once() -> None:
    store = InMemoryTableStore({StorageTable.INSURERS: [{"id": 1, "name": "Acme"}]})
    reads: list[StorageTable] = []
    original = store.read_all

    def counting_read_all(table: StorageTable) -> list[dict[str, object]]:
        reads.append(table)
        return original(table)

    store.read_all = counting_read_all  # type: ignore[method-assign]

    cache = CatalogCache.load(store)

    assert cache.records(StorageTable.INSURERS) == [{"id": 1, "name": "Acme"}]
    assert len(reads) == len(set(reads)) == 8
    assert StorageTable.LINE_ITEMS not in reads
