from __future__ import annotations

import pytest

from claimledger.adapters.memory import InMemoryTableStore, InMemoryUnitOfWork
from claimledger.domain.model import StorageTable


def test_insert_batch_assigns_ids_after_existing_rows() -> None:
    store = InMemoryTableStore({StorageTable.INSURERS: [{"id": 4, "name": "Acme"}]})

    ids = store.insert_batch(StorageTable.INSURERS, [{"name": "Beta"}, {"name": "Gamma"}])

    assert ids == [5, 6]
    assert [row["name"] for row in store.read_all(StorageTable.INSURERS)] == [
        "Acme",
        "Beta",
        "Gamma",
    ]
    assert store.writes == [(StorageTable.INSURERS, 2)]


def test_read_all_returns_copies() -> None:
    store = InMemoryTableStore({StorageTable.DISTRICTS: [{"id": 1, "name": "Centro"}]})

    rows = store.read_all(StorageTable.DISTRICTS)
    rows[0]["name"] = "Changed"

    assert store.tables[StorageTable.DISTRICTS][0]["name"] == "Centro"


def test_unit_of_work_counts_rollback_on_error() -> None:
    uow = InMemoryUnitOfWork()

    with pytest.raises(RuntimeError), uow:
        uow.commit()
        raise RuntimeError("boom")

    assert uow.commits == 1
    assert uow.rollbacks == 1
