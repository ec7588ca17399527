from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

from claimledger.adapters.sqlalchemy import TABLES, shutdown
from claimledger.domain.errors import StorageError
from claimledger.domain.ingest.runner import import_csv_text
from claimledger.domain.model import RecordKind, StorageTable
from tests.helpers.documents import csv_text

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine

    from claimledger.adapters.sqlalchemy import SqlAlchemyUnitOfWork


@pytest.fixture(autouse=True)
def _reset_adapter() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_insert_batch_returns_ids_in_record_order(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        ids = uow.store.insert_batch(
            StorageTable.INSURERS, [{"name": "Acme"}, {"name": "Beta"}, {"name": "Gamma"}]
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        rows = uow.store.read_all(StorageTable.INSURERS)

    assert ids == [1, 2, 3]
    assert [(row["id"], row["name"]) for row in rows] == [
        (1, "Acme"),
        (2, "Beta"),
        (3, "Gamma"),
    ]


def test_insert_batch_fills_missing_optional_columns(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.store.insert_batch(
            StorageTable.ACCOUNTS,
            [{"reference": "REF-1", "adjuster_id": None}, {"reference": "REF-2"}],
        )
        uow.commit()
        rows = uow.store.read_all(StorageTable.ACCOUNTS)

    assert [row["reference"] for row in rows] == ["REF-1", "REF-2"]
    assert rows[1]["adjuster_id"] is None


def test_duplicate_communication_raises_storage_error(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.store.insert_batch(StorageTable.COMMUNICATIONS, [{"account_id": 1, "code": "C-1"}])
        uow.commit()
        with pytest.raises(StorageError, match="Could not insert 1 communications records"):
            uow.store.insert_batch(
                StorageTable.COMMUNICATIONS, [{"account_id": 1, "code": "C-1"}]
            )


def test_full_import_round_trips_through_sqlite(
    sqlite_engine: Engine,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    rows = [
        {
            "account_ref": "REF-1",
            "communication_code": "C-1",
            "record_kind": "ORIGIN",
            "date": "2024-02-01",
            "insurer": "Acme",
            "claim_ref": "SIN-1",
            "total": "1000",
            "concept": "Labour",
            "amount": "600",
        },
        {
            "account_ref": "REF-1",
            "communication_code": "C-1",
            "record_kind": "ORIGIN",
            "concept": "Materials",
            "amount": "400",
        },
        {
            "account_ref": "REF-1",
            "communication_code": "C-1",
            "record_kind": "REVISION",
            "total": "1100",
            "concept": "Labour",
            "amount": "1100",
        },
    ]

    result = import_csv_text(csv_text(rows), unit_of_work_factory=sqlite_unit_of_work)

    assert result.success is True
    assert result.valid == 2
    with sqlite_engine.connect() as connection:
        revisions = connection.execute(
            select(TABLES[StorageTable.REVISIONS]).order_by(TABLES[StorageTable.REVISIONS].c.id)
        ).mappings().all()
        items = connection.execute(select(TABLES[StorageTable.LINE_ITEMS])).mappings().all()
        claims = connection.execute(select(TABLES[StorageTable.CLAIMS])).mappings().all()

    assert [(row["kind"], row["sequence"]) for row in revisions] == [
        (RecordKind.ORIGIN, 1),
        (RecordKind.REVISION, 2),
    ]
    assert revisions[0]["declared_amount"] == 1000.0
    assert revisions[0]["oversight_amount"] == 50.0
    assert sorted(item["amount"] for item in items) == [400.0, 600.0, 1100.0]
    assert claims[0]["insurer_id"] == 1
