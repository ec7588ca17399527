from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003

import pytest

from claimledger import app
from claimledger.adapters.memory import InMemoryTableStore
from claimledger.config import ImportConfig
from claimledger.domain.model import StorageTable
from tests.helpers.documents import csv_text


def test_import_csv_file_reads_bom_prefixed_files(tmp_path: Path) -> None:
    source = tmp_path / "batch.csv"
    text = csv_text(
        [{"account_ref": "REF-1", "communication_code": "C-1", "total": "80", "amount": "80"}],
        delimiter=";",
    )
    source.write_text("\ufeff" + text, encoding="utf-8")
    store = InMemoryTableStore()

    result = app.import_csv_file(
        source,
        unit_of_work_factory=app.in_memory_unit_of_work_factory(store),
        config=ImportConfig(delimiter=";"),
    )

    assert result.success is True
    assert result.valid == 1
    assert len(store.tables[StorageTable.LINE_ITEMS]) == 1


def test_import_extracted_documents_persists_payload(tmp_path: Path) -> None:
    source = tmp_path / "extracted.json"
    source.write_text(
        json.dumps(
            [
                {
                    "accountRef": "REF-1",
                    "communicationCode": "C-1",
                    "declaredTotal": 500,
                    "lines": [{"concept": "Roof", "amount": 500}],
                },
                {
                    "accountRef": "REF-1",
                    "communicationCode": "C-1",
                    "recordKind": "REVISION",
                    "declaredTotal": 650,
                },
            ]
        ),
        encoding="utf-8",
    )
    store = InMemoryTableStore()

    result = app.import_extracted_documents(
        source, unit_of_work_factory=app.in_memory_unit_of_work_factory(store)
    )

    assert result.success is True
    assert result.valid == 2
    sequences = [row["sequence"] for row in store.tables[StorageTable.REVISIONS]]
    assert sequences == [1, 2]


def test_import_extracted_documents_reports_invalid_payload(tmp_path: Path) -> None:
    source = tmp_path / "broken.json"
    source.write_text('{"lines": 3}', encoding="utf-8")

    result = app.import_extracted_documents(
        source, unit_of_work_factory=app.in_memory_unit_of_work_factory()
    )

    assert result.success is False
    assert result.message.startswith("Invalid extracted document payload")


def test_default_factory_starts_database_adapter(monkeypatch: pytest.MonkeyPatch) -> None:
    started: list[bool] = []
    monkeypatch.setattr(app, "is_started", lambda: False)
    monkeypatch.setattr(app, "startup", lambda: started.append(True))

    factory = app._resolve_factory(None)  # noqa: SLF001

    assert started == [True]
    assert factory is app.SqlAlchemyUnitOfWork


def test_import_csv_file_reports_undecodable_bytes(tmp_path: Path) -> None:
    source = tmp_path / "latin1.csv"
    source.write_bytes(b"account_ref,communication_code\nREF-\xff,C-1\n")

    result = app.import_csv_file(
        source,
        unit_of_work_factory=app.in_memory_unit_of_work_factory(),
        config=ImportConfig(),
    )

    assert result.success is False
    assert "is not valid UTF-8" in result.message
