from __future__ import annotations

from datetime import date

import pytest

from claimledger.config import ImportConfig
from claimledger.domain.errors import MalformedInputError, MissingColumnsError
from claimledger.domain.ingest.parser import (
    Column,
    parse_amount,
    parse_date,
    parse_kind,
    parse_table,
    resolve_columns,
)
from claimledger.domain.model import DocumentKey, RecordKind
from tests.helpers.documents import csv_text


def test_parse_table_groups_rows_by_natural_key(import_config: ImportConfig) -> None:
    text = csv_text(
        [
            {"account_ref": "REF-1", "communication_code": "C-1", "total": "1000",
             "concept": "Labour", "amount": "600"},
            {"account_ref": "ref-1", "communication_code": "c-1", "total": "1000",
             "concept": "Materials", "amount": "400"},
            {"account_ref": "REF-1", "communication_code": "C-1", "record_kind": "REVISION",
             "total": "1200", "concept": "Labour", "amount": "1200"},
        ]
    )

    result = parse_table(text, config=import_config)

    assert result.rows_read == 3
    assert set(result.documents) == {
        DocumentKey("ref-1", "c-1", RecordKind.ORIGIN),
        DocumentKey("ref-1", "c-1", RecordKind.REVISION),
    }
    origin = result.documents[DocumentKey("ref-1", "c-1", RecordKind.ORIGIN)]
    assert origin.account_ref == "REF-1"
    assert origin.declared_total == 1000.0
    assert [line.amount for line in origin.lines] == [600.0, 400.0]
    assert len(origin.source_rows) == 2


def test_parse_table_resolves_aliases_bom_and_locale() -> None:
    config = ImportConfig(delimiter=";", decimal_separator=",")
    text = (
        "\ufeffReferencia;Código;Tipo;Fecha;Total;Concepto;Importe\n"
        "REF-1;C-1;origen;15/03/2024;1.000,00;Mano de obra;600,00\n"
        "REF-1;C-1;origen;15/03/2024;1.000,00;Materiales;400,00\n"
    )

    result = parse_table(text, config=config)

    (document,) = result.documents.values()
    assert document.kind is RecordKind.ORIGIN
    assert document.document_date == date(2024, 3, 15)
    assert document.declared_total == 1000.0
    assert [line.concept for line in document.lines] == ["Mano de obra", "Materiales"]
    assert document.lines_total == 1000.0


def test_parse_table_requires_mandatory_columns(import_config: ImportConfig) -> None:
    with pytest.raises(MissingColumnsError, match="communication_code") as excinfo:
        parse_table("account_ref,description\nREF-1,hello\n", config=import_config)

    assert excinfo.value.missing == ("communication_code",)


def test_parse_table_rejects_empty_input(import_config: ImportConfig) -> None:
    with pytest.raises(MissingColumnsError):
        parse_table("", config=import_config)


def test_parse_table_wraps_csv_errors(import_config: ImportConfig) -> None:
    text = csv_text(
        [{"account_ref": "REF-1", "communication_code": "C-1", "description": "x" * 200_000}]
    )

    with pytest.raises(MalformedInputError, match="field larger than field limit"):
        parse_table(text, config=import_config)


def test_parse_table_reports_dropped_rows(import_config: ImportConfig) -> None:
    text = (
        "account_ref,communication_code,total\n"
        "REF-1,C-1,100\n"
        "REF-2,,100\n"
        "\n"
        ",C-3,100\n"
    )

    result = parse_table(text, config=import_config)

    assert len(result.documents) == 1
    assert [dropped.line_number for dropped in result.dropped_rows] == [3, 5]
    assert result.dropped_rows[0].row == {
        "account_ref": "REF-2",
        "communication_code": "",
        "total": "100",
    }


def test_parse_table_notes_unrecognised_kind(import_config: ImportConfig) -> None:
    text = csv_text(
        [{"account_ref": "REF-1", "communication_code": "C-1", "record_kind": "memo",
          "total": "10"}]
    )

    (document,) = parse_table(text, config=import_config).documents.values()

    assert document.kind is RecordKind.ORIGIN
    assert any("Unrecognised record kind 'memo'" in note for note in document.notes)


def test_parse_table_skips_lines_without_line_data(import_config: ImportConfig) -> None:
    text = csv_text([{"account_ref": "REF-1", "communication_code": "C-1", "total": "500"}])

    (document,) = parse_table(text, config=import_config).documents.values()

    assert document.lines == []
    assert document.declared_total == 500.0


def test_resolve_columns_picks_first_matching_alias() -> None:
    columns = resolve_columns(["Account Reference", "comm-code", "Monto Total", "Supervision"])

    assert columns.positions[Column.ACCOUNT_REF] == 0
    assert columns.positions[Column.COMMUNICATION_CODE] == 1
    assert columns.positions[Column.DECLARED_TOTAL] == 2
    assert columns.positions[Column.OVERSIGHT_AMOUNT] == 3
    assert Column.LINE_AMOUNT not in columns


@pytest.mark.parametrize(
    ("raw", "separator", "expected"),
    [
        ("$ 1,234.50", ".", 1234.5),
        ("1.234,5", ",", 1234.5),
        ("(250.00)", ".", -250.0),
        ("abc", ".", 0.0),
        ("", ".", 0.0),
        (None, ".", 0.0),
    ],
)
def test_parse_amount(raw: str | None, separator: str, expected: float) -> None:
    assert parse_amount(raw, decimal_separator=separator) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-03-15", date(2024, 3, 15)),
        ("15/03/2024", date(2024, 3, 15)),
        ("15-03-2024", date(2024, 3, 15)),
        ("2024-03-15T10:00:00", date(2024, 3, 15)),
        ("not a date", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_date(raw: str | None, expected: date | None) -> None:
    assert parse_date(raw) == expected


def test_parse_kind_is_accent_and_case_insensitive() -> None:
    assert parse_kind("Revisión") == (RecordKind.REVISION, True)
    assert parse_kind(" ORIGEN ") == (RecordKind.ORIGIN, True)
    assert parse_kind("") == (RecordKind.ORIGIN, True)
    assert parse_kind("weird") == (RecordKind.ORIGIN, False)
