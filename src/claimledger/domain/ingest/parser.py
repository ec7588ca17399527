"""Tabular parser: delimited text to documents grouped by natural key.

Columns are matched by name through an alias table that is resolved once per file
into fixed positions. Each data row contributes one line to the document keyed by
(account reference, communication code, record kind); the first row seen for a key
supplies the document-level fields.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from claimledger.domain.errors import MalformedInputError, MissingColumnsError
from claimledger.domain.model import Document, DocumentKey, Line, RecordKind
from claimledger.domain.text import clean_text, normalize_header, normalize_text

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from claimledger.config import ImportConfig

log = logging.getLogger(__name__)


class Column(StrEnum):
    """Logical input columns; the value is the canonical header spelling."""

    ACCOUNT_REF = "account_ref"
    COMMUNICATION_CODE = "communication_code"
    RECORD_KIND = "record_kind"
    DOCUMENT_DATE = "date"
    STATE = "state"
    CLAIM_REF = "claim_ref"
    INSURER = "insurer"
    PHENOMENON = "phenomenon"
    LOSS_DATE = "loss_date"
    FUND = "fund"
    DISTRICT = "district"
    ADJUSTER = "adjuster"
    DESCRIPTION = "description"
    DECLARED_TOTAL = "total"
    LINE_CONCEPT = "concept"
    LINE_CATEGORY = "category"
    LINE_AMOUNT = "amount"
    OVERSIGHT_AMOUNT = "oversight_amount"


COLUMN_ALIASES: Final[Mapping[Column, tuple[str, ...]]] = {
    Column.ACCOUNT_REF: ("account_ref", "account_reference", "account", "referencia", "ref"),
    Column.COMMUNICATION_CODE: ("communication_code", "code", "codigo", "comm_code"),
    Column.RECORD_KIND: ("record_kind", "kind", "tipo", "record_type"),
    Column.DOCUMENT_DATE: ("date", "document_date", "fecha"),
    Column.STATE: ("state", "estado", "status"),
    Column.CLAIM_REF: ("claim_ref", "claim", "siniestro", "claim_reference"),
    Column.INSURER: ("insurer", "aseguradora", "insurance_company"),
    Column.PHENOMENON: ("phenomenon", "fenomeno", "peril"),
    Column.LOSS_DATE: ("loss_date", "fecha_siniestro", "date_of_loss"),
    Column.FUND: ("fund", "fondo"),
    Column.DISTRICT: ("district", "distrito"),
    Column.ADJUSTER: ("adjuster", "ajustador"),
    Column.DESCRIPTION: ("description", "descripcion", "notes"),
    Column.DECLARED_TOTAL: ("total", "declared_total", "monto_total", "total_amount"),
    Column.LINE_CONCEPT: ("concept", "concepto", "line_concept"),
    Column.LINE_CATEGORY: ("category", "categoria", "line_category"),
    Column.LINE_AMOUNT: ("amount", "line_amount", "importe", "monto"),
    Column.OVERSIGHT_AMOUNT: ("oversight_amount", "supervision", "oversight"),
}

MANDATORY_COLUMNS: Final[tuple[Column, ...]] = (Column.ACCOUNT_REF, Column.COMMUNICATION_CODE)

CANONICAL_HEADER: Final[tuple[str, ...]] = tuple(str(column) for column in Column)

_KIND_ALIASES: Final[Mapping[str, RecordKind]] = {
    "origin": RecordKind.ORIGIN,
    "origen": RecordKind.ORIGIN,
    "original": RecordKind.ORIGIN,
    "o": RecordKind.ORIGIN,
    "revision": RecordKind.REVISION,
    "rev": RecordKind.REVISION,
    "r": RecordKind.REVISION,
}

_DATE_FORMATS: Final[tuple[str, ...]] = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d")
_NUMBER_NOISE = re.compile(r"[^0-9.,\-]")


@dataclass(frozen=True, slots=True)
class ColumnIndex:
    """Fixed column positions for one input file."""

    positions: Mapping[Column, int]

    def __contains__(self, column: Column) -> bool:
        return column in self.positions

    def get(self, row: Sequence[str], column: Column) -> str | None:
        position = self.positions.get(column)
        if position is None or position >= len(row):
            return None
        return clean_text(row[position])


@dataclass(slots=True, frozen=True)
class DroppedRow:
    """A row excluded from grouping because a key column was blank."""

    line_number: int
    row: dict[str, str]


@dataclass(slots=True)
class ParseResult:
    header: list[str]
    documents: dict[DocumentKey, Document] = field(default_factory=dict[DocumentKey, Document])
    dropped_rows: list[DroppedRow] = field(default_factory=list[DroppedRow])
    rows_read: int = 0


def resolve_columns(header: Sequence[str]) -> ColumnIndex:
    """Map each known logical column to the first header cell matching one of its aliases."""

    normalized = [normalize_header(cell) for cell in header]
    positions: dict[Column, int] = {}
    for column, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                positions[column] = normalized.index(alias)
                break

    missing = tuple(str(column) for column in MANDATORY_COLUMNS if column not in positions)
    if missing:
        raise MissingColumnsError(missing)
    return ColumnIndex(positions=positions)


def parse_amount(raw: str | None, *, decimal_separator: str = ".") -> float:
    """Parse a money cell, ignoring currency symbols, spaces and thousands separators.

    Anything unparsable yields ``0.0``. Parenthesised values are negative.
    """

    if raw is None:
        return 0.0
    text = raw.strip()
    negative = text.startswith("(") and text.endswith(")")
    text = _NUMBER_NOISE.sub("", text)
    thousands_separator = "," if decimal_separator == "." else "."
    text = text.replace(thousands_separator, "").replace(decimal_separator, ".")
    try:
        value = float(text)
    except ValueError:
        return 0.0
    return round(-abs(value) if negative else value, 2)


def parse_date(raw: str | None) -> date | None:
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def parse_kind(raw: str | None) -> tuple[RecordKind, bool]:
    """Return the record kind and whether ``raw`` was recognised (blank counts as ORIGIN)."""

    normalized = normalize_text(raw)
    if normalized is None:
        return RecordKind.ORIGIN, True
    kind = _KIND_ALIASES.get(normalized)
    if kind is None:
        return RecordKind.ORIGIN, False
    return kind, True


def parse_table(text: str, *, config: ImportConfig) -> ParseResult:
    """Parse delimited ``text`` into documents keyed by their natural key."""

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=config.delimiter)
    try:
        rows = list(reader)
    except csv.Error as exc:
        raise MalformedInputError(
            f"Could not split input into rows near line {reader.line_num}: {exc}"
        ) from exc
    if not rows or not any(cell.strip() for cell in rows[0]):
        raise MissingColumnsError(tuple(str(column) for column in MANDATORY_COLUMNS))

    header = [cell.strip() for cell in rows[0]]
    columns = resolve_columns(header)
    result = ParseResult(header=header)

    for line_number, row in enumerate(rows[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue
        result.rows_read += 1
        raw = _row_as_dict(header, row)

        account_ref = columns.get(row, Column.ACCOUNT_REF)
        communication_code = columns.get(row, Column.COMMUNICATION_CODE)
        if account_ref is None or communication_code is None:
            result.dropped_rows.append(DroppedRow(line_number=line_number, row=raw))
            continue

        kind, recognised = parse_kind(columns.get(row, Column.RECORD_KIND))
        key = DocumentKey.of(account_ref, communication_code, kind)
        document = result.documents.get(key)
        if document is None:
            document = _new_document(row, columns, config, account_ref, communication_code, kind)
            result.documents[key] = document
        if not recognised:
            document.note(
                f"Unrecognised record kind {columns.get(row, Column.RECORD_KIND)!r} on line "
                f"{line_number}; treated as {RecordKind.ORIGIN}"
            )

        line = _line_from_row(row, columns, config)
        if line is not None:
            document.lines.append(line)
        document.source_rows.append(raw)

    if result.dropped_rows:
        log.warning(
            "Dropped %s rows without account reference or communication code: lines %s",
            len(result.dropped_rows),
            ", ".join(str(dropped.line_number) for dropped in result.dropped_rows),
        )
    log.info(
        "Parsed %s rows into %s documents (%s columns recognised)",
        result.rows_read,
        len(result.documents),
        len(columns.positions),
    )
    return result


def _row_as_dict(header: Sequence[str], row: Sequence[str]) -> dict[str, str]:
    padded = list(row) + [""] * (len(header) - len(row))
    return dict(zip(header, padded, strict=False))


def _new_document(
    row: Sequence[str],
    columns: ColumnIndex,
    config: ImportConfig,
    account_ref: str,
    communication_code: str,
    kind: RecordKind,
) -> Document:
    oversight = columns.get(row, Column.OVERSIGHT_AMOUNT)
    return Document(
        account_ref=account_ref,
        communication_code=communication_code,
        kind=kind,
        description=columns.get(row, Column.DESCRIPTION),
        document_date=parse_date(columns.get(row, Column.DOCUMENT_DATE)),
        state=columns.get(row, Column.STATE),
        claim_ref=columns.get(row, Column.CLAIM_REF),
        insurer=columns.get(row, Column.INSURER),
        phenomenon=columns.get(row, Column.PHENOMENON),
        loss_date=parse_date(columns.get(row, Column.LOSS_DATE)),
        fund=columns.get(row, Column.FUND),
        district=columns.get(row, Column.DISTRICT),
        adjuster=columns.get(row, Column.ADJUSTER),
        declared_total=parse_amount(
            columns.get(row, Column.DECLARED_TOTAL),
            decimal_separator=config.decimal_separator,
        ),
        oversight_override=(
            parse_amount(oversight, decimal_separator=config.decimal_separator)
            if oversight is not None
            else None
        ),
    )


def _line_from_row(row: Sequence[str], columns: ColumnIndex, config: ImportConfig) -> Line | None:
    concept = columns.get(row, Column.LINE_CONCEPT)
    category = columns.get(row, Column.LINE_CATEGORY)
    raw_amount = columns.get(row, Column.LINE_AMOUNT)
    if concept is None and category is None and raw_amount is None:
        return None
    return Line(
        concept=concept,
        category=category,
        amount=parse_amount(raw_amount, decimal_separator=config.decimal_separator),
    )
