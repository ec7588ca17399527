"""Run summary and the corrective extract of rejected rows."""

from __future__ import annotations

import base64
import csv
import io
import logging
from datetime import date
from typing import TYPE_CHECKING

from claimledger.domain.model import CorrectionNote, ImportResult, RejectedDocument

from .parser import CANONICAL_HEADER, Column

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from claimledger.domain.model import Document, StorageTable

    from .context import DocumentBatch
    from .parser import DroppedRow

log = logging.getLogger(__name__)


def document_rows(document: Document) -> list[dict[str, str]]:
    """Return input-shaped rows for ``document`` under the canonical header."""

    if document.source_rows:
        return document.source_rows
    base = {
        Column.ACCOUNT_REF: document.account_ref,
        Column.COMMUNICATION_CODE: document.communication_code,
        Column.RECORD_KIND: document.kind,
        Column.DOCUMENT_DATE: document.document_date,
        Column.STATE: document.state,
        Column.CLAIM_REF: document.claim_ref,
        Column.INSURER: document.insurer,
        Column.PHENOMENON: document.phenomenon,
        Column.LOSS_DATE: document.loss_date,
        Column.FUND: document.fund,
        Column.DISTRICT: document.district,
        Column.ADJUSTER: document.adjuster,
        Column.DESCRIPTION: document.description,
        Column.DECLARED_TOTAL: document.declared_total,
        Column.OVERSIGHT_AMOUNT: document.oversight_override,
    }
    header_row = {str(column): _cell(value) for column, value in base.items()}
    if not document.lines:
        return [header_row]
    return [
        {
            **header_row,
            str(Column.LINE_CONCEPT): _cell(line.concept),
            str(Column.LINE_CATEGORY): _cell(line.category),
            str(Column.LINE_AMOUNT): _cell(line.amount),
        }
        for line in document.lines
    ]


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def corrective_extract(
    rows: Iterable[Mapping[str, str]],
    *,
    header: Sequence[str],
    delimiter: str = ",",
) -> str | None:
    """Return the base64-encoded CSV of ``rows`` or ``None`` when there are none."""

    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(header),
        delimiter=delimiter,
        extrasaction="ignore",
        lineterminator="\n",
    )
    writer.writeheader()
    written = 0
    for row in rows:
        writer.writerow(row)
        written += 1
    if not written:
        return None
    return base64.b64encode(buffer.getvalue().encode("utf-8")).decode("ascii")


def build_report(
    batch: DocumentBatch,
    *,
    created: Mapping[StorageTable, int],
    dropped_rows: Sequence[DroppedRow] = (),
    header: Sequence[str] | None = None,
    delimiter: str = ",",
) -> ImportResult:
    """Summarise a completed run."""

    rejected_documents = batch.rejected()
    result = ImportResult(
        success=True,
        documents_seen=len(batch),
        valid=sum(1 for doc in batch.documents if doc.is_active),
        rejected=[
            RejectedDocument(
                account_ref=doc.account_ref,
                communication_code=doc.communication_code,
                kind=doc.kind,
                reason=doc.reason or "Rejected",
            )
            for doc in rejected_documents
        ],
        corrections=[
            CorrectionNote(
                account_ref=doc.account_ref,
                communication_code=doc.communication_code,
                kind=doc.kind,
                message=message,
            )
            for doc in batch.documents
            for message in doc.notes
        ],
        dropped_rows=[dropped.line_number for dropped in dropped_rows],
        created=dict(created),
    )

    rows: list[Mapping[str, str]] = [
        row for doc in rejected_documents for row in document_rows(doc)
    ]
    rows.extend(dropped.row for dropped in dropped_rows)
    result.corrective_csv = corrective_extract(
        rows, header=header or CANONICAL_HEADER, delimiter=delimiter
    )
    result.message = (
        f"{result.documents_seen} documents: {result.valid} valid, "
        f"{result.rejected_count} rejected, {len(result.dropped_rows)} rows dropped"
    )
    log.info("Import finished: %s", result.message)
    return result
