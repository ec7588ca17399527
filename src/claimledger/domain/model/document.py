"""Parsed documents: one logical group of input rows awaiting reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

from claimledger.domain.model.enums import DocumentStatus, RecordKind
from claimledger.domain.text import normalize_text

if TYPE_CHECKING:
    from datetime import date


class DocumentKey(NamedTuple):
    """Normalised natural key of a document (account, communication code, kind)."""

    account_ref: str
    communication_code: str
    kind: RecordKind

    @classmethod
    def of(
        cls,
        account_ref: str | None,
        communication_code: str | None,
        kind: RecordKind,
    ) -> DocumentKey:
        return cls(
            normalize_text(account_ref) or "",
            normalize_text(communication_code) or "",
            kind,
        )

    @property
    def communication_key(self) -> tuple[str, str]:
        return (self.account_ref, self.communication_code)


@dataclass(eq=False, kw_only=True)
class Line:
    """One budget line as read from a single input row."""

    concept: str | None = None
    category: str | None = None
    amount: float = 0.0


@dataclass(eq=False, kw_only=True)
class Document:
    """A communication snapshot assembled from input rows.

    Validation may rewrite ``declared_total``; resolution injects the surrogate
    identifiers (``*_id``) that later phases need. Documents are never stored.
    """

    account_ref: str | None
    communication_code: str | None
    kind: RecordKind = RecordKind.ORIGIN

    description: str | None = None
    document_date: date | None = None
    state: str | None = None
    claim_ref: str | None = None
    insurer: str | None = None
    phenomenon: str | None = None
    loss_date: date | None = None
    fund: str | None = None
    district: str | None = None
    adjuster: str | None = None
    declared_total: float = 0.0
    oversight_override: float | None = None

    lines: list[Line] = field(default_factory=list[Line])
    # raw input rows (header -> cell) kept for the corrective extract
    source_rows: list[dict[str, str]] = field(default_factory=list[dict[str, str]], repr=False)

    status: DocumentStatus = DocumentStatus.PENDING
    reason: str | None = None
    notes: list[str] = field(default_factory=list[str])
    express_account: bool = False

    insurer_id: int | None = None
    district_id: int | None = None
    adjuster_id: int | None = None
    claim_id: int | None = None
    account_id: int | None = None
    communication_id: int | None = None
    revision_id: int | None = None

    @property
    def key(self) -> DocumentKey:
        return DocumentKey.of(self.account_ref, self.communication_code, self.kind)

    @property
    def lines_total(self) -> float:
        return round(sum(line.amount for line in self.lines), 2)

    @property
    def is_active(self) -> bool:
        """Whether the document still takes part in persistence."""
        return self.status in {DocumentStatus.VALID, DocumentStatus.PERSISTED}

    def reject(self, reason: str) -> None:
        self.status = DocumentStatus.REJECTED
        self.reason = reason

    def note(self, message: str) -> None:
        self.notes.append(message)

    def label(self) -> str:
        return f"{self.account_ref or '?'}/{self.communication_code or '?'} ({self.kind})"
