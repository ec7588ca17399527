"""Structured outcome of one import run."""

from __future__ import annotations

from dataclasses import dataclass, field

from claimledger.domain.model.enums import RecordKind, StorageTable


@dataclass(slots=True, frozen=True)
class RejectedDocument:
    account_ref: str | None
    communication_code: str | None
    kind: RecordKind
    reason: str


@dataclass(slots=True, frozen=True)
class CorrectionNote:
    account_ref: str | None
    communication_code: str | None
    kind: RecordKind
    message: str


@dataclass(slots=True)
class ImportResult:
    """Outcome of an import run.

    A failed run carries only ``message`` (and the failing phase, when a storage
    write failed); a completed run carries counts and the rejected documents.
    """

    success: bool
    message: str = ""
    failed_phase: str | None = None
    documents_seen: int = 0
    valid: int = 0
    rejected: list[RejectedDocument] = field(default_factory=list[RejectedDocument])
    corrections: list[CorrectionNote] = field(default_factory=list[CorrectionNote])
    dropped_rows: list[int] = field(default_factory=list[int])
    created: dict[StorageTable, int] = field(default_factory=dict[StorageTable, int])
    corrective_csv: str | None = None

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @classmethod
    def failure(cls, message: str, *, failed_phase: str | None = None) -> ImportResult:
        return cls(success=False, message=message, failed_phase=failed_phase)
