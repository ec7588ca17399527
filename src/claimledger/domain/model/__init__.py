"""Public domain model surface."""

from __future__ import annotations

from claimledger.domain.model.document import Document, DocumentKey, Line
from claimledger.domain.model.enums import (
    CACHED_TABLES,
    DocumentStatus,
    RecordKind,
    StorageTable,
)
from claimledger.domain.model.result import CorrectionNote, ImportResult, RejectedDocument

__all__ = [
    "CACHED_TABLES",
    "CorrectionNote",
    "Document",
    "DocumentKey",
    "DocumentStatus",
    "ImportResult",
    "Line",
    "RecordKind",
    "RejectedDocument",
    "StorageTable",
]
