"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RecordKind(StrEnum):
    ORIGIN = "ORIGIN"
    REVISION = "REVISION"


class DocumentStatus(StrEnum):
    PENDING = "pending"
    VALID = "valid"
    REJECTED = "rejected"
    PERSISTED = "persisted"


class StorageTable(StrEnum):
    """Tables behind the storage boundary, in dependency order."""

    INSURERS = "insurers"
    DISTRICTS = "districts"
    ADJUSTERS = "adjusters"
    CLAIMS = "claims"
    ACCOUNTS = "accounts"
    COMMUNICATIONS = "communications"
    HEADERS = "headers"
    REVISIONS = "revisions"
    LINE_ITEMS = "line_items"


CACHED_TABLES: tuple[StorageTable, ...] = (
    StorageTable.INSURERS,
    StorageTable.DISTRICTS,
    StorageTable.ADJUSTERS,
    StorageTable.CLAIMS,
    StorageTable.ACCOUNTS,
    StorageTable.COMMUNICATIONS,
    StorageTable.HEADERS,
    StorageTable.REVISIONS,
)
