"""Per-document business rules and value repair.

Validation never raises: a failing document is marked rejected with a reason and the
run carries on. Totals that disagree with their lines are rewritten to the line sum.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from claimledger.domain.model import DocumentStatus, RecordKind, StorageTable
from claimledger.domain.text import normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from claimledger.config import ImportConfig
    from claimledger.domain.ingest.cache import CatalogCache
    from claimledger.domain.model import Document

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ValidationSummary:
    valid: int = 0
    rejected: int = 0
    corrected: int = 0
    express_accounts: int = 0


def validate_documents(
    documents: Iterable[Document],
    *,
    cache: CatalogCache,
    config: ImportConfig,
) -> ValidationSummary:
    """Validate ``documents`` in place.

    Origins are checked before revisions so a revision can rely on a valid origin
    appearing anywhere in the same input.
    """

    ordered = sorted(documents, key=lambda doc: doc.kind is not RecordKind.ORIGIN)
    summary = ValidationSummary()
    run_origins: set[tuple[str, str]] = set()
    run_accounts: set[str] = set()

    for document in ordered:
        if document.status is not DocumentStatus.PENDING:
            continue
        corrected = _check_common(document, config=config)
        if document.status is DocumentStatus.PENDING:
            if document.kind is RecordKind.ORIGIN:
                _check_origin(document, cache=cache)
            else:
                _check_revision(
                    document,
                    cache=cache,
                    run_origins=run_origins,
                    run_accounts=run_accounts,
                )

        if document.status is DocumentStatus.REJECTED:
            summary.rejected += 1
            log.warning("Rejected %s: %s", document.label(), document.reason)
            continue

        document.status = DocumentStatus.VALID
        summary.valid += 1
        summary.corrected += int(corrected)
        summary.express_accounts += int(document.express_account)
        if document.kind is RecordKind.ORIGIN:
            run_origins.add(document.key.communication_key)
            run_accounts.add(document.key.account_ref)

    log.info(
        "Validated documents: %s valid, %s rejected, %s corrected, %s express accounts",
        summary.valid,
        summary.rejected,
        summary.corrected,
        summary.express_accounts,
    )
    return summary


def _check_common(document: Document, *, config: ImportConfig) -> bool:
    """Apply the key and total rules; return whether the total was corrected."""

    if normalize_text(document.account_ref) is None:
        document.reject("Missing account reference")
        return False
    if normalize_text(document.communication_code) is None:
        document.reject("Missing communication code")
        return False
    if document.declared_total <= 0:
        document.reject(f"Declared total must be positive, got {document.declared_total:.2f}")
        return False

    lines_total = document.lines_total
    difference = abs(document.declared_total - lines_total)
    if lines_total > 0 and difference > config.tolerance:
        message = (
            f"Declared total {document.declared_total:.2f} replaced by line sum "
            f"{lines_total:.2f} (difference {difference:.2f})"
        )
        log.warning("Corrected %s: %s", document.label(), message)
        document.note(message)
        document.declared_total = lines_total
        return True
    return False


def _check_origin(document: Document, *, cache: CatalogCache) -> None:
    if cache.find(StorageTable.ACCOUNTS, document.account_ref) is None:
        document.express_account = True
        document.note(f"Account {document.account_ref!r} not found; it will be created")


def _check_revision(
    document: Document,
    *,
    cache: CatalogCache,
    run_origins: set[tuple[str, str]],
    run_accounts: set[str],
) -> None:
    key = document.key
    account_id = cache.find(StorageTable.ACCOUNTS, document.account_ref)
    if account_id is not None and (
        cache.lookup(
            StorageTable.COMMUNICATIONS,
            account_id=account_id,
            code=document.communication_code,
        )
        is not None
    ):
        return
    if key.communication_key in run_origins:
        return

    if account_id is not None or key.account_ref in run_accounts:
        document.reject(
            f"No origin found for communication {document.communication_code!r} on account "
            f"{document.account_ref!r}: the account exists, check the communication code"
        )
    else:
        document.reject(
            f"No origin found: nothing registered for account {document.account_ref!r}"
        )
