"""Catalog phases: lookup leaves first, then claims and accounts that reference them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from claimledger.domain.model import RecordKind, StorageTable
from claimledger.domain.text import clean_text, normalize_text

from .context import reject_unresolved

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from claimledger.domain.model import Document
    from claimledger.domain.ports import Record

    from .cache import CatalogCache
    from .context import DocumentBatch, ImportContext

log = logging.getLogger(__name__)

type NameGetter = Callable[[Document], str | None]

_LEAF_FIELDS: tuple[tuple[StorageTable, str, NameGetter], ...] = (
    (StorageTable.INSURERS, "insurer", lambda doc: doc.insurer),
    (StorageTable.DISTRICTS, "district", lambda doc: doc.district),
    (StorageTable.ADJUSTERS, "adjuster", lambda doc: doc.adjuster),
)


def queue_unseen_names(
    cache: CatalogCache,
    table: StorageTable,
    values: Iterable[str | None],
) -> list[Record]:
    """Return one ``{"name": ...}`` record per value not yet in the cache.

    Values are deduplicated by their normalised form; the first display spelling wins.
    """

    queued: dict[str, Record] = {}
    for value in values:
        key = normalize_text(value)
        if key is None or key in queued:
            continue
        if cache.find(table, value) is not None:
            continue
        queued[key] = {"name": clean_text(value)}
    return list(queued.values())


class CatalogLeavesPhase:
    """Insert unseen insurers, districts and adjusters, then resolve their identifiers."""

    name = "catalog-leaves"

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None:
        documents = batch.active()
        for table, _, getter in _LEAF_FIELDS:
            values = [getter(doc) for doc in documents]
            if table is StorageTable.ADJUSTERS and context.config.default_adjuster:
                values.append(context.config.default_adjuster)
            context.insert_and_cache(table, queue_unseen_names(context.cache, table, values))

        if context.config.default_adjuster:
            context.default_adjuster_id = context.cache.find(
                StorageTable.ADJUSTERS, context.config.default_adjuster
            )

        for document in documents:
            self._resolve(document, cache=context.cache)

    def _resolve(self, document: Document, *, cache: CatalogCache) -> None:
        for table, attribute, getter in _LEAF_FIELDS:
            value = getter(document)
            if normalize_text(value) is None:
                continue
            identifier = cache.find(table, value)
            if identifier is None:
                reject_unresolved(
                    document, f"Could not resolve {attribute} {value!r}", phase=self.name
                )
                return
            setattr(document, f"{attribute}_id", identifier)


class ClaimsAndAccountsPhase:
    """Insert unseen claims and accounts, then resolve claim and account identifiers.

    Accounts are only created from origin documents; a revision must find its
    account either in storage or among the accounts created here.
    """

    name = "claims-accounts"

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None:
        documents = batch.active()
        cache = context.cache

        claims: dict[str, Record] = {}
        accounts: dict[str, Record] = {}
        for document in documents:
            claim_key = normalize_text(document.claim_ref)
            if (
                claim_key is not None
                and claim_key not in claims
                and cache.find(StorageTable.CLAIMS, document.claim_ref) is None
            ):
                claims[claim_key] = {
                    "reference": document.claim_ref,
                    "insurer_id": document.insurer_id,
                    "phenomenon": document.phenomenon,
                    "loss_date": document.loss_date,
                    "fund": document.fund,
                }

            account_key = normalize_text(document.account_ref)
            if (
                document.kind is RecordKind.ORIGIN
                and account_key is not None
                and account_key not in accounts
                and cache.find(StorageTable.ACCOUNTS, document.account_ref) is None
            ):
                accounts[account_key] = {
                    "reference": document.account_ref,
                    "adjuster_id": document.adjuster_id or context.default_adjuster_id,
                }

        context.insert_and_cache(StorageTable.CLAIMS, list(claims.values()))
        context.insert_and_cache(StorageTable.ACCOUNTS, list(accounts.values()))
        if accounts:
            log.info("Created %s accounts on the fly", len(accounts))

        for document in documents:
            self._resolve(document, cache=cache)

    def _resolve(self, document: Document, *, cache: CatalogCache) -> None:
        if normalize_text(document.claim_ref) is not None:
            document.claim_id = cache.find(StorageTable.CLAIMS, document.claim_ref)
            if document.claim_id is None:
                reject_unresolved(
                    document, f"Could not resolve claim {document.claim_ref!r}", phase=self.name
                )
                return
        document.account_id = cache.find(StorageTable.ACCOUNTS, document.account_ref)
        if document.account_id is None:
            reject_unresolved(
                document,
                f"Could not resolve account {document.account_ref!r}",
                phase=self.name,
            )
