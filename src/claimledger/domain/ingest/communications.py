"""Communication and header phases.

Communications are queued per (account, code) with the documents that depend on
them; after the bulk insert the generated identifiers are handed back to every
dependent document in insertion order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from claimledger.domain.model import Document, RecordKind, StorageTable
from claimledger.domain.text import normalize_text

from .context import reject_unresolved

if TYPE_CHECKING:
    from claimledger.domain.ports import Record

    from .context import DocumentBatch, ImportContext

log = logging.getLogger(__name__)

type CommunicationKey = tuple[int, str]


@dataclass(slots=True)
class PendingCommunication:
    """A communication waiting for its identifier, with the documents that need it."""

    record: Record
    dependents: list[Document] = field(default_factory=list[Document])


def plan_communications(
    documents: list[Document], *, context: ImportContext, phase: str
) -> dict[CommunicationKey, PendingCommunication]:
    """Resolve existing communications and queue the new ones.

    Documents whose communication is queued earlier in the same run become
    dependents of that queue entry. A revision with neither a stored nor a queued
    communication is rejected.
    """

    queue: dict[CommunicationKey, PendingCommunication] = {}
    for document in documents:
        if document.account_id is None:
            reject_unresolved(document, "Account identifier missing", phase=phase)
            continue
        existing = context.cache.lookup(
            StorageTable.COMMUNICATIONS,
            account_id=document.account_id,
            code=document.communication_code,
        )
        if existing is not None:
            document.communication_id = existing
            continue

        key = (document.account_id, normalize_text(document.communication_code) or "")
        pending = queue.get(key)
        if pending is not None:
            pending.dependents.append(document)
        elif document.kind is RecordKind.ORIGIN:
            queue[key] = PendingCommunication(
                record={"account_id": document.account_id, "code": document.communication_code},
                dependents=[document],
            )
        else:
            reject_unresolved(
                document,
                f"Logical error: no origin found for communication "
                f"{document.communication_code!r} on account {document.account_ref!r}",
                phase=phase,
            )
    return queue


class CommunicationsPhase:
    """Insert new communications and back-patch their identifiers onto documents."""

    name = "communications"

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None:
        queue = plan_communications(batch.active(), context=context, phase=self.name)
        entries = list(queue.values())
        ids = context.insert_and_cache(
            StorageTable.COMMUNICATIONS, [entry.record for entry in entries]
        )
        for entry, identifier in zip(entries, ids, strict=True):
            for document in entry.dependents:
                document.communication_id = identifier
            if len(entry.dependents) > 1:
                log.debug(
                    "Communication %s shared by %s documents", identifier, len(entry.dependents)
                )


class HeadersPhase:
    """Insert one header per newly seen origin communication.

    Headers are stored without a current revision; it is derived on read through
    :func:`claimledger.domain.ingest.revisions.current_revision`.

    A later document for the same communication that carries a description
    overwrites the pending header's description.
    """

    name = "headers"

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None:
        pending: dict[int, Record] = {}
        for document in batch.active():
            communication_id = document.communication_id
            if communication_id is None:
                continue
            if communication_id in pending:
                if document.description:
                    pending[communication_id]["description"] = document.description
                continue
            if document.kind is not RecordKind.ORIGIN:
                continue
            header = context.cache.lookup(StorageTable.HEADERS, communication_id=communication_id)
            if header is not None:
                continue
            pending[communication_id] = {
                "communication_id": communication_id,
                "description": document.description,
                "state": document.state,
                "district_id": document.district_id,
                "claim_id": document.claim_id,
                "document_date": document.document_date,
                "current_revision_id": None,
            }
        context.insert_and_cache(StorageTable.HEADERS, list(pending.values()))
