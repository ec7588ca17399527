"""Translate AI-extracted JSON payloads into domain documents."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from claimledger.domain.errors import ReconciliationError
from claimledger.domain.ingest.parser import parse_kind
from claimledger.domain.model import Document, Line

from .schema import ExtractedDocument, ExtractedPayload

if TYPE_CHECKING:
    from collections.abc import Mapping


log = getLogger(__name__)

_PAYLOAD_ADAPTER: TypeAdapter[ExtractedPayload] = TypeAdapter(ExtractedPayload)


class ExtractionPayloadError(ReconciliationError):
    """Raised when an extracted payload does not match the document shape."""


def _ensure_document(payload: ExtractedDocument | Mapping[str, object]) -> ExtractedDocument:
    if isinstance(payload, ExtractedDocument):
        return payload
    return ExtractedDocument.model_validate(payload)


def translate_document(payload: ExtractedDocument | Mapping[str, object]) -> Document:
    """Return a pending :class:`Document` for one extracted payload."""

    extracted = _ensure_document(payload)
    kind, recognised = parse_kind(extracted.kind)
    document = Document(
        account_ref=extracted.account_ref,
        communication_code=extracted.communication_code,
        kind=kind,
        description=extracted.description,
        document_date=extracted.document_date,
        state=extracted.state,
        claim_ref=extracted.claim_ref,
        insurer=extracted.insurer,
        phenomenon=extracted.phenomenon,
        loss_date=extracted.loss_date,
        fund=extracted.fund,
        district=extracted.district,
        adjuster=extracted.adjuster,
        declared_total=round(extracted.declared_total, 2),
        oversight_override=extracted.oversight_amount,
        lines=[
            Line(concept=line.concept, category=line.category, amount=round(line.amount, 2))
            for line in extracted.lines
        ],
    )
    if not recognised:
        document.note(f"Unrecognised record kind {extracted.kind!r}; treated as {kind}")
    if not extracted.lines:
        log.debug("Extracted document %s has no itemised lines", document.label())
    return document


def documents_from_json(text: str | bytes) -> list[Document]:
    """Validate a JSON document (or list of documents) and translate each entry."""

    try:
        payload = _PAYLOAD_ADAPTER.validate_json(text)
    except ValidationError as exc:
        log.error("Extracted payload rejected: %s", exc)
        raise ExtractionPayloadError(f"Invalid extracted document payload: {exc}") from exc

    extracted = payload if isinstance(payload, list) else [payload]
    documents = [translate_document(item) for item in extracted]
    log.info("Translated %s extracted documents", len(documents))
    return documents
