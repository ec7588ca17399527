"""Adapter for documents produced by the external AI extraction service."""

from __future__ import annotations

from .schema import ExtractedDocument, ExtractedLine
from .translator import ExtractionPayloadError, documents_from_json, translate_document

__all__ = [
    "ExtractedDocument",
    "ExtractedLine",
    "ExtractionPayloadError",
    "documents_from_json",
    "translate_document",
]
