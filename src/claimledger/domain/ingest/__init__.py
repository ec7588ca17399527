"""Batch import reconciliation: parsing, validation, ordered persistence and reporting."""

from __future__ import annotations

from .cache import NATURAL_KEY_FIELDS, CatalogCache
from .catalogs import CatalogLeavesPhase, ClaimsAndAccountsPhase
from .communications import CommunicationsPhase, HeadersPhase
from .context import DocumentBatch, ImportContext
from .orchestrator import PersistencePhase, PersistencePipeline
from .parser import CANONICAL_HEADER, Column, ParseResult, parse_table
from .report import build_report, corrective_extract
from .revisions import LineItemsPhase, RevisionsPhase, current_revision
from .runner import default_pipeline, import_csv_text, reconcile_documents
from .validation import validate_documents

__all__ = [
    "CANONICAL_HEADER",
    "NATURAL_KEY_FIELDS",
    "CatalogCache",
    "CatalogLeavesPhase",
    "ClaimsAndAccountsPhase",
    "Column",
    "CommunicationsPhase",
    "DocumentBatch",
    "HeadersPhase",
    "ImportContext",
    "LineItemsPhase",
    "ParseResult",
    "PersistencePhase",
    "PersistencePipeline",
    "RevisionsPhase",
    "build_report",
    "corrective_extract",
    "current_revision",
    "default_pipeline",
    "import_csv_text",
    "parse_table",
    "reconcile_documents",
    "validate_documents",
]
