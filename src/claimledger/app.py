"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from claimledger.adapters.extraction import documents_from_json
from claimledger.adapters.memory import InMemoryTableStore, InMemoryUnitOfWork
from claimledger.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from claimledger.config import get_import_config
from claimledger.domain.errors import MalformedInputError, ReconciliationError
from claimledger.domain.ingest import import_csv_text, reconcile_documents
from claimledger.domain.model import ImportResult
from claimledger.domain.ports import ImportUnitOfWork

if TYPE_CHECKING:
    from claimledger.config import ImportConfig

UnitOfWorkFactory = Callable[[], ImportUnitOfWork]


log = getLogger(__name__)


def in_memory_unit_of_work_factory(store: InMemoryTableStore | None = None) -> UnitOfWorkFactory:
    """Return a factory whose units of work share one in-memory store."""

    shared = store or InMemoryTableStore()
    return lambda: InMemoryUnitOfWork(shared)


def _resolve_factory(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def import_csv_file(
    path: Path | str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ImportConfig | None = None,
) -> ImportResult:
    """Import a delimited file using the configured adapters."""

    effective_config = config or get_import_config()
    effective_uow = _resolve_factory(unit_of_work_factory)
    source = Path(path)
    log.info(
        "Starting CSV import: file=%s, delimiter=%r, tolerance=%s",
        source,
        effective_config.delimiter,
        effective_config.tolerance,
    )

    try:
        text = source.read_bytes().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        error = MalformedInputError(f"{source} is not valid UTF-8: {exc}")
        log.error("Import aborted: %s", error)
        return ImportResult.failure(str(error))
    result = import_csv_text(text, unit_of_work_factory=effective_uow, config=effective_config)

    log.info(
        "Finished CSV import: success=%s, seen=%s, valid=%s, rejected=%s",
        result.success,
        result.documents_seen,
        result.valid,
        result.rejected_count,
    )
    return result


def import_extracted_documents(
    path: Path | str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: ImportConfig | None = None,
) -> ImportResult:
    """Import a JSON file of documents produced by the extraction service."""

    effective_config = config or get_import_config()
    effective_uow = _resolve_factory(unit_of_work_factory)
    source = Path(path)
    log.info("Starting extracted-document import: file=%s", source)

    try:
        documents = documents_from_json(source.read_bytes())
    except ReconciliationError as exc:
        return ImportResult.failure(str(exc))
    result = reconcile_documents(
        documents, unit_of_work_factory=effective_uow, config=effective_config
    )

    log.info(
        "Finished extracted-document import: success=%s, seen=%s, valid=%s, rejected=%s",
        result.success,
        result.documents_seen,
        result.valid,
        result.rejected_count,
    )
    return result
