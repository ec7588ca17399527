"""Entry points for running one import: parse, validate, persist, report."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from claimledger.config import ImportConfig
from claimledger.domain.errors import PhaseFailedError, ReconciliationError
from claimledger.domain.model import ImportResult

from .cache import CatalogCache
from .catalogs import CatalogLeavesPhase, ClaimsAndAccountsPhase
from .communications import CommunicationsPhase, HeadersPhase
from .context import DocumentBatch, ImportContext
from .orchestrator import PersistencePipeline
from .parser import parse_table
from .report import build_report
from .revisions import LineItemsPhase, RevisionsPhase
from .validation import validate_documents

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from claimledger.domain.model import Document
    from claimledger.domain.ports import ImportUnitOfWork

    from .parser import DroppedRow

log = logging.getLogger(__name__)

type UnitOfWorkFactory = Callable[[], ImportUnitOfWork]


def default_pipeline() -> PersistencePipeline:
    """Return the six persistence phases in dependency order."""

    return (
        PersistencePipeline()
        .with_phase(CatalogLeavesPhase())
        .with_phase(ClaimsAndAccountsPhase())
        .with_phase(CommunicationsPhase())
        .with_phase(HeadersPhase())
        .with_phase(RevisionsPhase())
        .with_phase(LineItemsPhase())
    )


def import_csv_text(
    text: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: ImportConfig | None = None,
) -> ImportResult:
    """Import delimited ``text``; always returns a result, never raises domain errors."""

    active_config = config or ImportConfig()
    try:
        parsed = parse_table(text, config=active_config)
    except ReconciliationError as exc:
        log.error("Import aborted: %s", exc)
        return ImportResult.failure(str(exc))

    return reconcile_documents(
        parsed.documents.values(),
        unit_of_work_factory=unit_of_work_factory,
        config=active_config,
        header=parsed.header,
        dropped_rows=parsed.dropped_rows,
    )


def reconcile_documents(
    documents: Iterable[Document],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: ImportConfig | None = None,
    header: Sequence[str] | None = None,
    dropped_rows: Sequence[DroppedRow] = (),
    pipeline: PersistencePipeline | None = None,
) -> ImportResult:
    """Validate and persist already-grouped ``documents``.

    Storage failures end the run with a failed result; phases committed before the
    failure stay persisted.
    """

    active_config = config or ImportConfig()
    batch = DocumentBatch.of(documents)
    uow = unit_of_work_factory()
    with uow:
        try:
            cache = CatalogCache.load(uow.store)
            validate_documents(batch.documents, cache=cache, config=active_config)
            context = ImportContext(cache=cache, uow=uow, config=active_config)
            (pipeline or default_pipeline()).run(batch, context=context)
        except ReconciliationError as exc:
            log.exception("Import failed")
            uow.rollback()
            failed_phase = exc.phase if isinstance(exc, PhaseFailedError) else None
            return ImportResult.failure(str(exc), failed_phase=failed_phase)

    return build_report(
        batch,
        created=context.created,
        dropped_rows=dropped_rows,
        header=header,
        delimiter=active_config.delimiter,
    )
