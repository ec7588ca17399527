"""Phase-based orchestrator for ordered batch persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from claimledger.domain.errors import PhaseFailedError, StorageError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimledger.domain.ingest.context import DocumentBatch, ImportContext

log = logging.getLogger(__name__)


class PersistencePhase(Protocol):
    """Contract implemented by each persistence phase."""

    name: str

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> None: ...


@dataclass(slots=True)
class PersistencePipeline:
    """Compose and execute the ordered persistence phases.

    Each phase that wrote anything is committed before the next one starts, so a
    storage failure leaves the earlier phases persisted and stops the run.
    """

    phases: Sequence[PersistencePhase] = field(default_factory=tuple)

    def with_phase(self, phase: PersistencePhase) -> PersistencePipeline:
        """Return a new pipeline appending ``phase`` at the end."""

        return PersistencePipeline(phases=(*self.phases, phase))

    def run(self, batch: DocumentBatch, *, context: ImportContext) -> DocumentBatch:
        """Execute the configured phases in-order against ``batch``."""

        for phase in self.phases:
            writes_before = context.write_count
            try:
                phase.run(batch, context=context)
                if context.write_count > writes_before:
                    context.commit()
            except StorageError as exc:
                log.exception("Phase %s failed", phase.name)
                raise PhaseFailedError(phase.name, exc) from exc
            log.debug("Phase %s finished", phase.name)
        return batch
