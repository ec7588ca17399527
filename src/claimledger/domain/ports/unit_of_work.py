"""Unit-of-work abstraction around the table store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from claimledger.domain.ports.storage import TableStore


@runtime_checkable
class ImportUnitOfWork(Protocol):
    """Transaction boundary for one import run; committed once per persistence phase."""

    @property
    def store(self) -> TableStore: ...

    def __enter__(self) -> ImportUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
