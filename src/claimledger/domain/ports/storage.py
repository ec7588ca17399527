"""Ports for the generic table store behind the import core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from claimledger.domain.model import StorageTable


type Record = dict[str, object]


@runtime_checkable
class TableStore(Protocol):
    """Append-only table access used by the import core.

    ``insert_batch`` returns one generated identifier per record, in the order the
    records were given; every identifier is greater than any existing one in the table.
    """

    def read_all(self, table: StorageTable) -> list[Record]: ...

    def insert_batch(
        self,
        table: StorageTable,
        records: Sequence[Mapping[str, object]],
    ) -> list[int]: ...
