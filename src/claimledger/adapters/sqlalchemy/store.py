"""SQLAlchemy Core implementation of the table store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from claimledger.domain.errors import StorageError

from .tables import TABLES

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy.orm import Session

    from claimledger.domain.model import StorageTable
    from claimledger.domain.ports import Record

log = logging.getLogger(__name__)


class SqlAlchemyTableStore:
    """Read whole tables and bulk-insert records through one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def read_all(self, table: StorageTable) -> list[Record]:
        sa_table = TABLES[table]
        try:
            rows = self.session.execute(select(sa_table).order_by(sa_table.c.id)).mappings()
            return [dict(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not read {table}: {exc}") from exc

    def insert_batch(
        self,
        table: StorageTable,
        records: Sequence[Mapping[str, object]],
    ) -> list[int]:
        """Insert ``records`` in one statement; identifiers come back in parameter order."""

        if not records:
            return []
        sa_table = TABLES[table]
        columns = [
            column.name
            for column in sa_table.columns
            if column.name != "id" and any(column.name in record for record in records)
        ]
        parameters = [{name: record.get(name) for name in columns} for record in records]
        statement = insert(sa_table).returning(sa_table.c.id, sort_by_parameter_order=True)
        try:
            ids = list(self.session.execute(statement, parameters).scalars())
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not insert {len(records)} {table} records: {exc}") from exc
        log.debug("Inserted %s rows into %s", len(ids), sa_table.name)
        return ids
