"""SQLAlchemy Core tables behind the import table store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Column,
    Date,
    Enum,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    UniqueConstraint,
)

from claimledger.domain.model import RecordKind, StorageTable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

Money = Numeric(14, 2, asdecimal=False)


def _id_column() -> Column[int]:
    return Column("id", Integer, primary_key=True, autoincrement=True)


insurer_table = Table(
    "insurer",
    metadata,
    _id_column(),
    Column("name", String, nullable=False),
    sqlite_autoincrement=True,
)

district_table = Table(
    "district",
    metadata,
    _id_column(),
    Column("name", String, nullable=False),
    sqlite_autoincrement=True,
)

adjuster_table = Table(
    "adjuster",
    metadata,
    _id_column(),
    Column("name", String, nullable=False),
    sqlite_autoincrement=True,
)

claim_table = Table(
    "claim",
    metadata,
    _id_column(),
    Column("reference", String, nullable=False),
    Column("insurer_id", Integer, ForeignKey("insurer.id"), nullable=True),
    Column("phenomenon", String, nullable=True),
    Column("loss_date", Date, nullable=True),
    Column("fund", String, nullable=True),
    sqlite_autoincrement=True,
)

account_table = Table(
    "account",
    metadata,
    _id_column(),
    Column("reference", String, nullable=False),
    Column("name", String, nullable=True),
    Column("adjuster_id", Integer, ForeignKey("adjuster.id"), nullable=True),
    sqlite_autoincrement=True,
)

communication_table = Table(
    "communication",
    metadata,
    _id_column(),
    Column("account_id", Integer, ForeignKey("account.id"), nullable=False),
    Column("code", String, nullable=False),
    UniqueConstraint("account_id", "code"),
    sqlite_autoincrement=True,
)

header_table = Table(
    "communication_header",
    metadata,
    _id_column(),
    Column(
        "communication_id",
        Integer,
        ForeignKey("communication.id"),
        nullable=False,
        unique=True,
    ),
    Column("description", String, nullable=True),
    Column("state", String, nullable=True),
    Column("district_id", Integer, ForeignKey("district.id"), nullable=True),
    Column("claim_id", Integer, ForeignKey("claim.id"), nullable=True),
    Column("document_date", Date, nullable=True),
    Column("current_revision_id", Integer, nullable=True),
    sqlite_autoincrement=True,
)

revision_table = Table(
    "revision",
    metadata,
    _id_column(),
    Column("communication_id", Integer, ForeignKey("communication.id"), nullable=False),
    Column("sequence", Integer, nullable=False),
    Column("kind", Enum(RecordKind, native_enum=False), nullable=False),
    Column("declared_amount", Money, nullable=False),
    Column("oversight_amount", Money, nullable=False),
    Column("document_date", Date, nullable=True),
    Column("description", String, nullable=True),
    sqlite_autoincrement=True,
)

line_item_table = Table(
    "line_item",
    metadata,
    _id_column(),
    Column("revision_id", Integer, ForeignKey("revision.id"), nullable=False),
    Column("position", Integer, nullable=False),
    Column("concept", String, nullable=True),
    Column("category", String, nullable=True),
    Column("amount", Money, nullable=False),
    sqlite_autoincrement=True,
)

TABLES: Final[Mapping[StorageTable, Table]] = {
    StorageTable.INSURERS: insurer_table,
    StorageTable.DISTRICTS: district_table,
    StorageTable.ADJUSTERS: adjuster_table,
    StorageTable.CLAIMS: claim_table,
    StorageTable.ACCOUNTS: account_table,
    StorageTable.COMMUNICATIONS: communication_table,
    StorageTable.HEADERS: header_table,
    StorageTable.REVISIONS: revision_table,
    StorageTable.LINE_ITEMS: line_item_table,
}


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the import metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
