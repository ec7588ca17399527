"""SQLAlchemy adapter package for claimledger."""

from __future__ import annotations

from .store import SqlAlchemyTableStore
from .tables import TABLES, create_all_tables, metadata
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "TABLES",
    "SqlAlchemyTableStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "metadata",
    "shutdown",
    "startup",
]
