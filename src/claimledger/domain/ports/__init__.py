"""Domain port definitions for adapters."""

from __future__ import annotations

from .storage import Record, TableStore
from .unit_of_work import ImportUnitOfWork

__all__ = [
    "ImportUnitOfWork",
    "Record",
    "TableStore",
]
