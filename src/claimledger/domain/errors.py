"""Errors that end an import run early."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for failures that abort an import run."""


class MissingColumnsError(ReconciliationError):
    """Raised when the input header lacks a mandatory column."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"Missing mandatory columns: {', '.join(missing)}")
        self.missing = missing


class StorageError(ReconciliationError):
    """Raised by table stores when a read or bulk write fails."""


class PhaseFailedError(ReconciliationError):
    """Raised when a persistence phase could not complete its bulk write."""

    def __init__(self, phase: str, cause: StorageError) -> None:
        super().__init__(f"Storage failure during {phase} phase: {cause}")
        self.phase = phase
        self.cause = cause


class MalformedInputError(ReconciliationError):
    """Raised when the input cannot be decoded or split into rows."""
