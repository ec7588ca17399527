"""Import reconciliation settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_env_var, optional_float_env_var
from .errors import ConfigurationError

DEFAULT_TOLERANCE: Final[float] = 1.0
DEFAULT_OVERSIGHT_RATE: Final[float] = 0.05
DEFAULT_DELIMITER: Final[str] = ","
DEFAULT_DECIMAL_SEPARATOR: Final[str] = "."


@dataclass(frozen=True, slots=True)
class ImportConfig:
    """Business constants and input-format settings for one import run."""

    tolerance: float = DEFAULT_TOLERANCE
    oversight_rate: float = DEFAULT_OVERSIGHT_RATE
    default_adjuster: str | None = None
    delimiter: str = DEFAULT_DELIMITER
    decimal_separator: str = DEFAULT_DECIMAL_SEPARATOR

    def __post_init__(self) -> None:
        if self.tolerance < 0:
            raise ConfigurationError("Tolerance must be non-negative")
        if not 0 <= self.oversight_rate <= 1:
            raise ConfigurationError("Oversight rate must be between 0 and 1")
        if len(self.delimiter) != 1:
            raise ConfigurationError(f"Delimiter must be a single character: {self.delimiter!r}")
        if self.decimal_separator not in {".", ","}:
            raise ConfigurationError(
                f"Decimal separator must be '.' or ',': {self.decimal_separator!r}"
            )


def get_import_config() -> ImportConfig:
    return ImportConfig(
        tolerance=optional_float_env_var("CLAIMLEDGER_TOLERANCE", DEFAULT_TOLERANCE),
        oversight_rate=optional_float_env_var(
            "CLAIMLEDGER_OVERSIGHT_RATE", DEFAULT_OVERSIGHT_RATE
        ),
        default_adjuster=optional_env_var("CLAIMLEDGER_DEFAULT_ADJUSTER"),
        delimiter=optional_env_var("CLAIMLEDGER_DELIMITER") or DEFAULT_DELIMITER,
        decimal_separator=(
            optional_env_var("CLAIMLEDGER_DECIMAL_SEPARATOR") or DEFAULT_DECIMAL_SEPARATOR
        ),
    )
