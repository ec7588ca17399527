"""Natural-key normalisation shared by parsing, caching and validation."""

from __future__ import annotations

import unicodedata


def normalize_text(value: str | None) -> str | None:
    """Return a case- and accent-insensitive form of ``value``.

    Whitespace is collapsed; an empty result is ``None`` so blank cells never match.
    """

    if value is None:
        return None
    text = unicodedata.normalize("NFKD", value)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.casefold()
    text = " ".join(text.split())
    return text or None


def normalize_header(value: str) -> str:
    """Normalise a column header so aliases compare by spelling only."""

    text = normalize_text(value.replace("\ufeff", "")) or ""
    for separator in ("-", " ", "."):
        text = text.replace(separator, "_")
    return text.strip("_")


def clean_text(value: str | None) -> str | None:
    """Strip surrounding whitespace, mapping blanks to ``None``."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
